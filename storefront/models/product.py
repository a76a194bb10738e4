from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from storefront.utils.clock import utc_now
from decimal import Decimal


class Product(SQLModel, table=True):
    #main info
    id: Optional[int] = Field(default=None, primary_key=True)
    name: str
    slug: str = Field(index=True)
    sku: Optional[str] = None
    description: Optional[str] = None

    #Image
    image_url: Optional[str] = None

    #Shop Details
    price: Decimal = Field(max_digits=10, decimal_places=2)
    sale_price: Optional[Decimal] = Field(default=None, max_digits=10, decimal_places=2)
    currency: str = Field(default="INR")
    stock: int = Field(default=0)
    is_visible: bool = True
    is_featured: bool = False

    #timestamps
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    @property
    def in_stock(self) -> bool:
         return self.stock > 0

    @property
    def effective_price(self) -> Decimal:
        if self.sale_price is not None and self.sale_price < self.price:
            return self.sale_price
        return self.price
