from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, Field, model_validator


class CartLine(BaseModel):
    """One validated cart line, as the price calculator sees it."""

    model_config = ConfigDict(frozen=True)

    product_id: int
    unit_price: Decimal = Field(ge=0, decimal_places=2)
    sale_price: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    quantity: int = Field(ge=1)

    @model_validator(mode="after")
    def _sale_below_list_price(self):
        if self.sale_price is not None and self.sale_price >= self.unit_price:
            raise ValueError("sale_price must be lower than unit_price")
        return self

    @property
    def effective_unit_price(self) -> Decimal:
        return self.sale_price if self.sale_price is not None else self.unit_price

    @property
    def line_total(self) -> Decimal:
        return self.effective_unit_price * self.quantity


class CartItemInput(BaseModel):
    product_id: int
    quantity: int = Field(default=1, ge=1)


class CartQuoteRequest(BaseModel):
    items: List[CartItemInput]
    coupon_code: Optional[str] = None
