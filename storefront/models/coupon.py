from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from storefront.utils.clock import utc_now
from decimal import Decimal
from enum import Enum


class DiscountType(str, Enum):
    percentage = "percentage"
    fixed = "fixed"


class Coupon(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)

    # always stored uppercase
    code: str = Field(index=True, unique=True)

    discount_type: DiscountType
    discount_value: Decimal = Field(max_digits=10, decimal_places=2)
    min_order_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)

    max_uses: Optional[int] = None  # None = unlimited
    used_count: int = Field(default=0)

    expires_at: Optional[datetime] = None
    is_active: bool = Field(default=True)

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
