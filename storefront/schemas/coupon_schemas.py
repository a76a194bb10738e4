from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from storefront.models.coupon import DiscountType


def normalize_code(code: str) -> str:
    return code.strip().upper()


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    # stored timestamps are naive UTC
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class _CouponFields(BaseModel):
    code: str = Field(min_length=1)
    discount_type: DiscountType
    discount_value: Decimal = Field(ge=0, decimal_places=2)
    min_order_amount: Decimal = Field(default=Decimal("0"), ge=0, decimal_places=2)
    max_uses: Optional[int] = Field(default=None, ge=1)
    expires_at: Optional[datetime] = None
    is_active: bool = True

    @field_validator("code")
    @classmethod
    def _upper_code(cls, v: str) -> str:
        return normalize_code(v)

    @field_validator("expires_at")
    @classmethod
    def _naive_expiry(cls, v):
        return _as_naive_utc(v)

    @model_validator(mode="after")
    def _percentage_range(self):
        if self.discount_type == DiscountType.percentage and self.discount_value > 100:
            raise ValueError("percentage discount must be between 0 and 100")
        return self


class CouponRecord(_CouponFields):
    """Typed view of a stored coupon; raw rows are parsed through this."""

    model_config = ConfigDict(frozen=True, from_attributes=True)

    id: Optional[int] = None
    used_count: int = Field(default=0, ge=0)


class CouponCreate(_CouponFields):
    pass


class CouponUpdate(BaseModel):
    code: Optional[str] = None
    discount_type: Optional[DiscountType] = None
    discount_value: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    min_order_amount: Optional[Decimal] = Field(default=None, ge=0, decimal_places=2)
    max_uses: Optional[int] = Field(default=None, ge=1)
    expires_at: Optional[datetime] = None
    is_active: Optional[bool] = None

    @field_validator("code")
    @classmethod
    def _upper_code(cls, v):
        return normalize_code(v) if v is not None else v

    @field_validator("expires_at")
    @classmethod
    def _naive_expiry(cls, v):
        return _as_naive_utc(v)


class CouponRejection(str, Enum):
    not_found = "not_found"
    expired = "expired"
    usage_limit_reached = "usage_limit_reached"
    minimum_not_met = "minimum_not_met"


class CouponValidation(BaseModel):
    """Either the applicable coupon or the reason it was turned down."""

    model_config = ConfigDict(frozen=True)

    coupon: Optional[CouponRecord] = None
    rejection: Optional[CouponRejection] = None
    message: str

    @property
    def ok(self) -> bool:
        return self.rejection is None


class CouponValidateRequest(BaseModel):
    code: str
    subtotal: Decimal = Field(ge=0)


class CouponValidateResponse(BaseModel):
    valid: bool
    reason: Optional[CouponRejection] = None
    message: str
    coupon: Optional[CouponRecord] = None
