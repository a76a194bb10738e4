# storefront/schemas/checkout_schemas.py
from decimal import Decimal
from typing import List, Optional
from pydantic import BaseModel, ConfigDict, EmailStr, Field

from storefront.schemas.cart_schemas import CartItemInput
from storefront.schemas.coupon_schemas import CouponRejection


class PriceQuote(BaseModel):
    """Price breakdown for a cart; every field is derived."""

    model_config = ConfigDict(frozen=True)

    subtotal: Decimal
    discount_amount: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    total: Decimal


class ShippingAddress(BaseModel):
    full_name: str = Field(min_length=2)
    phone: str = Field(min_length=10)
    address_line1: str = Field(min_length=5)
    address_line2: Optional[str] = None
    city: str = Field(min_length=2)
    state: str = Field(min_length=2)
    postal_code: str = Field(min_length=5)
    country: str = "India"


class PlaceOrderRequest(BaseModel):
    items: List[CartItemInput]
    address: ShippingAddress
    guest_email: Optional[EmailStr] = None   # required when not signed in
    coupon_code: Optional[str] = None
    notes: Optional[str] = None


class CartQuoteResponse(BaseModel):
    quote: PriceQuote
    coupon_code: Optional[str] = None
    coupon_valid: Optional[bool] = None
    coupon_reason: Optional[CouponRejection] = None
    coupon_message: Optional[str] = None
    free_shipping_remaining: Decimal
    item_count: int
