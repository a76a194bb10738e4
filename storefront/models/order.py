from sqlmodel import SQLModel, Field, Relationship
from sqlalchemy import Column, JSON
from typing import List, Optional
from datetime import datetime
from storefront.utils.clock import utc_now
from decimal import Decimal
from enum import Enum

from storefront.models.order_item import OrderItem


class OrderStatus(str, Enum):
    pending = "pending"
    paid = "paid"
    processing = "processing"
    shipped = "shipped"
    delivered = "delivered"
    cancelled = "cancelled"
    refunded = "refunded"


class Order(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    order_number: str = Field(index=True, unique=True)

    # guest checkout leaves user_id empty and records the email instead
    user_id: Optional[int] = Field(default=None, foreign_key="user.id", index=True)
    guest_email: Optional[str] = None

    status: str = Field(default=OrderStatus.pending.value, index=True)

    # copied from the price quote at checkout, never recomputed
    subtotal: Decimal = Field(max_digits=10, decimal_places=2)
    discount_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    shipping_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    tax_amount: Decimal = Field(default=Decimal("0"), max_digits=10, decimal_places=2)
    total: Decimal = Field(max_digits=10, decimal_places=2)

    coupon_id: Optional[int] = Field(default=None, foreign_key="coupon.id")

    shipping_address: Optional[dict] = Field(default=None, sa_column=Column(JSON))
    payment_method: Optional[str] = None
    payment_id: Optional[str] = None
    payment_status: str = Field(default="pending")
    notes: Optional[str] = None

    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)

    items: List["OrderItem"] = Relationship(back_populates="order")
