from pydantic import BaseModel
from typing import List, Optional
from datetime import datetime
from decimal import Decimal

from storefront.models.order import OrderStatus

class PlacedOrderItem(BaseModel):
    product_id: Optional[int] = None
    product_name: str
    unit_price: Decimal
    quantity: int
    total_price: Decimal

class PlaceOrderResponse(BaseModel):
    order_id: int
    order_number: str
    status: str
    message: str
    items: List[PlacedOrderItem]
    subtotal: Decimal
    discount_amount: Decimal
    shipping_amount: Decimal
    tax_amount: Decimal
    total: Decimal
    created_at: datetime

class OrderStatusUpdate(BaseModel):
    status: OrderStatus
