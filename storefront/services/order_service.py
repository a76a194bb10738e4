# storefront/services/order_service.py
from datetime import datetime
from storefront.utils.clock import utc_now
from typing import Optional
import logging

from sqlmodel import Session

from storefront.constants.order_status import ALLOWED_TRANSITIONS
from storefront.models.order import Order, OrderStatus
from storefront.services.exceptions import InvalidStatusTransition

logger = logging.getLogger(__name__)


def can_transition(current: str, new: str) -> bool:
    return new in ALLOWED_TRANSITIONS.get(current, [])


def update_order_status(
    session: Session,
    order: Order,
    new_status: OrderStatus,
    now: Optional[datetime] = None,
) -> Order:
    """Move an order along its lifecycle. Financial fields are left alone."""
    new = OrderStatus(new_status).value

    if not can_transition(order.status, new):
        raise InvalidStatusTransition(
            f"Cannot change order status from {order.status} to {new}"
        )

    old = order.status
    order.status = new
    order.updated_at = now or utc_now()

    if new == OrderStatus.paid.value:
        order.payment_status = "paid"
    elif new == OrderStatus.refunded.value:
        order.payment_status = "refunded"

    session.add(order)
    session.commit()
    session.refresh(order)

    logger.info(f"Order {order.order_number}: {old} -> {new}")
    return order
