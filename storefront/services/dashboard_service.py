# storefront/services/dashboard_service.py
from datetime import datetime, time
from decimal import Decimal
from typing import Optional

from sqlmodel import Session, func, select

from storefront.models.order import Order, OrderStatus
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.utils.clock import utc_now

LOW_STOCK_LEVEL = 5

# orders that still need someone to act on them
OPEN_STATUSES = [
    OrderStatus.pending.value,
    OrderStatus.paid.value,
    OrderStatus.processing.value,
]


def dashboard_stats(session: Session, now: Optional[datetime] = None) -> dict:
    """Headline numbers for the admin dashboard. "Today" starts at UTC midnight."""
    start_of_day = datetime.combine((now or utc_now()).date(), time.min)

    today_sales = session.exec(
        select(func.sum(Order.total))
        .where(Order.created_at >= start_of_day)
    ).one()

    today_orders = session.exec(
        select(func.count(Order.id))
        .where(Order.created_at >= start_of_day)
    ).one()

    total_products = session.exec(select(func.count(Product.id))).one()

    low_stock = session.exec(
        select(func.count(Product.id))
        .where(Product.stock <= LOW_STOCK_LEVEL)
    ).one()

    pending_orders = session.exec(
        select(func.count(Order.id))
        .where(Order.status.in_(OPEN_STATUSES))
    ).one()

    customers = session.exec(
        select(func.count(User.id))
        .where(User.role == "user")
    ).one()

    return {
        "today_sales": today_sales or Decimal("0"),
        "today_orders": today_orders or 0,
        "total_products": total_products or 0,
        "low_stock_products": low_stock or 0,
        "pending_orders": pending_orders or 0,
        "total_customers": customers or 0,
    }


def recent_orders(session: Session, limit: int = 5) -> list:
    rows = session.exec(
        select(Order, User)
        .join(User, User.id == Order.user_id, isouter=True)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
    ).all()

    return [
        {
            "order_id": o.id,
            "order_number": o.order_number,
            "total": o.total,
            "status": o.status,
            "created_at": o.created_at,
            "customer_email": u.email if u else o.guest_email,
        }
        for o, u in rows
    ]


def best_sellers(session: Session, limit: int = 5) -> list:
    data = session.exec(
        select(
            OrderItem.product_id,
            OrderItem.product_name,
            func.sum(OrderItem.quantity).label("sold"),
            func.sum(OrderItem.total_price).label("revenue"),
        )
        .join(Order, Order.id == OrderItem.order_id)
        .where(Order.status != OrderStatus.cancelled.value)
        .group_by(OrderItem.product_id, OrderItem.product_name)
        .order_by(func.sum(OrderItem.quantity).desc())
        .limit(limit)
    ).all()

    return [
        {"product_id": pid, "name": name, "total_sold": sold, "revenue": revenue}
        for pid, name, sold, revenue in data
    ]
