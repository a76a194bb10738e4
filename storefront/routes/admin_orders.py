# -------- ADMIN ORDERS --------
from datetime import date, datetime, time
from fastapi import APIRouter, Depends, Query, HTTPException
from sqlalchemy import String, or_
from sqlmodel import Session, select
from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.order import Order, OrderStatus
from storefront.models.order_item import OrderItem
from storefront.models.user import User
from storefront.schemas.orders_schemas import OrderStatusUpdate
from storefront.services.exceptions import InvalidStatusTransition
from storefront.services.order_service import update_order_status
from storefront.utils.pagination import paginate


router = APIRouter()


def _admin_row(row):
    o, u = row
    return {
        "order_id": o.id,
        "order_number": o.order_number,
        "customer": (u.full_name or u.email) if u else o.guest_email,
        "guest": o.user_id is None,
        "date": o.created_at.date(),
        "total_amount": o.total,
        "status": o.status,
        "payment_status": o.payment_status,
    }


@router.get("")
def list_orders(
    page: int = 1,
    limit: int = 10,
    search: str | None = None,
    status: OrderStatus | None = None,
    start_date: date | None = Query(None),
    end_date: date | None = Query(None),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin)
):
    # guests have no user row, hence the outer join
    query = select(Order, User).join(User, User.id == Order.user_id, isouter=True)

    if search:
        like = f"%{search}%"
        query = query.where(
            or_(
                Order.order_number.ilike(like),
                Order.guest_email.ilike(like),
                User.email.ilike(like),
                User.full_name.ilike(like),
                Order.id.cast(String).ilike(like),
            )
        )

    if status:
        query = query.where(Order.status == status.value)

    if start_date:
        query = query.where(Order.created_at >= datetime.combine(start_date, time.min))

    if end_date:
        query = query.where(Order.created_at <= datetime.combine(end_date, time.max))

    query = query.order_by(Order.created_at.desc(), Order.id.desc())

    return paginate(session=session, query=query, page=page, limit=limit, serialize=_admin_row)


@router.get("/{order_id}")
def order_details(
    order_id: int,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    return {"order": order, "items": items}


@router.patch("/{order_id}/status")
def change_order_status(
    order_id: int,
    payload: OrderStatusUpdate,
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    order = session.get(Order, order_id)
    if not order:
        raise HTTPException(status_code=404, detail="Order not found")

    try:
        order = update_order_status(session, order, payload.status)
    except InvalidStatusTransition as e:
        raise HTTPException(400, str(e))

    return {
        "message": "Order status updated",
        "order_id": order.id,
        "status": order.status,
        "payment_status": order.payment_status,
    }
