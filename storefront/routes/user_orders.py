from fastapi import APIRouter, Depends, HTTPException
from sqlmodel import Session, select
from storefront.database import get_session
from storefront.models.order import Order
from storefront.models.order_item import OrderItem
from storefront.models.user import User
from storefront.utils.pagination import paginate
from storefront.utils.token import get_current_user

router = APIRouter()


def _order_summary(o: Order):
    return {
        "order_id": o.id,
        "order_number": o.order_number,
        "status": o.status,
        "payment_status": o.payment_status,
        "total": o.total,
        "created_at": o.created_at,
    }


# Order history

@router.get("/my")
def my_orders(
    page: int = 1,
    limit: int = 10,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    query = (
        select(Order)
        .where(Order.user_id == current_user.id)
        .order_by(Order.created_at.desc(), Order.id.desc())
    )

    return paginate(
        session=session, query=query, page=page, limit=limit, serialize=_order_summary
    )


@router.get("/{order_id}")
def order_detail(
    order_id: int,
    session: Session = Depends(get_session),
    current_user: User = Depends(get_current_user)
):
    order = session.get(Order, order_id)

    if not order or order.user_id != current_user.id:
        raise HTTPException(404, "Order not found")

    items = session.exec(
        select(OrderItem).where(OrderItem.order_id == order.id)
    ).all()

    return {
        **_order_summary(order),
        "subtotal": order.subtotal,
        "discount_amount": order.discount_amount,
        "shipping_amount": order.shipping_amount,
        "tax_amount": order.tax_amount,
        "shipping_address": order.shipping_address,
        "payment_method": order.payment_method,
        "items": [
            {
                "product_id": i.product_id,
                "product_name": i.product_name,
                "product_image": i.product_image,
                "unit_price": i.unit_price,
                "quantity": i.quantity,
                "total_price": i.total_price,
            }
            for i in items
        ],
    }
