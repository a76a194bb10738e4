from typing import Optional
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from storefront.database import get_session
from storefront.models.user import User
from storefront.schemas.checkout_schemas import PlaceOrderRequest
from storefront.schemas.orders_schemas import PlaceOrderResponse, PlacedOrderItem
from storefront.services.checkout_service import place_order
from storefront.services.exceptions import CheckoutError
from storefront.utils.token import get_optional_user

router = APIRouter()


def _order_response(order, message: str) -> PlaceOrderResponse:
    return PlaceOrderResponse(
        order_id=order.id,
        order_number=order.order_number,
        status=order.status,
        message=message,
        items=[
            PlacedOrderItem(
                product_id=i.product_id,
                product_name=i.product_name,
                unit_price=i.unit_price,
                quantity=i.quantity,
                total_price=i.total_price,
            )
            for i in order.items
        ],
        subtotal=order.subtotal,
        discount_amount=order.discount_amount,
        shipping_amount=order.shipping_amount,
        tax_amount=order.tax_amount,
        total=order.total,
        created_at=order.created_at,
    )


# Place order (guest or signed in, cash on delivery)

@router.post("/place-order", response_model=PlaceOrderResponse)
def checkout_place_order(
    payload: PlaceOrderRequest,
    session: Session = Depends(get_session),
    current_user: Optional[User] = Depends(get_optional_user),
):
    try:
        order = place_order(session, payload, user=current_user)
    except CheckoutError as e:
        raise HTTPException(400, str(e))
    except SQLAlchemyError:
        # already rolled back and logged by place_order
        raise HTTPException(503, "Something went wrong, please try again")

    return _order_response(order, "Order placed successfully!")
