# storefront/services/checkout_service.py
from datetime import datetime
from storefront.utils.clock import utc_now
from typing import Optional
import logging

from sqlalchemy import update
from sqlmodel import Session

from storefront.models.order import Order, OrderStatus
from storefront.models.order_item import OrderItem
from storefront.models.product import Product
from storefront.models.user import User
from storefront.schemas.checkout_schemas import PlaceOrderRequest
from storefront.services.cart_service import Cart, load_cart
from storefront.services.coupon_service import check_coupon, redeem_coupon
from storefront.services.exceptions import CartError, CheckoutError
from storefront.services.pricing_service import compute_quote
from storefront.services.settings_service import get_shipping_config
from storefront.utils.order_number import generate_order_number

logger = logging.getLogger(__name__)


def _reduce_stock(session: Session, product_id: int, quantity: int) -> None:
    result = session.exec(
        update(Product)
        .where(Product.id == product_id)
        .where(Product.stock >= quantity)
        .values(stock=Product.stock - quantity, updated_at=utc_now())
    )
    if result.rowcount != 1:
        raise CheckoutError(f"Product {product_id} no longer has {quantity} in stock")


def _order_items(order: Order, cart: Cart) -> list:
    products = {p.id: p for p in cart.products()}
    items = []
    for line in cart.lines():
        product = products[line.product_id]
        items.append(OrderItem(
            order_id=order.id,
            product_id=line.product_id,
            product_name=product.name,
            product_image=product.image_url,
            quantity=line.quantity,
            unit_price=line.effective_unit_price,
            total_price=line.line_total,
        ))
    return items


def place_order(
    session: Session,
    request: PlaceOrderRequest,
    user: Optional[User] = None,
    now: Optional[datetime] = None,
) -> Order:
    """
    Turn a checkout request into a persisted order.

    Prices and stock come from the product table, never from the client.
    The order, its items, the coupon redemption and the stock reduction are
    committed together; any failure rolls all of them back.
    """
    now = now or utc_now()

    if not request.items:
        raise CheckoutError("Cart is empty")

    if user is None and not request.guest_email:
        raise CheckoutError("Email is required for guest checkout")

    try:
        cart = load_cart(session, request.items, strict=True)
        lines = cart.lines()

        coupon = None
        if request.coupon_code:
            result = check_coupon(session, request.coupon_code, cart.subtotal, now)
            if not result.ok:
                raise CheckoutError(result.message)
            coupon = result.coupon

        quote = compute_quote(lines, coupon, get_shipping_config(session))

        order = Order(
            order_number=generate_order_number(now),
            user_id=user.id if user else None,
            guest_email=None if user else request.guest_email,
            status=OrderStatus.pending.value,
            subtotal=quote.subtotal,
            discount_amount=quote.discount_amount,
            shipping_amount=quote.shipping_amount,
            tax_amount=quote.tax_amount,
            total=quote.total,
            coupon_id=coupon.id if coupon else None,
            shipping_address=request.address.model_dump(),
            payment_method="cod",
            payment_status="pending",
            notes=request.notes,
            created_at=now,
            updated_at=now,
        )
        session.add(order)
        session.flush()

        for item in _order_items(order, cart):
            session.add(item)

        if coupon:
            redeem_coupon(session, coupon.id)

        for line in lines:
            _reduce_stock(session, line.product_id, line.quantity)

        session.commit()
        session.refresh(order)

    except CartError as e:
        session.rollback()
        logger.warning(f"Checkout refused: {e}")
        raise CheckoutError(str(e)) from e
    except CheckoutError as e:
        session.rollback()
        logger.warning(f"Checkout refused: {e}")
        raise
    except Exception:
        session.rollback()
        logger.exception("Checkout failed")
        raise

    logger.info(
        f"Order {order.order_number} placed: total {order.total}, "
        f"{len(lines)} lines, coupon {coupon.code if coupon else None}"
    )
    return order
