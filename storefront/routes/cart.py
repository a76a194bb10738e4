from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
import logging
from storefront.database import get_session
from storefront.schemas.cart_schemas import CartQuoteRequest
from storefront.schemas.checkout_schemas import CartQuoteResponse
from storefront.schemas.coupon_schemas import normalize_code
from storefront.services.cart_service import load_cart
from storefront.services.coupon_service import check_coupon
from storefront.services.exceptions import CartError
from storefront.services.pricing_service import compute_quote, free_shipping_remaining
from storefront.services.settings_service import get_shipping_config

logger = logging.getLogger(__name__)

router = APIRouter()


# Cart summary: subtotal, discount, shipping, tax, total

@router.post("/quote", response_model=CartQuoteResponse)
def quote_cart(
    data: CartQuoteRequest,
    session: Session = Depends(get_session),
):
    coupon_result = None
    try:
        cart = load_cart(session, data.items)
        shipping = get_shipping_config(session)
        if data.coupon_code and data.coupon_code.strip():
            coupon_result = check_coupon(session, data.coupon_code, cart.subtotal)
    except CartError as e:
        raise HTTPException(400, str(e))
    except SQLAlchemyError:
        logger.exception("Cart quote failed")
        raise HTTPException(503, "Something went wrong, please try again")

    lines = cart.lines()
    coupon = coupon_result.coupon if coupon_result else None

    quote = compute_quote(lines, coupon, shipping)

    return CartQuoteResponse(
        quote=quote,
        coupon_code=normalize_code(data.coupon_code) if coupon_result else None,
        coupon_valid=coupon_result.ok if coupon_result else None,
        coupon_reason=coupon_result.rejection if coupon_result else None,
        coupon_message=coupon_result.message if coupon_result else None,
        free_shipping_remaining=free_shipping_remaining(quote.subtotal, shipping),
        item_count=cart.item_count,
    )
