from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
import logging
from storefront.database import get_session
from storefront.schemas.coupon_schemas import CouponValidateRequest, CouponValidateResponse
from storefront.services.coupon_service import check_coupon

logger = logging.getLogger(__name__)

router = APIRouter()


# Apply coupon (cart page). A rejection is a normal 200 answer with valid=False.

@router.post("/validate", response_model=CouponValidateResponse)
def validate_coupon(
    body: CouponValidateRequest,
    session: Session = Depends(get_session),
):
    try:
        result = check_coupon(session, body.code, body.subtotal)
    except SQLAlchemyError:
        logger.exception("Coupon lookup failed")
        raise HTTPException(503, "Something went wrong, please try again")

    return CouponValidateResponse(
        valid=result.ok,
        reason=result.rejection,
        message=result.message,
        coupon=result.coupon,
    )
