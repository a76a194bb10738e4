# storefront/services/coupon_service.py
from datetime import datetime
from storefront.utils.clock import utc_now
from decimal import Decimal
from typing import Optional
import logging

from sqlalchemy import or_, update
from sqlmodel import Session, select

from storefront.config import settings
from storefront.models.coupon import Coupon
from storefront.schemas.coupon_schemas import (
    CouponRecord,
    CouponRejection,
    CouponValidation,
    normalize_code,
)
from storefront.services.exceptions import CouponRedemptionError

logger = logging.getLogger(__name__)


REJECTION_MESSAGES = {
    CouponRejection.not_found: "Invalid coupon code",
    CouponRejection.expired: "Coupon has expired",
    CouponRejection.usage_limit_reached: "Coupon usage limit reached",
}


def _reject(reason: CouponRejection, message: Optional[str] = None) -> CouponValidation:
    return CouponValidation(rejection=reason, message=message or REJECTION_MESSAGES[reason])


def validate_coupon(
    code: str,
    subtotal: Decimal,
    coupon: Optional[CouponRecord],
    now: datetime,
) -> CouponValidation:
    """
    Decide whether ``coupon`` may be applied to an order of ``subtotal``.

    Checks run in a fixed order and the first failure wins:
    not found / inactive, expired, usage limit reached, minimum not met.
    ``now`` is naive UTC, like the stored ``expires_at``.
    """
    if coupon is None or coupon.code != normalize_code(code) or not coupon.is_active:
        return _reject(CouponRejection.not_found)

    if coupon.expires_at is not None and now >= coupon.expires_at:
        return _reject(CouponRejection.expired)

    if coupon.max_uses is not None and coupon.used_count >= coupon.max_uses:
        return _reject(CouponRejection.usage_limit_reached)

    if subtotal < coupon.min_order_amount:
        return _reject(
            CouponRejection.minimum_not_met,
            f"Minimum order amount is {settings.currency_symbol}{coupon.min_order_amount:f}",
        )

    return CouponValidation(coupon=coupon, message=f"{coupon.code} applied")


def find_coupon(session: Session, code: str) -> Optional[CouponRecord]:
    row = session.exec(
        select(Coupon).where(Coupon.code == normalize_code(code))
    ).first()

    if not row:
        return None

    return CouponRecord.model_validate(row)


def check_coupon(
    session: Session,
    code: str,
    subtotal: Decimal,
    now: Optional[datetime] = None,
) -> CouponValidation:
    result = validate_coupon(
        code,
        subtotal,
        find_coupon(session, code),
        now or utc_now(),
    )

    if not result.ok:
        logger.info(f"Coupon {normalize_code(code)!r} rejected: {result.rejection.value}")

    return result


def redeem_coupon(session: Session, coupon_id: int) -> None:
    """
    Consume one use of a coupon inside the caller's transaction.

    The increment is a single conditional UPDATE, so two checkouts racing
    for the last use cannot both succeed. Does not commit.
    """
    result = session.exec(
        update(Coupon)
        .where(Coupon.id == coupon_id)
        .where(Coupon.is_active == True)  # noqa: E712
        .where(or_(Coupon.max_uses == None, Coupon.used_count < Coupon.max_uses))  # noqa: E711
        .values(used_count=Coupon.used_count + 1, updated_at=utc_now())
    )

    if result.rowcount != 1:
        logger.warning(f"Coupon {coupon_id} could not be redeemed")
        raise CouponRedemptionError("Coupon usage limit reached")

    logger.info(f"Coupon {coupon_id} redeemed")
