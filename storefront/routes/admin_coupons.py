from storefront.utils.clock import utc_now
from typing import Optional
import logging

from fastapi import APIRouter, Depends, HTTPException, status
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from sqlmodel import Session, select

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.coupon import Coupon
from storefront.models.order import Order
from storefront.schemas.coupon_schemas import CouponCreate, CouponRecord, CouponUpdate
from storefront.utils.pagination import paginate

logger = logging.getLogger(__name__)

router = APIRouter()


def _code_taken(session: Session, code: str, exclude_id: Optional[int] = None) -> bool:
    query = select(Coupon).where(Coupon.code == code)
    if exclude_id is not None:
        query = query.where(Coupon.id != exclude_id)
    return session.exec(query).first() is not None


def _commit(session: Session, coupon: Coupon):
    try:
        session.commit()
    except IntegrityError:
        # unique index on code, lost a race with another admin
        session.rollback()
        raise HTTPException(status.HTTP_409_CONFLICT, "Coupon code already exists")
    session.refresh(coupon)


@router.get("")
def list_coupons(
    page: int = 1,
    limit: int = 20,
    search: str | None = None,
    active: bool | None = None,
    session: Session = Depends(get_session),
    admin = Depends(require_admin)
):
    query = select(Coupon)

    if search:
        query = query.where(Coupon.code.ilike(f"%{search}%"))

    if active is not None:
        query = query.where(Coupon.is_active == active)

    query = query.order_by(Coupon.created_at.desc(), Coupon.id.desc())

    return paginate(session=session, query=query, page=page, limit=limit)


@router.post("", status_code=status.HTTP_201_CREATED)
def create_coupon(
    data: CouponCreate,
    session: Session = Depends(get_session),
    admin = Depends(require_admin)
):
    if _code_taken(session, data.code):
        raise HTTPException(status.HTTP_409_CONFLICT, "Coupon code already exists")

    coupon = Coupon(**data.model_dump())
    session.add(coupon)
    _commit(session, coupon)

    logger.info(f"Coupon {coupon.code} created by admin {admin.id}")
    return coupon


@router.put("/{coupon_id}")
def update_coupon(
    coupon_id: int,
    data: CouponUpdate,
    session: Session = Depends(get_session),
    admin = Depends(require_admin)
):
    coupon = session.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(404, "Coupon not found")

    changes = data.model_dump(exclude_unset=True)

    if changes.get("code") and _code_taken(session, changes["code"], exclude_id=coupon.id):
        raise HTTPException(status.HTTP_409_CONFLICT, "Coupon code already exists")

    merged = {**CouponRecord.model_validate(coupon).model_dump(), **changes}
    try:
        # percentage range etc. are checked on the merged record
        CouponRecord.model_validate(merged)
    except ValidationError as e:
        raise HTTPException(422, e.errors(include_url=False, include_context=False, include_input=False))

    for field, value in changes.items():
        setattr(coupon, field, value)
    coupon.updated_at = utc_now()

    session.add(coupon)
    _commit(session, coupon)

    logger.info(f"Coupon {coupon.code} updated by admin {admin.id}")
    return coupon


@router.delete("/{coupon_id}")
def delete_coupon(
    coupon_id: int,
    session: Session = Depends(get_session),
    admin = Depends(require_admin)
):
    coupon = session.get(Coupon, coupon_id)
    if not coupon:
        raise HTTPException(404, "Coupon not found")

    # orders keep a reference to the coupon they used
    used = session.exec(select(Order.id).where(Order.coupon_id == coupon.id)).first()
    if used is not None:
        raise HTTPException(
            status.HTTP_409_CONFLICT,
            "Coupon has been used by orders; deactivate it instead"
        )

    session.delete(coupon)
    session.commit()

    logger.info(f"Coupon {coupon.code} deleted by admin {admin.id}")
    return {"message": "Coupon deleted"}
