from fastapi import APIRouter, Depends, Query
from sqlmodel import Session
from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.models.user import User
from storefront.services.dashboard_service import best_sellers, dashboard_stats, recent_orders


router = APIRouter()


@router.get("/stats")
def admin_dashboard_stats(
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return dashboard_stats(session)


@router.get("/recent-orders")
def admin_recent_orders(
    limit: int = Query(5, ge=1, le=50),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return recent_orders(session, limit)


@router.get("/best-sellers")
def admin_best_sellers(
    limit: int = Query(5, ge=1, le=50),
    session: Session = Depends(get_session),
    _: User = Depends(require_admin),
):
    return best_sellers(session, limit)
