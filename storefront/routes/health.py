from fastapi import APIRouter, Depends
from sqlmodel import Session, text
from storefront.utils.clock import utc_now
import logging

from storefront.database import get_session

logger = logging.getLogger(__name__)

router = APIRouter()

@router.get("/check")
def health_check(session: Session = Depends(get_session)):
    db_status = "ok"

    try:
        session.exec(text("SELECT 1"))
    except Exception:
        logger.exception("Health check: database unreachable")
        db_status = "failed"

    return {
        "status": "ok" if db_status == "ok" else "degraded",
        "database": db_status,
        "timestamp": utc_now().isoformat()
    }
