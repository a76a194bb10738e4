from fastapi import APIRouter
from sqlmodel import Session
from functools import lru_cache
import time


router=APIRouter()



CACHE_TTL = 60 * 60  # 60 minutes

def _ttl_bucket() -> int:
    """
    Changes every 60 minutes → forces cache refresh
    """
    return int(time.time() // CACHE_TTL)

@lru_cache(maxsize=8)
def _cached_shipping_config(bucket: int):
    from storefront.database import engine
    from storefront.services.settings_service import get_shipping_config

    with Session(engine) as session:
        return get_shipping_config(session).model_dump(mode="json")


def clear_settings_cache():
    _cached_shipping_config.cache_clear()


@router.get("/shipping", tags=["Public Settings"])
def get_shipping_settings():
    return _cached_shipping_config(_ttl_bucket())
