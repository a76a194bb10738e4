import secrets
import string
from datetime import datetime
from storefront.utils.clock import utc_now
from typing import Optional

_ALPHABET = string.ascii_uppercase + string.digits


def generate_order_number(now: Optional[datetime] = None) -> str:
    """ORD-YYYYMMDD-XXXXXX"""
    now = now or utc_now()
    suffix = "".join(secrets.choice(_ALPHABET) for _ in range(6))
    return f"ORD-{now:%Y%m%d}-{suffix}"
