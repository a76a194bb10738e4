# storefront/services/settings_service.py
from storefront.utils.clock import utc_now
from typing import Optional
import logging

from sqlmodel import Session, select

from storefront.config import settings
from storefront.models.site_setting import SiteSetting
from storefront.schemas.admin_settings_schemas import ShippingConfig, TaxSetting

logger = logging.getLogger(__name__)

SHIPPING_KEY = "shipping"
TAX_KEY = "tax"


def get_setting(session: Session, key: str) -> Optional[dict]:
    row = session.exec(select(SiteSetting).where(SiteSetting.key == key)).first()
    return row.value if row else None


def save_setting(session: Session, key: str, value: dict) -> SiteSetting:
    """Upsert one key/value setting and commit."""
    row = session.exec(select(SiteSetting).where(SiteSetting.key == key)).first()

    if not row:
        row = SiteSetting(key=key)

    row.value = value
    row.updated_at = utc_now()

    session.add(row)
    session.commit()
    session.refresh(row)

    logger.info(f"Setting {key!r} updated")
    return row


def build_shipping_config(shipping: Optional[dict], tax: Optional[dict]) -> ShippingConfig:
    """
    Parse raw ``shipping`` / ``tax`` settings into a ShippingConfig.

    The tax rate lives in ``shipping.tax_percentage``; older stores keep it
    in the separate ``tax.rate`` setting instead. Missing values fall back
    to the configured defaults. Bad values raise ValidationError.
    """
    shipping = shipping or {}

    tax_percentage = shipping.get("tax_percentage")
    if tax_percentage is None and tax:
        tax_percentage = TaxSetting.model_validate(tax).rate
    if tax_percentage is None:
        tax_percentage = settings.default_tax_percentage

    return ShippingConfig(
        base_price=shipping.get("base_price", settings.default_shipping_base_price),
        free_threshold=shipping.get("free_threshold", settings.default_free_shipping_threshold),
        tax_percentage=tax_percentage,
    )


def get_shipping_config(session: Session) -> ShippingConfig:
    return build_shipping_config(
        get_setting(session, SHIPPING_KEY),
        get_setting(session, TAX_KEY),
    )
