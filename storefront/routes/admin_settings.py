import logging

from fastapi import APIRouter, Depends, HTTPException
from pydantic import ValidationError
from sqlmodel import Session

from storefront.database import get_session
from storefront.dependencies.admin import require_admin
from storefront.routes.public_settings import clear_settings_cache
from storefront.schemas.admin_settings_schemas import SettingUpdate, ShippingConfig, TaxSetting
from storefront.services.settings_service import (
    SHIPPING_KEY,
    TAX_KEY,
    get_setting,
    get_shipping_config,
    save_setting,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# keys whose payload must parse before it is stored
_VALIDATED_KEYS = {
    SHIPPING_KEY: ShippingConfig,
    TAX_KEY: TaxSetting,
}


@router.get("/shipping")
def get_shipping_settings(
    session: Session = Depends(get_session),
    admin = Depends(require_admin)
):
    return {
        "effective": get_shipping_config(session).model_dump(mode="json"),
        "stored": get_setting(session, SHIPPING_KEY),
        "tax": get_setting(session, TAX_KEY),
    }


@router.put("/{key}")
def update_setting(
    key: str,
    payload: SettingUpdate,
    session: Session = Depends(get_session),
    admin = Depends(require_admin)
):
    value = payload.value

    schema = _VALIDATED_KEYS.get(key)
    if schema is not None:
        try:
            # stored as JSON, so Decimals go in as strings
            value = schema.model_validate(value).model_dump(mode="json")
        except ValidationError as e:
            raise HTTPException(
                422, e.errors(include_url=False, include_context=False, include_input=False)
            )

    setting = save_setting(session, key, value)
    clear_settings_cache()

    logger.info(f"Admin {admin.id} saved setting {key!r}")

    return {
        "message": "Settings updated",
        "key": setting.key,
        "value": setting.value,
        "updated_at": setting.updated_at,
    }
