# storefront/schemas/admin_settings_schemas.py
from decimal import Decimal
from typing import Any, Dict
from pydantic import BaseModel, ConfigDict, Field


class ShippingConfig(BaseModel):
    model_config = ConfigDict(frozen=True)

    base_price: Decimal = Field(ge=0, decimal_places=2)
    free_threshold: Decimal = Field(ge=0, decimal_places=2)   # 0 disables free shipping
    tax_percentage: Decimal = Field(ge=0, decimal_places=2)


class TaxSetting(BaseModel):
    rate: Decimal = Field(ge=0, decimal_places=2)


class SettingUpdate(BaseModel):
    value: Dict[str, Any]
