from sqlmodel import SQLModel, Field
from sqlalchemy import Column, JSON
from typing import Optional
from datetime import datetime
from storefront.utils.clock import utc_now


class SiteSetting(SQLModel, table=True):
    __tablename__ = "site_setting"

    id: Optional[int] = Field(default=None, primary_key=True)
    key: str = Field(index=True, unique=True)   # "shipping", "tax", ...
    value: Optional[dict] = Field(default=None, sa_column=Column(JSON))

    updated_at: datetime = Field(default_factory=utc_now)
