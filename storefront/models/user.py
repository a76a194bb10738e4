from sqlmodel import SQLModel, Field
from typing import Optional
from datetime import datetime
from storefront.utils.clock import utc_now


class User(SQLModel, table=True):
    id: Optional[int] = Field(default=None, primary_key=True)
    email: str = Field(index=True)
    full_name: Optional[str] = None
    phone: Optional[str] = None
    avatar_url: Optional[str] = None
    role: str = Field(default="user")  # "admin" | "user"
    can_login: bool = Field(default=True)
    created_at: datetime = Field(default_factory=utc_now)

    @property
    def is_admin(self) -> bool:
        return self.role == "admin"
