"""User-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class UserSummary(BaseModel):
    """Administrative view of an account."""

    id: str
    email: str
    display_name: str | None
    role: str
    registered_at: datetime
    last_sign_in_at: datetime | None
    email_confirmed_at: datetime | None


class ProfileResponse(BaseModel):
    user_id: str
    display_name: str
    email: str | None
    email_notifications_enabled: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)


class ProfileUpdate(BaseModel):
    display_name: str = Field(..., min_length=1, max_length=200)


class RoleUpdate(BaseModel):
    """Grant (true) or revoke (false) the admin role."""

    is_admin: bool


class PasswordChange(BaseModel):
    password: str = Field(..., min_length=1)
    confirm_password: str
