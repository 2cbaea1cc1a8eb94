"""Contact-form schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, EmailStr, Field


class ContactCreate(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    email: EmailStr
    message: str = Field(..., min_length=1, max_length=10000)


class ContactFlagsUpdate(BaseModel):
    is_read: bool | None = None
    is_replied: bool | None = None


class ContactResponse(BaseModel):
    id: str
    name: str
    email: str
    message: str
    is_read: bool
    is_replied: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
