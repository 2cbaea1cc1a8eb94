"""About-page schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel


class AboutUpdate(BaseModel):
    title: str | None = None
    subtitle: str | None = None
    bio: str | None = None
    profile_image_url: str | None = None
    cover_image_url: str | None = None
    interests: list[str] | None = None
    social_links: dict[str, Any] | None = None
    fun_facts: list[str] | None = None
    favorite_quote: str | None = None
    quote_author: str | None = None


class AboutResponse(AboutUpdate):
    id: str
    title: str
    updated_at: datetime | None = None
