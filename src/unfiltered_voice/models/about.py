"""SQLAlchemy model for the single about-page document."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from unfiltered_voice.db.session import Base
from unfiltered_voice.db.time import utcnow

ABOUT_ROW_ID = "main"


class AboutContent(Base):
    """About-page content, stored as a single row keyed ``main``."""

    __tablename__ = "about_content"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=ABOUT_ROW_ID)
    title: Mapped[str] = mapped_column(String(200), nullable=False)
    subtitle: Mapped[str | None] = mapped_column(String(500))
    bio: Mapped[str | None] = mapped_column(Text)
    profile_image_url: Mapped[str | None] = mapped_column(Text)
    cover_image_url: Mapped[str | None] = mapped_column(Text)
    interests: Mapped[list[str] | None] = mapped_column(JSON)
    social_links: Mapped[dict[str, Any] | None] = mapped_column(JSON)
    fun_facts: Mapped[list[str] | None] = mapped_column(JSON)
    favorite_quote: Mapped[str | None] = mapped_column(Text)
    quote_author: Mapped[str | None] = mapped_column(String(200))
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow, onupdate=utcnow
    )
