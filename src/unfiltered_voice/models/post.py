"""SQLAlchemy models for blog posts and their audit trail."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    DateTime,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column

from unfiltered_voice.db.session import Base
from unfiltered_voice.db.time import utcnow

from ._ids import new_id

CATEGORY_LABELS: dict[str, str] = {
    "mental-health": "Mind Matters",
    "current-affairs": "News & Views",
    "creative-writing": "Bleeding Ink",
    "books": "Reading Reflections",
}
POST_CATEGORIES = tuple(CATEGORY_LABELS)

AUDIT_INSERT = "INSERT"
AUDIT_UPDATE = "UPDATE"
AUDIT_DELETE = "DELETE"


class Post(Base):
    """A blog post; text content takes precedence over an attached PDF."""

    __tablename__ = "posts"
    __table_args__ = (UniqueConstraint("category", "slug", name="uq_posts_category_slug"),)

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    title: Mapped[str] = mapped_column(String(500), nullable=False)
    category: Mapped[str] = mapped_column(String(64), nullable=False, index=True)
    slug: Mapped[str] = mapped_column(String(500), nullable=False)
    content: Mapped[str | None] = mapped_column(Text, nullable=True)
    excerpt: Mapped[str | None] = mapped_column(Text, nullable=True)
    pdf_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    cover_url: Mapped[str | None] = mapped_column(Text, nullable=True)
    read_time_min: Mapped[int] = mapped_column(Integer, nullable=False, default=1)
    is_published: Mapped[bool] = mapped_column(Boolean, nullable=False, default=False)
    uploaded_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    updated_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    # Stamped on the first transition to published.
    published_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))


class PostAuditLog(Base):
    """Append-only record of every direct or approved post mutation."""

    __tablename__ = "posts_audit_log"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    post_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    action: Mapped[str] = mapped_column(String(16), nullable=False)
    changed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    changed_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    old_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    new_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
