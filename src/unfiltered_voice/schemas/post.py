"""Post-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, computed_field


class PostBase(BaseModel):
    title: str | None = Field(None, max_length=500)
    category: str | None = Field(None, description="One of the fixed category slugs")
    slug: str | None = Field(None, max_length=500, description="Derived from the title when omitted")
    content: str | None = None
    excerpt: str | None = None
    pdf_url: str | None = None
    cover_url: str | None = None
    is_published: bool | None = None


class PostCreate(PostBase):
    """Schema for creating a post."""

    title: str = Field(..., min_length=1, max_length=500)
    category: str
    is_published: bool = False


class PostUpdate(PostBase):
    """Partial update; only fields that are set are changed."""


class PublishRequest(BaseModel):
    is_published: bool


class PostResponse(BaseModel):
    """Schema for post responses."""

    id: str
    title: str
    category: str
    category_label: str
    slug: str
    content: str | None
    excerpt: str | None
    pdf_url: str | None
    cover_url: str | None
    read_time_min: int
    is_published: bool
    created_at: datetime
    updated_at: datetime | None
    published_at: datetime | None

    model_config = ConfigDict(from_attributes=True)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def content_type(self) -> str:
        """Text content takes precedence over an attached PDF."""
        return "text" if self.content else "pdf"


class AuditLogEntry(BaseModel):
    id: str
    post_id: str
    action: str
    changed_by: str | None
    changed_by_email: str
    changed_at: datetime
    old_data: dict[str, Any] | None
    new_data: dict[str, Any] | None


class NotificationLogEntry(BaseModel):
    id: str
    post_id: str
    notification_type: str
    recipients_count: int
    success_count: int
    failure_count: int
    sent_at: datetime

    model_config = ConfigDict(from_attributes=True)
