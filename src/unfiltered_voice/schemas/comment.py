"""Comment-related Pydantic schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CommentCreate(BaseModel):
    """Schema for leaving a comment; the name is used only when signed out."""

    post_id: str
    message: str = Field(..., min_length=1, max_length=5000)
    display_name: str | None = Field(None, max_length=200)
    parent_id: str | None = None


class CommentModeration(BaseModel):
    is_approved: bool


class CommentResponse(BaseModel):
    id: str
    post_id: str
    parent_id: str | None
    display_name: str
    message: str
    is_approved: bool
    is_anonymous: bool
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
