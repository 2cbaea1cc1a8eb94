"""Change-request queue schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class ChangeRequestResponse(BaseModel):
    id: str
    change_type: str
    target_id: str
    requested_by: str
    requester_name: str
    requested_at: datetime
    status: str
    reviewed_by: str | None
    reviewed_at: datetime | None
    review_notes: str | None
    original_data: dict[str, Any] | None
    proposed_changes: dict[str, Any]
    change_summary: str

    model_config = ConfigDict(from_attributes=True)


class ReviewRequest(BaseModel):
    """Owner decision on a pending change."""

    action: Literal["approve", "reject"]
    notes: str | None = Field(None, max_length=2000)


class ReviewResponse(BaseModel):
    success: bool
    status: str
