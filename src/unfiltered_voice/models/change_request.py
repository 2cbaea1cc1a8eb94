"""Model tracking proposed mutations awaiting owner review."""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import JSON, DateTime, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from unfiltered_voice.db.session import Base
from unfiltered_voice.db.time import utcnow

from ._ids import new_id

CHANGE_POST_EDIT = "post_edit"
CHANGE_POST_DELETE = "post_delete"
CHANGE_POST_CREATE = "post_create"
CHANGE_USER_ROLE = "user_role_change"
CHANGE_TYPES = (CHANGE_POST_EDIT, CHANGE_POST_DELETE, CHANGE_POST_CREATE, CHANGE_USER_ROLE)

STATUS_PENDING = "pending"
STATUS_APPROVED = "approved"
STATUS_REJECTED = "rejected"

ROLE_ACTION_ADD = "add_role"
ROLE_ACTION_REMOVE = "remove_role"


class ChangeRequest(Base):
    """State machine: pending -> approved | rejected, never reversed."""

    __tablename__ = "pending_changes"

    id: Mapped[str] = mapped_column(String(36), primary_key=True, default=new_id)
    change_type: Mapped[str] = mapped_column(String(32), nullable=False)
    # Freshly generated by the requester for post_create.
    target_id: Mapped[str] = mapped_column(String(36), nullable=False, index=True)
    requested_by: Mapped[str] = mapped_column(String(36), nullable=False)
    requested_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, default=utcnow
    )
    status: Mapped[str] = mapped_column(
        String(16), nullable=False, default=STATUS_PENDING, index=True
    )
    # Reviewer fields stay null while pending.
    reviewed_by: Mapped[str | None] = mapped_column(String(36), nullable=True)
    reviewed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True))
    review_notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    original_data: Mapped[dict[str, Any] | None] = mapped_column(JSON, nullable=True)
    proposed_changes: Mapped[dict[str, Any]] = mapped_column(JSON, nullable=False)
    change_summary: Mapped[str] = mapped_column(Text, nullable=False)
