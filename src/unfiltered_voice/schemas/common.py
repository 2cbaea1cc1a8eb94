"""Shared Pydantic schemas for common API elements."""
from __future__ import annotations

from pydantic import BaseModel, Field


class MessageResponse(BaseModel):
    """Plain acknowledgement returned by mutation endpoints."""

    message: str = Field(..., description="Human-readable outcome")


class DeferredResponse(BaseModel):
    """Returned with 202 when a write was queued for owner review."""

    status: str = Field("pending_review", description="Always 'pending_review'")
    change_request_id: str = Field(..., description="Identifier of the queued change request")
    message: str = Field(
        "Your change has been submitted for owner approval.",
        description="Human-readable outcome",
    )
