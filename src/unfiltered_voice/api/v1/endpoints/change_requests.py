"""Change-request review endpoints."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, Query

from unfiltered_voice.api.v1.dependencies import (
    AdminRolesDep,
    CurrentUserDep,
    OwnerRolesDep,
    SessionDep,
    http_error,
    schedule_publish_notifications,
)
from unfiltered_voice.core.errors import VoiceError
from unfiltered_voice.models import ChangeRequest
from unfiltered_voice.schemas.change_request import (
    ChangeRequestResponse,
    ReviewRequest,
    ReviewResponse,
)
from unfiltered_voice.services import change_requests as change_service

router = APIRouter(prefix="/change-requests", tags=["change-requests"])


def _to_response(request: ChangeRequest, requester_name: str) -> ChangeRequestResponse:
    return ChangeRequestResponse(
        id=request.id,
        change_type=request.change_type,
        target_id=request.target_id,
        requested_by=request.requested_by,
        requester_name=requester_name,
        requested_at=request.requested_at,
        status=request.status,
        reviewed_by=request.reviewed_by,
        reviewed_at=request.reviewed_at,
        review_notes=request.review_notes,
        original_data=request.original_data,
        proposed_changes=request.proposed_changes,
        change_summary=request.change_summary,
    )


@router.get("", response_model=list[ChangeRequestResponse])
async def list_change_requests(
    db: SessionDep,
    _roles: AdminRolesDep,
    status_filter: str | None = Query(None, alias="status"),
) -> list[ChangeRequestResponse]:
    """List change requests newest first, optionally by status."""
    return [
        _to_response(request, name)
        for request, name in change_service.list_change_requests(db, status=status_filter)
    ]


@router.get("/{change_id}", response_model=ChangeRequestResponse)
async def get_change_request(
    change_id: str,
    db: SessionDep,
    _roles: AdminRolesDep,
) -> ChangeRequestResponse:
    try:
        request = change_service.get_change_request(db, change_id)
    except VoiceError as exc:
        raise http_error(exc) from exc
    return _to_response(request, change_service.requester_name(db, request.requested_by))


@router.post("/{change_id}/review", response_model=ReviewResponse)
async def review_change_request(
    change_id: str,
    payload: ReviewRequest,
    background: BackgroundTasks,
    db: SessionDep,
    current_user: CurrentUserDep,
    _roles: OwnerRolesDep,
) -> ReviewResponse:
    """Approve or reject a pending request; approval applies it atomically."""
    try:
        success = change_service.review_change_request(
            db, change_id, current_user.id, payload.action, payload.notes
        )
        request = change_service.get_change_request(db, change_id)
    except VoiceError as exc:
        raise http_error(exc) from exc
    schedule_publish_notifications(db, background)
    return ReviewResponse(success=success, status=request.status)
