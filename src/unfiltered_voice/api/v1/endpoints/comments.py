"""Comment endpoints for the Unfiltered Voice API."""

from __future__ import annotations

from fastapi import APIRouter, Query, status

from unfiltered_voice.api.v1.dependencies import (
    AdminRolesDep,
    CurrentUserDep,
    OptionalUserDep,
    SessionDep,
    http_error,
)
from unfiltered_voice.core.errors import VoiceError
from unfiltered_voice.schemas.comment import CommentCreate, CommentModeration, CommentResponse
from unfiltered_voice.schemas.common import MessageResponse
from unfiltered_voice.services import comments as comment_service
from unfiltered_voice.services.gate import ResourceType, perform_direct_write

router = APIRouter(prefix="/comments", tags=["comments"])


@router.get("", response_model=list[CommentResponse])
async def list_comments(
    db: SessionDep,
    post_id: str = Query(..., description="Post whose comments to list"),
) -> list[CommentResponse]:
    """List approved comments for a post, oldest first."""
    return [
        CommentResponse.model_validate(comment)
        for comment in comment_service.list_approved_comments(db, post_id)
    ]


@router.post("", response_model=CommentResponse, status_code=status.HTTP_201_CREATED)
async def create_comment(
    payload: CommentCreate,
    db: SessionDep,
    current_user: OptionalUserDep,
) -> CommentResponse:
    """Leave a comment; callers without a session comment anonymously."""
    try:
        comment = comment_service.add_comment(
            db,
            post_id=payload.post_id,
            message=payload.message,
            user_id=current_user.id if current_user else None,
            display_name=payload.display_name,
            parent_id=payload.parent_id,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return CommentResponse.model_validate(comment)


@router.get("/all", response_model=list[CommentResponse])
async def list_all_comments(db: SessionDep, _roles: AdminRolesDep) -> list[CommentResponse]:
    """List comments across all posts for moderation."""
    return [
        CommentResponse.model_validate(comment)
        for comment in comment_service.list_all_comments(db)
    ]


@router.patch("/{comment_id}", response_model=CommentResponse)
async def moderate_comment(
    comment_id: str,
    payload: CommentModeration,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> CommentResponse:
    """Approve or hide a comment."""
    try:
        comment = perform_direct_write(
            db,
            ResourceType.COMMENT,
            lambda: comment_service.set_comment_approval(db, comment_id, payload.is_approved),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return CommentResponse.model_validate(comment)


@router.delete("/{comment_id}", response_model=MessageResponse)
async def delete_comment(
    comment_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> MessageResponse:
    try:
        perform_direct_write(
            db,
            ResourceType.COMMENT,
            lambda: comment_service.delete_comment(db, comment_id),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return MessageResponse(message="Comment deleted")
