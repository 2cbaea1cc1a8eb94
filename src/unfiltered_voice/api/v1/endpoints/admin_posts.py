"""Post authoring endpoints for admins and the owner.

Owners write directly. Admin writes are queued as change requests and
answered with ``202 Accepted``.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, BackgroundTasks, HTTPException, Query, Response, status
from sqlalchemy import select

from unfiltered_voice.api.v1.dependencies import (
    AdminRolesDep,
    CurrentUserDep,
    SessionDep,
    http_error,
    schedule_publish_notifications,
)
from unfiltered_voice.api.v1.endpoints.posts import to_post_response
from unfiltered_voice.core.errors import VoiceError
from unfiltered_voice.models import User
from unfiltered_voice.models._ids import new_id
from unfiltered_voice.models.change_request import (
    CHANGE_POST_CREATE,
    CHANGE_POST_DELETE,
    CHANGE_POST_EDIT,
)
from unfiltered_voice.schemas.common import DeferredResponse, MessageResponse
from unfiltered_voice.schemas.post import (
    AuditLogEntry,
    NotificationLogEntry,
    PostCreate,
    PostResponse,
    PostUpdate,
    PublishRequest,
)
from unfiltered_voice.services import notifications
from unfiltered_voice.services import posts as post_service
from unfiltered_voice.services.gate import GatedAction, ResourceType, perform_gated_action

router = APIRouter(prefix="/admin", tags=["admin", "posts"])


def _deferred(response: Response, change_request_id: str | None) -> DeferredResponse:
    response.status_code = status.HTTP_202_ACCEPTED
    return DeferredResponse(change_request_id=change_request_id or "")


@router.get("/posts", response_model=list[PostResponse])
async def list_all_posts(db: SessionDep, _roles: AdminRolesDep) -> list[PostResponse]:
    """List every post including drafts."""
    return [to_post_response(post) for post in post_service.list_all_posts(db)]


@router.post(
    "/posts",
    response_model=PostResponse | DeferredResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_post(
    payload: PostCreate,
    response: Response,
    background: BackgroundTasks,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> PostResponse | DeferredResponse:
    """Create a post, or propose it for review when the caller is an admin."""
    data = payload.model_dump(exclude_none=True)
    action = GatedAction(
        resource_type=ResourceType.POST,
        direct=lambda: post_service.create_post(db, data, current_user.id),
        change_type=CHANGE_POST_CREATE,
        target_id=new_id(),
        original_data=None,
        proposed_changes=data,
        summary=f"Create new post: {payload.title}",
    )
    try:
        post_service.prepare_post_payload(data)
        outcome = perform_gated_action(db, action, current_user.id, roles)
    except VoiceError as exc:
        raise http_error(exc) from exc

    if not outcome.applied:
        return _deferred(response, outcome.change_request_id)
    schedule_publish_notifications(db, background)
    return to_post_response(outcome.result)


@router.patch("/posts/{post_id}", response_model=PostResponse | DeferredResponse)
async def update_post(
    post_id: str,
    payload: PostUpdate,
    response: Response,
    background: BackgroundTasks,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> PostResponse | DeferredResponse:
    """Edit a post, or propose the edit for review when the caller is an admin."""
    changes = payload.model_dump(exclude_unset=True)
    try:
        post = post_service.get_post(db, post_id)
        post_service.prepare_post_payload(changes, existing=post)
        action = GatedAction(
            resource_type=ResourceType.POST,
            direct=lambda: post_service.update_post(db, post_id, changes, current_user.id),
            change_type=CHANGE_POST_EDIT,
            target_id=post_id,
            original_data=post_service.post_snapshot(post),
            proposed_changes=changes,
            summary=f"Edit post: {post.title}",
        )
        outcome = perform_gated_action(db, action, current_user.id, roles)
    except VoiceError as exc:
        raise http_error(exc) from exc

    if not outcome.applied:
        return _deferred(response, outcome.change_request_id)
    schedule_publish_notifications(db, background)
    return to_post_response(outcome.result)


@router.delete("/posts/{post_id}", response_model=MessageResponse | DeferredResponse)
async def delete_post(
    post_id: str,
    response: Response,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> MessageResponse | DeferredResponse:
    """Delete a post with its comments, or propose the deletion for review."""
    try:
        post = post_service.get_post(db, post_id)
        action = GatedAction(
            resource_type=ResourceType.POST,
            direct=lambda: post_service.delete_post(db, post_id, current_user.id),
            change_type=CHANGE_POST_DELETE,
            target_id=post_id,
            original_data=post_service.post_snapshot(post),
            proposed_changes={},
            summary=f"Delete post: {post.title}",
        )
        outcome = perform_gated_action(db, action, current_user.id, roles)
    except VoiceError as exc:
        raise http_error(exc) from exc

    if not outcome.applied:
        return _deferred(response, outcome.change_request_id)
    return MessageResponse(message="Post deleted")


@router.post("/posts/{post_id}/publish", response_model=PostResponse | DeferredResponse)
async def publish_post(
    post_id: str,
    payload: PublishRequest,
    response: Response,
    background: BackgroundTasks,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> PostResponse | DeferredResponse:
    """Toggle publication; the first publish notifies subscribers."""
    try:
        post = post_service.get_post(db, post_id)
        action = GatedAction(
            resource_type=ResourceType.POST,
            direct=lambda: post_service.set_published(
                db, post_id, payload.is_published, current_user.id
            ),
            change_type=CHANGE_POST_EDIT,
            target_id=post_id,
            original_data=post_service.post_snapshot(post),
            proposed_changes={"is_published": payload.is_published},
            summary=f"{'Publish' if payload.is_published else 'Unpublish'} post: {post.title}",
        )
        outcome = perform_gated_action(db, action, current_user.id, roles)
    except VoiceError as exc:
        raise http_error(exc) from exc

    if not outcome.applied:
        return _deferred(response, outcome.change_request_id)
    result = outcome.result
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error,
        )
    schedule_publish_notifications(db, background)
    return to_post_response(post_service.get_post(db, post_id))


@router.get("/posts/{post_id}/notifications", response_model=list[NotificationLogEntry])
async def post_notifications(
    post_id: str,
    db: SessionDep,
    _roles: AdminRolesDep,
) -> list[NotificationLogEntry]:
    """Return the mail notification history of a post."""
    return [
        NotificationLogEntry.model_validate(entry)
        for entry in notifications.notifications_for_post(db, post_id)
    ]


@router.get("/audit-log", response_model=list[AuditLogEntry])
async def audit_log(
    db: SessionDep,
    _roles: AdminRolesDep,
    post_id: str | None = Query(None),
    limit: int = Query(50, ge=1, le=500),
) -> list[AuditLogEntry]:
    """Return recent post mutations with the acting account's email."""
    entries = post_service.list_audit_log(db, post_id=post_id, limit=limit)
    actor_ids = {entry.changed_by for entry in entries if entry.changed_by}
    emails: dict[str, Any] = {}
    if actor_ids:
        emails = dict(db.execute(select(User.id, User.email).where(User.id.in_(actor_ids))).all())
    return [
        AuditLogEntry(
            id=entry.id,
            post_id=entry.post_id,
            action=entry.action,
            changed_by=entry.changed_by,
            changed_by_email=emails.get(entry.changed_by or "", "System"),
            changed_at=entry.changed_at,
            old_data=entry.old_data,
            new_data=entry.new_data,
        )
        for entry in entries
    ]
