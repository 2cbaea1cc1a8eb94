"""Owner-reviewed queue of proposed changes to gated resources.

A request moves ``pending -> approved`` or ``pending -> rejected`` exactly
once. Approval applies the proposal and records the decision in the same
transaction, so either both land or neither does.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import (
    BackendFailure,
    ChangeRequestConflict,
    NotFound,
    PermissionDenied,
    ValidationFailure,
    VoiceError,
)
from unfiltered_voice.db.time import utcnow
from unfiltered_voice.models import ChangeRequest, Post, Profile, User
from unfiltered_voice.models.change_request import (
    CHANGE_POST_CREATE,
    CHANGE_POST_DELETE,
    CHANGE_POST_EDIT,
    CHANGE_TYPES,
    CHANGE_USER_ROLE,
    ROLE_ACTION_ADD,
    ROLE_ACTION_REMOVE,
    STATUS_APPROVED,
    STATUS_PENDING,
    STATUS_REJECTED,
)
from unfiltered_voice.models.user import ROLE_ADMIN
from unfiltered_voice.services import accounts, posts
from unfiltered_voice.services.realtime import EVENT_INSERT, EVENT_UPDATE, record_change
from unfiltered_voice.services.roles import resolve_roles

logger = logging.getLogger(__name__)

__all__ = [
    "REVIEW_APPROVE",
    "REVIEW_REJECT",
    "submit_change_request",
    "review_change_request",
    "list_change_requests",
    "get_change_request",
    "requester_name",
]

TOPIC = "pending_changes"
REVIEW_APPROVE = "approve"
REVIEW_REJECT = "reject"
UNKNOWN_REQUESTER = "Unknown User"


def _validate_proposal(
    change_type: str,
    original_data: Mapping[str, Any] | None,
    proposed_changes: Mapping[str, Any],
) -> None:
    if change_type not in CHANGE_TYPES:
        raise ValidationFailure(f"Unknown change type: {change_type!r}")
    if change_type == CHANGE_POST_CREATE:
        if original_data is not None:
            raise ValidationFailure("A create proposal cannot carry original data")
        posts.prepare_post_payload(proposed_changes)
        return
    if original_data is None:
        raise ValidationFailure(f"{change_type} requires the original data")
    if change_type == CHANGE_POST_EDIT:
        if not any(key in posts.POST_FIELDS for key in proposed_changes):
            raise ValidationFailure("An edit proposal must change at least one field")
    elif change_type == CHANGE_USER_ROLE:
        if proposed_changes.get("action") not in (ROLE_ACTION_ADD, ROLE_ACTION_REMOVE):
            raise ValidationFailure("Role change must either add or remove a role")
        if proposed_changes.get("role", ROLE_ADMIN) != ROLE_ADMIN:
            raise ValidationFailure("Only the admin role can be proposed")


def submit_change_request(
    db: Session,
    requester_id: str,
    change_type: str,
    target_id: str,
    original_data: Mapping[str, Any] | None,
    proposed_changes: Mapping[str, Any],
    summary: str,
) -> str:
    """Queue a proposal for owner review and return its id.

    The target entity is not touched.

    Raises:
        PermissionDenied: If the requester is not an admin.
        ValidationFailure: If the proposal is malformed.
    """
    if not resolve_roles(db, requester_id).is_admin:
        raise PermissionDenied("Only admins can submit change requests")
    _validate_proposal(change_type, original_data, proposed_changes)

    request = ChangeRequest(
        change_type=change_type,
        target_id=target_id,
        requested_by=requester_id,
        status=STATUS_PENDING,
        original_data=dict(original_data) if original_data is not None else None,
        proposed_changes=dict(proposed_changes),
        change_summary=summary,
    )
    db.add(request)
    try:
        db.flush()
        record_change(db, TOPIC, EVENT_INSERT, request.id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to submit change request: %s", exc)
        raise BackendFailure("Failed to submit change request") from exc

    logger.info("Change request %s (%s) submitted by %s", request.id, change_type, requester_id)
    return request.id


def _current_post(db: Session, request: ChangeRequest) -> Post:
    post = db.get(Post, request.target_id)
    if post is None:
        raise ChangeRequestConflict(f"Post {request.target_id} no longer exists")
    return post


def _ensure_not_stale(request: ChangeRequest, post: Post) -> None:
    original = request.original_data or {}
    current = posts.post_snapshot(post)
    for field in request.proposed_changes:
        if field in posts.POST_FIELDS and field in original and original[field] != current[field]:
            raise ChangeRequestConflict(
                f"Post {post.id} changed since this request was made ({field})"
            )


def _apply(db: Session, request: ChangeRequest) -> None:
    proposed = request.proposed_changes
    if request.change_type == CHANGE_POST_EDIT:
        post = _current_post(db, request)
        _ensure_not_stale(request, post)
        posts.apply_post_update(db, post, proposed, request.requested_by)
    elif request.change_type == CHANGE_POST_DELETE:
        posts.apply_post_delete(db, _current_post(db, request), request.requested_by)
    elif request.change_type == CHANGE_POST_CREATE:
        if db.get(Post, request.target_id) is not None:
            raise ChangeRequestConflict(f"Post {request.target_id} already exists")
        posts.apply_post_create(db, proposed, request.requested_by, post_id=request.target_id)
    elif request.change_type == CHANGE_USER_ROLE:
        user_id = (request.original_data or {}).get("id") or request.target_id
        if db.get(User, user_id) is None:
            raise ChangeRequestConflict(f"User {user_id} no longer exists")
        accounts.apply_role_change(
            db,
            user_id,
            proposed.get("action", ""),
            proposed.get("role", ROLE_ADMIN),
        )
    else:
        raise ValidationFailure(f"Unknown change type: {request.change_type!r}")


def review_change_request(
    db: Session,
    change_id: str,
    reviewer_id: str,
    action: str,
    notes: str | None = None,
) -> bool:
    """Approve or reject a pending request.

    Raises:
        PermissionDenied: If the reviewer is not an owner.
        NotFound: If the request does not exist.
        ChangeRequestConflict: If the request is already resolved or its
            proposal no longer applies cleanly.
    """
    if action not in (REVIEW_APPROVE, REVIEW_REJECT):
        raise ValidationFailure(f"Unknown review action: {action!r}")
    if not resolve_roles(db, reviewer_id).is_owner:
        raise PermissionDenied("Only the owner can review change requests")

    request = db.get(ChangeRequest, change_id)
    if request is None:
        raise NotFound(f"Change request {change_id} not found")
    if request.status != STATUS_PENDING:
        raise ChangeRequestConflict(f"Change request {change_id} is already {request.status}")

    try:
        if action == REVIEW_APPROVE:
            _apply(db, request)
        # Guarded on status so a concurrent review cannot resolve it twice.
        result = db.execute(
            update(ChangeRequest)
            .where(ChangeRequest.id == change_id, ChangeRequest.status == STATUS_PENDING)
            .values(
                status=STATUS_APPROVED if action == REVIEW_APPROVE else STATUS_REJECTED,
                reviewed_by=reviewer_id,
                reviewed_at=utcnow(),
                review_notes=notes,
            )
        )
        if result.rowcount != 1:
            raise ChangeRequestConflict(f"Change request {change_id} was already reviewed")
        record_change(db, TOPIC, EVENT_UPDATE, change_id)
        db.commit()
    except VoiceError:
        db.rollback()
        posts.pop_published_posts(db)
        raise
    except SQLAlchemyError as exc:
        db.rollback()
        posts.pop_published_posts(db)
        logger.error("Failed to review change request %s: %s", change_id, exc)
        raise BackendFailure("Failed to review change request") from exc

    db.refresh(request)
    logger.info("Change request %s %sd by %s", change_id, action, reviewer_id)
    return True


def requester_name(db: Session, requester_id: str) -> str:
    name = db.scalar(select(Profile.display_name).where(Profile.user_id == requester_id))
    return name or UNKNOWN_REQUESTER


def list_change_requests(
    db: Session,
    status: str | None = None,
) -> list[tuple[ChangeRequest, str]]:
    """Return requests newest first, each paired with the requester's name."""
    stmt = select(ChangeRequest, Profile.display_name).outerjoin(
        Profile, Profile.user_id == ChangeRequest.requested_by
    )
    if status is not None:
        stmt = stmt.where(ChangeRequest.status == status)
    rows: Sequence[Any] = db.execute(stmt.order_by(ChangeRequest.requested_at.desc())).all()
    return [(request, name or UNKNOWN_REQUESTER) for request, name in rows]


def get_change_request(db: Session, change_id: str) -> ChangeRequest:
    request = db.get(ChangeRequest, change_id)
    if request is None:
        raise NotFound(f"Change request {change_id} not found")
    return request
