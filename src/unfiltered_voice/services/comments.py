"""Reader comments and their moderation."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select, update
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import BackendFailure, NotFound, ValidationFailure
from unfiltered_voice.models import Comment, Post, Profile
from unfiltered_voice.models.comment import ANONYMOUS_NAME, DELETED_USER_NAME
from unfiltered_voice.services.realtime import (
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    record_change,
)

logger = logging.getLogger(__name__)

TOPIC = "comments"
MAX_MESSAGE_LENGTH = 5000


def _commit(db: Session, description: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", description, exc)
        raise BackendFailure(f"Failed to {description}") from exc


def add_comment(
    db: Session,
    post_id: str,
    message: str,
    user_id: str | None = None,
    display_name: str | None = None,
    parent_id: str | None = None,
) -> Comment:
    """Attach a comment to a published post.

    Signed-in readers comment under their profile name. Anyone else comments
    anonymously under the name they supply, or "Anonymous".
    """
    text = message.strip()
    if not text:
        raise ValidationFailure("Comment cannot be empty")
    if len(text) > MAX_MESSAGE_LENGTH:
        raise ValidationFailure("Comment is too long")

    post = db.get(Post, post_id)
    if post is None or not post.is_published:
        raise NotFound(f"Post {post_id} not found")
    if parent_id is not None:
        parent = db.get(Comment, parent_id)
        if parent is None or parent.post_id != post_id:
            raise ValidationFailure("Reply target does not belong to this post")

    if user_id is not None:
        profile_name = db.scalar(select(Profile.display_name).where(Profile.user_id == user_id))
        comment = Comment(
            post_id=post_id,
            parent_id=parent_id,
            user_id=user_id,
            display_name=profile_name or ANONYMOUS_NAME,
            message=text,
            is_anonymous=False,
        )
    else:
        comment = Comment(
            post_id=post_id,
            parent_id=parent_id,
            user_id=None,
            display_name=(display_name or "").strip() or ANONYMOUS_NAME,
            message=text,
            is_anonymous=True,
        )
    db.add(comment)
    db.flush()
    record_change(db, TOPIC, EVENT_INSERT, comment.id)
    _commit(db, "add comment")
    return comment


def list_approved_comments(db: Session, post_id: str) -> Sequence[Comment]:
    """Return visible comments for a post, oldest first."""
    stmt = (
        select(Comment)
        .where(Comment.post_id == post_id, Comment.is_approved.is_(True))
        .order_by(Comment.created_at.asc())
    )
    return db.scalars(stmt).all()


def list_all_comments(db: Session, limit: int = 200) -> Sequence[Comment]:
    """Return comments across all posts for moderation, newest first."""
    return db.scalars(select(Comment).order_by(Comment.created_at.desc()).limit(limit)).all()


def _get(db: Session, comment_id: str) -> Comment:
    comment = db.get(Comment, comment_id)
    if comment is None:
        raise NotFound(f"Comment {comment_id} not found")
    return comment


def set_comment_approval(db: Session, comment_id: str, approved: bool) -> Comment:
    comment = _get(db, comment_id)
    comment.is_approved = approved
    record_change(db, TOPIC, EVENT_UPDATE, comment_id)
    _commit(db, "moderate comment")
    return comment


def delete_comment(db: Session, comment_id: str) -> None:
    db.delete(_get(db, comment_id))
    record_change(db, TOPIC, EVENT_DELETE, comment_id)
    _commit(db, "delete comment")


def anonymize_user_comments(db: Session, user_id: str) -> int:
    """Detach a user's comments from their identity without committing.

    Message text and timestamps are preserved.
    """
    result = db.execute(
        update(Comment)
        .where(Comment.user_id == user_id)
        .values(user_id=None, display_name=DELETED_USER_NAME, is_anonymous=True)
        .execution_options(synchronize_session="fetch")
    )
    if result.rowcount:
        record_change(db, TOPIC, EVENT_UPDATE, None)
    return result.rowcount or 0
