"""Post authoring, publishing and public queries."""
from __future__ import annotations

import logging
import math
import re
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import BackendFailure, NotFound, ValidationFailure
from unfiltered_voice.db.time import utcnow
from unfiltered_voice.models import Comment, Post, PostAuditLog
from unfiltered_voice.models._ids import new_id
from unfiltered_voice.models.post import (
    AUDIT_DELETE,
    AUDIT_INSERT,
    AUDIT_UPDATE,
    POST_CATEGORIES,
)
from unfiltered_voice.services.realtime import (
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    record_change,
)
from unfiltered_voice.services.results import MutationResult

logger = logging.getLogger(__name__)

__all__ = [
    "POST_FIELDS",
    "generate_slug",
    "estimate_read_time",
    "post_snapshot",
    "prepare_post_payload",
    "apply_post_create",
    "apply_post_update",
    "apply_post_delete",
    "create_post",
    "update_post",
    "delete_post",
    "set_published",
    "get_post",
    "pop_published_posts",
    "list_published_posts",
    "latest_published_posts",
    "get_published_post",
    "list_all_posts",
    "list_audit_log",
]

TOPIC = "posts"
WORDS_PER_MINUTE = 200

# Columns an author may set; everything else is maintained by the service.
POST_FIELDS = (
    "title",
    "category",
    "slug",
    "content",
    "excerpt",
    "pdf_url",
    "cover_url",
    "read_time_min",
    "is_published",
)

_PUBLISHED_KEY = "newly_published_posts"


def generate_slug(title: str) -> str:
    """Derive a URL slug from ``title``."""
    slug = title.lower()
    slug = re.sub(r"[^a-z0-9\s-]", "", slug)
    slug = re.sub(r"\s+", "-", slug)
    slug = re.sub(r"-+", "-", slug)
    return slug.strip("-")


def estimate_read_time(content: str | None) -> int:
    """Return whole minutes to read ``content``, never less than one."""
    words = len((content or "").split())
    return max(1, math.ceil(words / WORDS_PER_MINUTE))


def post_snapshot(post: Post) -> dict[str, Any]:
    """Return a JSON-serialisable copy of a post row."""
    data: dict[str, Any] = {"id": post.id}
    for field in POST_FIELDS:
        data[field] = getattr(post, field)
    for stamp in ("uploaded_at", "created_at", "updated_at", "published_at"):
        value = getattr(post, stamp)
        data[stamp] = value.isoformat() if value is not None else None
    return data


def _clean_text(value: Any) -> str | None:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def prepare_post_payload(
    data: Mapping[str, Any],
    existing: Post | None = None,
) -> dict[str, Any]:
    """Validate and normalise author input into column values.

    Unknown keys are ignored. When ``existing`` is given the input is treated
    as a partial update over that post.

    Raises:
        ValidationFailure: If the merged post would be invalid.
    """
    merged: dict[str, Any] = {}
    if existing is not None:
        merged = {field: getattr(existing, field) for field in POST_FIELDS}
    merged.update({key: value for key, value in data.items() if key in POST_FIELDS})

    title = _clean_text(merged.get("title"))
    if title is None:
        raise ValidationFailure("Title is required")

    category = merged.get("category")
    if category not in POST_CATEGORIES:
        raise ValidationFailure(f"Unknown category: {category!r}")

    content = _clean_text(merged.get("content"))
    pdf_url = _clean_text(merged.get("pdf_url"))
    if content is None and pdf_url is None:
        raise ValidationFailure("A post needs either text content or a PDF")

    raw_slug = merged.get("slug") if "slug" in data or existing is not None else None
    slug = generate_slug(raw_slug) if _clean_text(raw_slug) else generate_slug(title)
    if not slug:
        raise ValidationFailure("Title must contain at least one letter or digit")

    if content is not None:
        read_time = estimate_read_time(content)
    else:
        read_time = max(1, int(merged.get("read_time_min") or 1))

    return {
        "title": title,
        "category": category,
        "slug": slug,
        "content": content,
        "excerpt": _clean_text(merged.get("excerpt")),
        "pdf_url": pdf_url,
        "cover_url": _clean_text(merged.get("cover_url")),
        "read_time_min": read_time,
        "is_published": bool(merged.get("is_published")),
    }


def _ensure_slug_available(db: Session, category: str, slug: str, post_id: str | None) -> None:
    stmt = select(Post.id).where(Post.category == category, Post.slug == slug)
    if post_id is not None:
        stmt = stmt.where(Post.id != post_id)
    if db.scalar(stmt) is not None:
        raise ValidationFailure(f"A post with slug '{slug}' already exists in {category}")


def _mark_published(db: Session, post: Post, was_published: bool) -> None:
    if post.is_published and not was_published:
        if post.published_at is None:
            post.published_at = utcnow()
        db.info.setdefault(_PUBLISHED_KEY, []).append(post.id)


def pop_published_posts(db: Session) -> list[str]:
    """Return and clear the ids of posts that became published in this session."""
    return db.info.pop(_PUBLISHED_KEY, [])


def _audit(
    db: Session,
    post_id: str,
    action: str,
    actor_id: str | None,
    old: dict[str, Any] | None,
    new: dict[str, Any] | None,
) -> None:
    db.add(
        PostAuditLog(
            post_id=post_id,
            action=action,
            changed_by=actor_id,
            old_data=old,
            new_data=new,
        )
    )


def apply_post_create(
    db: Session,
    payload: Mapping[str, Any],
    actor_id: str | None,
    post_id: str | None = None,
) -> Post:
    """Insert a post within the current transaction without committing."""
    values = prepare_post_payload(payload)
    _ensure_slug_available(db, values["category"], values["slug"], None)
    post = Post(id=post_id or new_id(), **values)
    db.add(post)
    _mark_published(db, post, was_published=False)
    db.flush()
    _audit(db, post.id, AUDIT_INSERT, actor_id, None, post_snapshot(post))
    record_change(db, TOPIC, EVENT_INSERT, post.id)
    return post


def apply_post_update(
    db: Session,
    post: Post,
    changes: Mapping[str, Any],
    actor_id: str | None,
) -> Post:
    """Apply a partial update within the current transaction without committing."""
    before = post_snapshot(post)
    values = prepare_post_payload(changes, existing=post)
    _ensure_slug_available(db, values["category"], values["slug"], post.id)
    was_published = post.is_published
    for field, value in values.items():
        setattr(post, field, value)
    post.updated_at = utcnow()
    _mark_published(db, post, was_published)
    db.flush()
    _audit(db, post.id, AUDIT_UPDATE, actor_id, before, post_snapshot(post))
    record_change(db, TOPIC, EVENT_UPDATE, post.id)
    return post


def apply_post_delete(db: Session, post: Post, actor_id: str | None) -> None:
    """Delete a post and its comments within the current transaction."""
    before = post_snapshot(post)
    for comment in db.scalars(select(Comment).where(Comment.post_id == post.id)):
        db.delete(comment)
    db.delete(post)
    db.flush()
    _audit(db, before["id"], AUDIT_DELETE, actor_id, before, None)
    record_change(db, TOPIC, EVENT_DELETE, before["id"])


def _commit(db: Session, description: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", description, exc)
        raise BackendFailure(f"Failed to {description}") from exc


def get_post(db: Session, post_id: str) -> Post:
    """Return a post by id regardless of publication state."""
    post = db.get(Post, post_id)
    if post is None:
        raise NotFound(f"Post {post_id} not found")
    return post


def create_post(db: Session, payload: Mapping[str, Any], actor_id: str) -> Post:
    """Create and commit a post."""
    post = apply_post_create(db, payload, actor_id)
    _commit(db, "create post")
    logger.info("Post %s created by %s", post.id, actor_id)
    return post


def update_post(db: Session, post_id: str, changes: Mapping[str, Any], actor_id: str) -> Post:
    """Update and commit a post."""
    post = apply_post_update(db, get_post(db, post_id), changes, actor_id)
    _commit(db, "update post")
    logger.info("Post %s updated by %s", post_id, actor_id)
    return post


def delete_post(db: Session, post_id: str, actor_id: str) -> None:
    """Delete and commit a post together with its comments."""
    apply_post_delete(db, get_post(db, post_id), actor_id)
    _commit(db, "delete post")
    logger.info("Post %s deleted by %s", post_id, actor_id)


def set_published(
    db: Session,
    post_id: str,
    publish: bool,
    actor_id: str,
) -> MutationResult[dict[str, Any]]:
    """Flip the published flag, reporting the prior state if the write fails."""
    post = get_post(db, post_id)
    previous = post_snapshot(post)
    if post.is_published == publish:
        return MutationResult.success(previous, previous)

    try:
        apply_post_update(db, post, {"is_published": publish}, actor_id)
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        pop_published_posts(db)
        logger.error("Failed to toggle publication of post %s: %s", post_id, exc)
        return MutationResult.failure("Failed to update post status", previous)

    logger.info("Post %s %s by %s", post_id, "published" if publish else "unpublished", actor_id)
    return MutationResult.success(post_snapshot(post), previous)


def list_published_posts(
    db: Session,
    category: str | None = None,
    limit: int | None = None,
) -> Sequence[Post]:
    """Return published posts, newest first."""
    stmt = select(Post).where(Post.is_published.is_(True))
    if category is not None:
        stmt = stmt.where(Post.category == category)
    stmt = stmt.order_by(func.coalesce(Post.published_at, Post.created_at).desc())
    if limit is not None:
        stmt = stmt.limit(limit)
    return db.scalars(stmt).all()


def latest_published_posts(db: Session, limit: int = 3) -> Sequence[Post]:
    """Return the most recently created published posts."""
    stmt = (
        select(Post)
        .where(Post.is_published.is_(True))
        .order_by(Post.created_at.desc())
        .limit(limit)
    )
    return db.scalars(stmt).all()


def get_published_post(db: Session, category: str, slug: str) -> Post:
    """Return a single published post by its public address."""
    post = db.scalar(
        select(Post).where(
            Post.category == category,
            Post.slug == slug,
            Post.is_published.is_(True),
        )
    )
    if post is None:
        raise NotFound(f"Post {category}/{slug} not found")
    return post


def list_all_posts(db: Session) -> Sequence[Post]:
    """Return every post including drafts, newest first."""
    return db.scalars(select(Post).order_by(Post.created_at.desc())).all()


def list_audit_log(
    db: Session,
    post_id: str | None = None,
    limit: int = 100,
) -> Sequence[PostAuditLog]:
    """Return audit entries, newest first."""
    stmt = select(PostAuditLog)
    if post_id is not None:
        stmt = stmt.where(PostAuditLog.post_id == post_id)
    return db.scalars(stmt.order_by(PostAuditLog.changed_at.desc()).limit(limit)).all()
