"""Public post endpoints for the Unfiltered Voice API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Query, status

from unfiltered_voice.api.v1.dependencies import SessionDep, http_error
from unfiltered_voice.core.errors import NotFound
from unfiltered_voice.models import Post
from unfiltered_voice.models.post import CATEGORY_LABELS, POST_CATEGORIES
from unfiltered_voice.schemas.post import PostResponse
from unfiltered_voice.services import posts as post_service

router = APIRouter(prefix="/posts", tags=["posts"])


def to_post_response(post: Post) -> PostResponse:
    """Convert a Post ORM instance to an API schema."""
    return PostResponse(
        id=post.id,
        title=post.title,
        category=post.category,
        category_label=CATEGORY_LABELS.get(post.category, post.category),
        slug=post.slug,
        content=post.content,
        excerpt=post.excerpt,
        pdf_url=post.pdf_url,
        cover_url=post.cover_url,
        read_time_min=post.read_time_min,
        is_published=post.is_published,
        created_at=post.created_at,
        updated_at=post.updated_at,
        published_at=post.published_at,
    )


@router.get("", response_model=list[PostResponse])
async def list_posts(
    db: SessionDep,
    category: str | None = Query(None, description="Restrict to one category slug"),
    limit: int | None = Query(None, ge=1, le=200),
) -> list[PostResponse]:
    """List published posts, newest first."""
    if category is not None and category not in POST_CATEGORIES:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Unknown category")
    return [
        to_post_response(post)
        for post in post_service.list_published_posts(db, category=category, limit=limit)
    ]


@router.get("/latest", response_model=list[PostResponse])
async def latest_posts(
    db: SessionDep,
    limit: int = Query(3, ge=1, le=20),
) -> list[PostResponse]:
    """Return the most recent published posts for the home page."""
    return [to_post_response(post) for post in post_service.latest_published_posts(db, limit)]


@router.get("/{category}/{slug}", response_model=PostResponse)
async def get_post(category: str, slug: str, db: SessionDep) -> PostResponse:
    """Return one published post by its public address."""
    try:
        post = post_service.get_published_post(db, category, slug)
    except NotFound as exc:
        raise http_error(exc) from exc
    return to_post_response(post)
