"""Dashboard statistics for the admin console."""
from __future__ import annotations

from datetime import UTC, datetime
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from unfiltered_voice.models import Comment, Post, Profile
from unfiltered_voice.models.post import CATEGORY_LABELS
from unfiltered_voice.services.notifications import subscriber_emails

MONTHS = 6
RECENT_LIMIT = 10


def _aware(value: datetime) -> datetime:
    return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def _count(db: Session, stmt: Any) -> int:
    return int(db.scalar(stmt) or 0)


def _month_keys(now: datetime, months: int) -> list[tuple[int, int]]:
    keys = []
    year, month = now.year, now.month
    for _ in range(months):
        keys.append((year, month))
        month -= 1
        if month == 0:
            year, month = year - 1, 12
    return list(reversed(keys))


def _recent_activity(db: Session) -> list[dict[str, Any]]:
    activity: list[dict[str, Any]] = []
    for post in db.scalars(select(Post).order_by(Post.created_at.desc()).limit(5)):
        activity.append(
            {
                "type": "post",
                "title": post.title,
                "date": post.created_at,
                "status": "Published" if post.is_published else "Draft",
            }
        )
    for comment in db.scalars(select(Comment).order_by(Comment.created_at.desc()).limit(5)):
        activity.append(
            {
                "type": "comment",
                "title": f"Comment by {comment.display_name}",
                "date": comment.created_at,
                "status": "Approved" if comment.is_approved else "Pending",
            }
        )
    for profile in db.scalars(select(Profile).order_by(Profile.created_at.desc()).limit(3)):
        activity.append(
            {
                "type": "user",
                "title": f"New user: {profile.display_name}",
                "date": profile.created_at,
                "status": None,
            }
        )
    activity.sort(key=lambda item: _aware(item["date"]), reverse=True)
    return activity[:RECENT_LIMIT]


def build_analytics(db: Session, now: datetime | None = None) -> dict[str, Any]:
    """Return site totals, per-category counts, recent activity and monthly trends."""
    now = now or datetime.now(UTC)

    category_rows = db.execute(
        select(Post.category, func.count(Post.id)).group_by(Post.category).order_by(Post.category)
    ).all()

    post_dates = db.scalars(select(Post.created_at)).all()
    comment_dates = db.scalars(select(Comment.created_at)).all()
    monthly = []
    for year, month in _month_keys(now, MONTHS):
        monthly.append(
            {
                "month": datetime(year, month, 1).strftime("%b %Y"),
                "posts": sum(1 for d in post_dates if (d.year, d.month) == (year, month)),
                "comments": sum(1 for d in comment_dates if (d.year, d.month) == (year, month)),
            }
        )

    return {
        "total_posts": _count(db, select(func.count(Post.id))),
        "published_posts": _count(
            db, select(func.count(Post.id)).where(Post.is_published.is_(True))
        ),
        "total_comments": _count(db, select(func.count(Comment.id))),
        "approved_comments": _count(
            db, select(func.count(Comment.id)).where(Comment.is_approved.is_(True))
        ),
        "total_users": _count(db, select(func.count(Profile.id))),
        "subscribers": len(subscriber_emails(db)),
        "category_stats": [
            {"category": CATEGORY_LABELS.get(category, category), "slug": category, "count": count}
            for category, count in category_rows
        ],
        "recent_activity": _recent_activity(db),
        "monthly_stats": monthly,
    }
