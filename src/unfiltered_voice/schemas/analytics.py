"""Admin dashboard schemas."""
from __future__ import annotations

from datetime import datetime
from typing import Literal

from pydantic import BaseModel


class CategoryStat(BaseModel):
    category: str
    slug: str
    count: int


class ActivityItem(BaseModel):
    type: Literal["post", "comment", "user"]
    title: str
    date: datetime
    status: str | None = None


class MonthlyStat(BaseModel):
    month: str
    posts: int
    comments: int


class AnalyticsResponse(BaseModel):
    total_posts: int
    published_posts: int
    total_comments: int
    approved_comments: int
    total_users: int
    subscribers: int
    category_stats: list[CategoryStat]
    recent_activity: list[ActivityItem]
    monthly_stats: list[MonthlyStat]
