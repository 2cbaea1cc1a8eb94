"""Category schemas."""
from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class CategoryBase(BaseModel):
    slug: str | None = Field(None, max_length=100)
    title: str | None = Field(None, max_length=200)
    description: str | None = None
    tags: list[str] | None = None
    color: str | None = None
    icon: str | None = None
    is_active: bool | None = None
    sort_order: int | None = None


class CategoryCreate(CategoryBase):
    title: str = Field(..., min_length=1, max_length=200)


class CategoryUpdate(CategoryBase):
    pass


class CategoryResponse(BaseModel):
    id: str
    slug: str
    title: str
    description: str | None
    tags: list[str] | None
    color: str
    icon: str
    is_active: bool
    sort_order: int
    created_at: datetime

    model_config = ConfigDict(from_attributes=True)
