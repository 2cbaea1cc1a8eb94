"""Category presentation metadata management."""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import BackendFailure, NotFound, ValidationFailure
from unfiltered_voice.models import Category
from unfiltered_voice.models._ids import new_id
from unfiltered_voice.services.posts import generate_slug
from unfiltered_voice.services.realtime import (
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    record_change,
)

logger = logging.getLogger(__name__)

TOPIC = "categories"
_EDITABLE = ("slug", "title", "description", "tags", "color", "icon", "is_active", "sort_order")


def _commit(db: Session, description: str) -> None:
    try:
        db.commit()
    except IntegrityError as exc:
        db.rollback()
        raise ValidationFailure("A category with this slug already exists") from exc
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", description, exc)
        raise BackendFailure(f"Failed to {description}") from exc


def list_categories(db: Session, include_inactive: bool = False) -> Sequence[Category]:
    stmt = select(Category)
    if not include_inactive:
        stmt = stmt.where(Category.is_active.is_(True))
    return db.scalars(stmt.order_by(Category.sort_order, Category.title)).all()


def get_category(db: Session, category_id: str) -> Category:
    category = db.get(Category, category_id)
    if category is None:
        raise NotFound(f"Category {category_id} not found")
    return category


def _apply(category: Category, data: Mapping[str, Any]) -> None:
    for key in _EDITABLE:
        if key in data:
            setattr(category, key, data[key])
    if not (category.title or "").strip():
        raise ValidationFailure("Category title is required")
    category.slug = generate_slug(category.slug or category.title)
    if not category.slug:
        raise ValidationFailure("Category slug cannot be empty")


def create_category(db: Session, data: Mapping[str, Any]) -> Category:
    category = Category(id=new_id())
    _apply(category, data)
    db.add(category)
    record_change(db, TOPIC, EVENT_INSERT, category.id)
    _commit(db, "create category")
    return category


def update_category(db: Session, category_id: str, data: Mapping[str, Any]) -> Category:
    category = get_category(db, category_id)
    try:
        _apply(category, data)
    except ValidationFailure:
        db.rollback()
        raise
    record_change(db, TOPIC, EVENT_UPDATE, category_id)
    _commit(db, "update category")
    return category


def delete_category(db: Session, category_id: str) -> None:
    db.delete(get_category(db, category_id))
    record_change(db, TOPIC, EVENT_DELETE, category_id)
    _commit(db, "delete category")
