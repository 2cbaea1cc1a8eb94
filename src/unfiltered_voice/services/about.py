"""About-page content stored as a single document row."""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import BackendFailure, ValidationFailure
from unfiltered_voice.models import AboutContent
from unfiltered_voice.models.about import ABOUT_ROW_ID
from unfiltered_voice.services.realtime import EVENT_INSERT, EVENT_UPDATE, record_change

logger = logging.getLogger(__name__)

TOPIC = "about_content"

DEFAULT_ABOUT: dict[str, Any] = {
    "title": "Meet Niyati",
    "subtitle": "The Voice Behind The Unfiltered Thoughts",
    "bio": (
        "Hey there! I'm Niyati, a passionate writer who believes in the power of "
        "authentic storytelling.\n\n"
        "This blog is my digital sanctuary where I share unfiltered thoughts about "
        "life, mental health, current affairs, and everything in between. I write "
        "not because I have all the answers, but because I believe in the beauty of "
        "questions and the journey of finding ourselves through words.\n\n"
        "When I'm not writing, you'll find me reading, exploring new coffee shops, "
        "or having deep conversations about life with friends. I believe that every "
        "story matters and every voice deserves to be heard."
    ),
    "profile_image_url": "/placeholder-profile.jpg",
    "cover_image_url": "/placeholder-cover.jpg",
    "interests": ["Writing", "Reading", "Mental Health Advocacy", "Coffee", "Photography", "Travel"],
    "social_links": {
        "email": "hello@theunfilteredvoice.com",
        "instagram": "@niyati_writes",
        "twitter": "@niyati_thoughts",
        "linkedin": "niyati-writer",
    },
    "fun_facts": [
        "I drink at least 3 cups of coffee a day",
        "I have read over 100 books this year",
        "I write my best pieces at 2 AM",
        "I collect vintage notebooks",
        "I believe pineapple belongs on pizza",
    ],
    "favorite_quote": (
        "The most important thing is to try and inspire people so that they can be "
        "great at whatever they want to do."
    ),
    "quote_author": "Kobe Bryant",
}

_FIELDS = tuple(DEFAULT_ABOUT)


def about_as_dict(row: AboutContent | None) -> dict[str, Any]:
    """Return the about document, using defaults when nothing is stored."""
    if row is None:
        return {"id": ABOUT_ROW_ID, **DEFAULT_ABOUT, "updated_at": None}
    data = {"id": row.id, "updated_at": row.updated_at}
    data.update({field: getattr(row, field) for field in _FIELDS})
    return data


def get_about(db: Session) -> dict[str, Any]:
    return about_as_dict(db.get(AboutContent, ABOUT_ROW_ID))


def save_about(db: Session, data: Mapping[str, Any]) -> dict[str, Any]:
    """Upsert the about document; omitted fields keep their stored value."""
    row = db.get(AboutContent, ABOUT_ROW_ID)
    event = EVENT_UPDATE
    if row is None:
        row = AboutContent(id=ABOUT_ROW_ID, **DEFAULT_ABOUT)
        db.add(row)
        event = EVENT_INSERT
    for field in _FIELDS:
        if field in data:
            setattr(row, field, data[field])
    if not (row.title or "").strip():
        db.rollback()
        raise ValidationFailure("Title is required")

    record_change(db, TOPIC, event, ABOUT_ROW_ID)
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to save about content: %s", exc)
        raise BackendFailure("Failed to save about content") from exc
    return about_as_dict(row)
