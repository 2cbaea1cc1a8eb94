"""Typed site configuration backed by the ``site_settings`` table.

Rows hold arbitrary JSON. ``SiteConfig`` decodes the known keys, falling back
to the built-in default for any key that is missing, empty or of the wrong
shape, so a bad row never takes the site down.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from threading import Lock
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, ValidationInfo, field_validator
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import ValidationFailure
from unfiltered_voice.models import SiteSetting
from unfiltered_voice.services.realtime import (
    EVENT_INSERT,
    EVENT_UPDATE,
    ChangeEvent,
    ChangeFeed,
    record_change,
)
from unfiltered_voice.services.results import MutationResult

logger = logging.getLogger(__name__)

TOPIC = "site_settings"

DEFAULT_TYPING_QUOTES = [
    "Sometimes the most profound thoughts come in the quiet moments between chaos.",
    "Mental health isn't a destination, it's a journey with no final stop.",
    "In a world of filters, I choose to be unfiltered.",
    "Words have power. I choose to use mine wisely.",
    "Every story matters, including yours.",
]

DEFAULT_WORDS_TO_LIVE_BY = [
    "Be kind to yourself, you're doing better than you think.",
    "Your mental health is just as important as your physical health.",
    "It's okay to not be okay, but it's not okay to stay that way.",
    "Progress, not perfection.",
    "You are not your thoughts; you are the observer of your thoughts.",
]

_STRING_KEYS = (
    "site_name",
    "site_tagline",
    "hero_title",
    "hero_subtitle",
    "about_title",
    "about_description",
    "words_to_live_by_title",
    "footer_text",
    "contact_email",
    "social_instagram",
    "social_linkedin",
    "meta_description",
    "meta_keywords",
)
_LIST_KEYS = ("typing_quotes", "words_to_live_by")


def _is_text_list(value: Any) -> bool:
    return (
        isinstance(value, list)
        and bool(value)
        and all(isinstance(item, str) and item.strip() for item in value)
    )


class SiteConfig(BaseModel):
    """Decoded site configuration."""

    model_config = ConfigDict(frozen=True)

    site_name: str = "The Unfiltered Voice"
    site_tagline: str = "by Niyati Singhal"
    hero_title: str = "Welcome to my unfiltered world"
    hero_subtitle: str = (
        "Where thoughts flow freely, emotions run deep, and authenticity reigns "
        "supreme. This is my space to share the raw, unpolished truths of life."
    )
    typing_quotes: list[str] = Field(default_factory=lambda: list(DEFAULT_TYPING_QUOTES))
    about_title: str = "About The Voice"
    about_description: str = (
        "This blog is my sanctuary, a place where I can be completely honest about "
        "the human experience. Here, you'll find my thoughts on mental health, "
        "current events, creative expressions, and book reflections. No "
        "sugar-coating, no pretense, just authentic conversations about life."
    )
    words_to_live_by_title: str = "Words to Live By"
    words_to_live_by: list[str] = Field(default_factory=lambda: list(DEFAULT_WORDS_TO_LIVE_BY))
    footer_text: str = "Made with love and a lot of coffee"
    contact_email: str = "hello@niyatisinghal.com"
    social_instagram: str = "https://instagram.com"
    social_linkedin: str = "https://linkedin.com"
    meta_description: str = (
        "The Unfiltered Voice - Authentic thoughts on mental health, current affairs, "
        "creative writing, and book reflections by Niyati Singhal"
    )
    meta_keywords: str = (
        "mental health, blog, current affairs, creative writing, books, authentic, "
        "unfiltered, Niyati Singhal"
    )

    @field_validator(*_STRING_KEYS, mode="before")
    @classmethod
    def _string_or_default(cls, value: Any, info: ValidationInfo) -> Any:
        if isinstance(value, str) and value.strip():
            return value
        return cls.model_fields[info.field_name].get_default(call_default_factory=True)

    @field_validator(*_LIST_KEYS, mode="before")
    @classmethod
    def _list_or_default(cls, value: Any, info: ValidationInfo) -> Any:
        if _is_text_list(value):
            return value
        return cls.model_fields[info.field_name].get_default(call_default_factory=True)


def decode_site_config(values: Mapping[str, Any]) -> SiteConfig:
    """Build a ``SiteConfig`` from raw key/value rows, ignoring unknown keys."""
    return SiteConfig(**{key: value for key, value in values.items() if key in SiteConfig.model_fields})


def validate_setting_value(key: str, value: Any) -> None:
    """Reject values a known key could not decode.

    Raises:
        ValidationFailure: If ``value`` has the wrong shape for ``key``.
    """
    if key in _STRING_KEYS and not (isinstance(value, str) and value.strip()):
        raise ValidationFailure(f"Setting {key} must be a non-empty string")
    if key in _LIST_KEYS and not _is_text_list(value):
        raise ValidationFailure(f"Setting {key} must be a non-empty list of non-blank strings")


def list_settings(db: Session) -> Sequence[SiteSetting]:
    return db.scalars(select(SiteSetting).order_by(SiteSetting.key)).all()


def upsert_setting(
    db: Session,
    key: str,
    value: Any,
    category: str = "general",
    description: str | None = None,
) -> SiteSetting:
    """Insert or replace a setting within the current transaction."""
    row = db.get(SiteSetting, key)
    if row is None:
        row = SiteSetting(key=key, value=value, category=category, description=description)
        db.add(row)
        record_change(db, TOPIC, EVENT_INSERT, key)
    else:
        row.value = value
        if description is not None:
            row.description = description
        record_change(db, TOPIC, EVENT_UPDATE, key)
    db.flush()
    return row


ConfigListener = Callable[[SiteConfig], None]


class SettingsStore:
    """Process-wide cache of the decoded site configuration.

    The cache only changes after a committed write or a successful reload;
    failures keep the previous snapshot.
    """

    def __init__(self) -> None:
        self._config = SiteConfig()
        self._listeners: list[ConfigListener] = []
        self._lock = Lock()
        self._stale = True

    @property
    def current(self) -> SiteConfig:
        return self._config

    def subscribe(self, listener: ConfigListener) -> Callable[[], None]:
        """Call ``listener`` with each new configuration; returns an unsubscribe handle."""
        with self._lock:
            self._listeners.append(listener)

        def _unsubscribe() -> None:
            with self._lock:
                if listener in self._listeners:
                    self._listeners.remove(listener)

        return _unsubscribe

    def attach(self, feed: ChangeFeed) -> Callable[[], None]:
        """Reload lazily whenever another writer touches ``site_settings``."""
        return feed.subscribe(TOPIC, self._on_change)

    def _on_change(self, _event: ChangeEvent) -> None:
        self._stale = True

    def _set(self, config: SiteConfig) -> None:
        with self._lock:
            changed = config != self._config
            self._config = config
            self._stale = False
            listeners = list(self._listeners)
        if changed:
            for listener in listeners:
                try:
                    listener(config)
                except Exception:
                    logger.exception("Settings listener failed")

    def load(self, db: Session) -> SiteConfig:
        """Read every row and replace the cache, keeping it on failure."""
        try:
            rows = list_settings(db)
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to load site settings, keeping previous values: %s", exc)
            return self._config
        self._set(decode_site_config({row.key: row.value for row in rows}))
        return self._config

    def refresh(self, db: Session) -> SiteConfig:
        self._stale = True
        return self.get(db)

    def get(self, db: Session) -> SiteConfig:
        """Return the cached config, reloading first if it may be out of date."""
        if self._stale:
            return self.load(db)
        return self._config

    def update_many(self, db: Session, values: Mapping[str, Any]) -> MutationResult[SiteConfig]:
        """Persist several settings at once, updating the cache only on commit."""
        for key, value in values.items():
            validate_setting_value(key, value)

        previous = self._config
        try:
            for key, value in values.items():
                upsert_setting(db, key, value)
            db.commit()
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("Failed to save site settings: %s", exc)
            return MutationResult.failure("Failed to save settings", previous)

        known = {key: value for key, value in values.items() if key in SiteConfig.model_fields}
        self._set(decode_site_config({**previous.model_dump(), **known}))
        logger.info("Updated site settings: %s", ", ".join(sorted(values)))
        return MutationResult.success(self._config, previous)

    def update(self, db: Session, key: str, value: Any) -> MutationResult[SiteConfig]:
        return self.update_many(db, {key: value})


class _SettingsStoreSingleton:
    """Singleton wrapper for SettingsStore."""

    _instance: SettingsStore | None = None

    @classmethod
    def get_instance(cls) -> SettingsStore:
        if cls._instance is None:
            cls._instance = SettingsStore()
        return cls._instance


def get_settings_store() -> SettingsStore:
    """Return the process-wide settings store."""
    return _SettingsStoreSingleton.get_instance()
