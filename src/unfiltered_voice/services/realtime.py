"""Row change notifications for keeping open clients and caches in sync.

Subscribers registered in-process are always called. When ``REDIS_URL`` is
configured every event is also published on ``{prefix}:{topic}`` so other
processes can follow the same stream.
"""

from __future__ import annotations

import json
import logging
from collections import defaultdict
from collections.abc import Callable
from dataclasses import asdict, dataclass
from threading import Lock
from typing import Any

import redis
from sqlalchemy import event as sa_event
from sqlalchemy.orm import Session

from unfiltered_voice.core.settings import settings

logger = logging.getLogger(__name__)

EVENT_INSERT = "INSERT"
EVENT_UPDATE = "UPDATE"
EVENT_DELETE = "DELETE"


@dataclass(frozen=True)
class ChangeEvent:
    """A single row mutation observed on a topic (table)."""

    topic: str
    event: str
    row_id: str | None


ChangeCallback = Callable[[ChangeEvent], None]


class ChangeFeed:
    """Publish/subscribe hub for row mutations."""

    def __init__(self, redis_url: str | None = None, channel_prefix: str = "voice") -> None:
        self._subscribers: dict[str, list[ChangeCallback]] = defaultdict(list)
        self._lock = Lock()
        self._channel_prefix = channel_prefix
        self._redis: Any | None = None
        if redis_url:
            self._redis = redis.from_url(redis_url)  # type: ignore[no-untyped-call]

    def subscribe(self, topic: str, callback: ChangeCallback) -> Callable[[], None]:
        """Register ``callback`` for ``topic`` and return an unsubscribe handle."""
        with self._lock:
            self._subscribers[topic].append(callback)

        def _unsubscribe() -> None:
            with self._lock:
                if callback in self._subscribers[topic]:
                    self._subscribers[topic].remove(callback)

        return _unsubscribe

    def publish(self, topic: str, event: str, row_id: str | None = None) -> None:
        """Notify subscribers of a committed mutation on ``topic``."""
        change = ChangeEvent(topic=topic, event=event, row_id=row_id)
        with self._lock:
            callbacks = list(self._subscribers.get(topic, ()))

        for callback in callbacks:
            try:
                callback(change)
            except Exception:
                logger.exception("Change subscriber failed for topic %s", topic)

        if self._redis is not None:
            channel = f"{self._channel_prefix}:{topic}"
            try:
                self._redis.publish(channel, json.dumps(asdict(change)))
            except redis.RedisError as exc:
                logger.warning("Failed to publish change on %s: %s", channel, exc)


class _ChangeFeedSingleton:
    """Singleton wrapper for ChangeFeed."""

    _instance: ChangeFeed | None = None

    @classmethod
    def get_instance(cls) -> ChangeFeed:
        """Get or create the process-wide ChangeFeed."""
        if cls._instance is None:
            cls._instance = ChangeFeed(
                redis_url=settings.redis_url,
                channel_prefix=settings.realtime_channel_prefix,
            )
        return cls._instance


def get_change_feed() -> ChangeFeed:
    """Return the process-wide change feed."""
    return _ChangeFeedSingleton.get_instance()


_PENDING_KEY = "pending_change_events"


def record_change(db: Session, topic: str, event: str, row_id: str | None = None) -> None:
    """Queue a change event to be published once ``db`` commits."""
    db.info.setdefault(_PENDING_KEY, []).append((topic, event, row_id))


@sa_event.listens_for(Session, "after_commit")
def _publish_pending(session: Session) -> None:
    pending = session.info.pop(_PENDING_KEY, [])
    if not pending:
        return
    feed = get_change_feed()
    for topic, event, row_id in pending:
        feed.publish(topic, event, row_id)


@sa_event.listens_for(Session, "after_soft_rollback")
def _discard_pending(session: Session, previous_transaction: Any) -> None:
    if previous_transaction.parent is None:
        session.info.pop(_PENDING_KEY, None)
