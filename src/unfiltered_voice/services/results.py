"""Result type for mutations whose local effects depend on backend success."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True)
class MutationResult(Generic[T]):
    """Outcome of a confirmed-or-reverted mutation.

    ``value`` is the confirmed state when ``ok`` is true. ``previous`` always
    carries the state prior to the attempt so callers can restore it.
    """

    ok: bool
    value: T | None = None
    previous: T | None = None
    error: str | None = None

    @classmethod
    def success(cls, value: T, previous: T | None = None) -> MutationResult[T]:
        return cls(ok=True, value=value, previous=previous)

    @classmethod
    def failure(cls, error: str, previous: T | None = None) -> MutationResult[T]:
        return cls(ok=False, previous=previous, error=error)
