"""Site settings schemas."""
from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class SettingEntry(BaseModel):
    key: str
    value: Any


class SettingsUpdate(BaseModel):
    """Mapping of setting keys to their new JSON values."""

    values: dict[str, Any] = Field(..., min_length=1)
