"""Site settings and dashboard endpoints."""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, HTTPException, status

from unfiltered_voice.api.v1.dependencies import (
    AdminRolesDep,
    CurrentUserDep,
    SessionDep,
    SettingsStoreDep,
    http_error,
)
from unfiltered_voice.core.errors import VoiceError
from unfiltered_voice.schemas.analytics import AnalyticsResponse
from unfiltered_voice.schemas.settings import SettingEntry, SettingsUpdate
from unfiltered_voice.services import analytics
from unfiltered_voice.services.gate import ResourceType, perform_direct_write
from unfiltered_voice.services.site_settings import list_settings

router = APIRouter(prefix="/admin", tags=["admin"])


@router.get("/settings", response_model=list[SettingEntry])
async def read_settings(db: SessionDep, _roles: AdminRolesDep) -> list[SettingEntry]:
    """Return every stored setting row."""
    return [SettingEntry(key=row.key, value=row.value) for row in list_settings(db)]


@router.get("/settings/effective")
async def effective_settings(
    db: SessionDep,
    store: SettingsStoreDep,
    _roles: AdminRolesDep,
) -> dict[str, Any]:
    """Return the decoded configuration, defaults included."""
    return store.get(db).model_dump()


@router.put("/settings", response_model=list[SettingEntry])
async def save_settings(
    payload: SettingsUpdate,
    db: SessionDep,
    store: SettingsStoreDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> list[SettingEntry]:
    """Save several settings at once; the cache only changes on success."""
    try:
        result = perform_direct_write(
            db,
            ResourceType.SITE_SETTING,
            lambda: store.update_many(db, payload.values),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    if not result.ok:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail=result.error,
        )
    return [SettingEntry(key=row.key, value=row.value) for row in list_settings(db)]


@router.get("/analytics", response_model=AnalyticsResponse)
async def read_analytics(db: SessionDep, _roles: AdminRolesDep) -> AnalyticsResponse:
    return AnalyticsResponse.model_validate(analytics.build_analytics(db))
