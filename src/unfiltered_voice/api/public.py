"""Crawler and integration endpoints served outside the versioned API."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import Any

from fastapi import APIRouter, Request, status
from fastapi.responses import JSONResponse, Response
from sqlalchemy.exc import SQLAlchemyError

from unfiltered_voice.api.v1.dependencies import SessionDep
from unfiltered_voice.core.settings import settings
from unfiltered_voice.services.feeds import build_rss, build_sitemap
from unfiltered_voice.services.site_settings import list_settings

logger = logging.getLogger(__name__)

router = APIRouter(tags=["public"])

_SETTINGS_CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
    "Access-Control-Allow-Headers": "Content-Type",
}


def _cache_control() -> str:
    seconds = settings.feed_cache_seconds
    return f"public, max-age={seconds}, s-maxage={seconds}"


@router.get("/rss.xml", include_in_schema=False)
async def rss_feed(db: SessionDep) -> Response:
    """RSS 2.0 feed of the newest published posts."""
    return Response(
        content=build_rss(db),
        media_type="application/rss+xml",
        headers={"Cache-Control": _cache_control()},
    )


@router.get("/sitemap.xml", include_in_schema=False)
async def sitemap(db: SessionDep) -> Response:
    return Response(
        content=build_sitemap(db),
        media_type="application/xml",
        headers={"Cache-Control": _cache_control()},
    )


@router.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {
        "status": "ok",
        "timestamp": datetime.now(UTC).isoformat(),
        "service": settings.app_name,
    }


@router.api_route(
    "/api/settings",
    methods=["GET", "OPTIONS", "POST", "PUT", "PATCH", "DELETE"],
)
async def public_settings(request: Request, db: SessionDep) -> Response:
    """Expose site settings to third-party consumers."""
    if request.method == "OPTIONS":
        return Response(status_code=status.HTTP_200_OK, headers=_SETTINGS_CORS_HEADERS)
    if request.method != "GET":
        return JSONResponse(
            {"error": "Method not allowed"},
            status_code=status.HTTP_405_METHOD_NOT_ALLOWED,
            headers=_SETTINGS_CORS_HEADERS,
        )

    try:
        rows = list_settings(db)
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to fetch settings: %s", exc)
        return JSONResponse(
            {"error": "Failed to fetch settings", "details": str(exc)},
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            headers=_SETTINGS_CORS_HEADERS,
        )

    data: list[dict[str, Any]] = [{"key": row.key, "value": row.value} for row in rows]
    return JSONResponse({"success": True, "data": data}, headers=_SETTINGS_CORS_HEADERS)
