"""Main entry point for the Unfiltered Voice application."""

from __future__ import annotations

import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware

from unfiltered_voice.api.public import router as public_router
from unfiltered_voice.api.v1 import (
    admin_posts_router,
    admin_router,
    admin_users_router,
    auth_router,
    change_requests_router,
    comments_router,
    contact_router,
    content_router,
    posts_router,
    users_router,
)
from unfiltered_voice.core.log_config import configure_logging
from unfiltered_voice.core.settings import settings
from unfiltered_voice.services.mailer import get_mailer
from unfiltered_voice.services.realtime import get_change_feed
from unfiltered_voice.services.site_settings import get_settings_store

configure_logging(settings.log_level)
logger = logging.getLogger(__name__)

# Initialize FastAPI app
app = FastAPI(
    title="The Unfiltered Voice API",
    description="Personal blogging platform with owner-reviewed editorial changes",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(content_router, prefix="/api/v1")
app.include_router(contact_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(change_requests_router, prefix="/api/v1")
app.include_router(admin_router, prefix="/api/v1")
app.include_router(admin_posts_router, prefix="/api/v1")
app.include_router(admin_users_router, prefix="/api/v1")
app.include_router(public_router)


@app.on_event("startup")
async def on_startup() -> None:
    app.state.detach_settings = get_settings_store().attach(get_change_feed())
    logger.info("%s %s started", settings.app_name, settings.app_version)


@app.on_event("shutdown")
async def on_shutdown() -> None:
    detach = getattr(app.state, "detach_settings", None)
    if detach:
        detach()
    await get_mailer().close()


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("unfiltered_voice.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
