"""Version 1 API endpoints."""

from .endpoints import (
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

__all__ = [
    "auth_router",
    "posts_router",
    "comments_router",
    "content_router",
    "contact_router",
    "users_router",
    "change_requests_router",
    "admin_router",
    "admin_posts_router",
    "admin_users_router",
]
