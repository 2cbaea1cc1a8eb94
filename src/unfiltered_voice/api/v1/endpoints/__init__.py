"""API endpoint modules for version 1."""

from .admin import router as admin_router
from .admin_posts import router as admin_posts_router
from .admin_users import router as admin_users_router
from .auth import router as auth_router
from .change_requests import router as change_requests_router
from .comments import router as comments_router
from .contact import router as contact_router
from .content import router as content_router
from .posts import router as posts_router
from .users import router as users_router

__all__ = [
    "admin_router",
    "admin_posts_router",
    "admin_users_router",
    "auth_router",
    "change_requests_router",
    "comments_router",
    "contact_router",
    "content_router",
    "posts_router",
    "users_router",
]
