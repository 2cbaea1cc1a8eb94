"""SQLAlchemy models for the Unfiltered Voice service."""

from .about import AboutContent
from .category import Category
from .change_request import ChangeRequest
from .comment import Comment
from .contact import ContactMessage
from .notification import EmailNotification
from .post import Post, PostAuditLog
from .site_setting import SiteSetting
from .user import Profile, User, UserRole

__all__ = [
    "AboutContent",
    "Category",
    "ChangeRequest",
    "Comment",
    "ContactMessage",
    "EmailNotification",
    "Post", "PostAuditLog",
    "SiteSetting",
    "Profile", "User", "UserRole",
]
