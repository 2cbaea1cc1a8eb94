"""
Pydantic schemas for API request/response models.

These schemas define the structure of API data for serialization and validation.
"""

from .auth import LoginRequest, SessionResponse, SignUpRequest, TokenResponse
from .change_request import ChangeRequestResponse, ReviewRequest
from .comment import CommentCreate, CommentResponse
from .common import DeferredResponse, MessageResponse
from .post import PostCreate, PostResponse, PostUpdate
from .user import UserSummary

__all__ = [
    "LoginRequest", "SessionResponse", "SignUpRequest", "TokenResponse",
    "ChangeRequestResponse", "ReviewRequest",
    "CommentCreate", "CommentResponse",
    "DeferredResponse", "MessageResponse",
    "PostCreate", "PostResponse", "PostUpdate",
    "UserSummary",
]
