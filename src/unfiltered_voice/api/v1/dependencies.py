"""Shared FastAPI dependencies for version 1 endpoints."""

from __future__ import annotations

from typing import Annotated

from fastapi import BackgroundTasks, Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import (
    BackendFailure,
    ChangeRequestConflict,
    NotFound,
    PermissionDenied,
    ValidationFailure,
    VoiceError,
)
from unfiltered_voice.core.security import decode_access_token
from unfiltered_voice.core.settings import settings
from unfiltered_voice.db.session import get_db
from unfiltered_voice.models import User
from unfiltered_voice.services.mailer import get_mailer
from unfiltered_voice.services.notifications import dispatch_publish_notifications
from unfiltered_voice.services.posts import pop_published_posts
from unfiltered_voice.services.roles import RoleFlags, resolve_roles
from unfiltered_voice.services.site_settings import SettingsStore, get_settings_store

bearer_scheme = HTTPBearer()
optional_bearer_scheme = HTTPBearer(auto_error=False)

SessionDep = Annotated[Session, Depends(get_db)]


def _credentials_error() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail="Could not validate credentials",
        headers={"WWW-Authenticate": "Bearer"},
    )


def get_current_user(
    credentials: Annotated[HTTPAuthorizationCredentials, Depends(bearer_scheme)],
    db: SessionDep,
) -> User:
    """Get the current authenticated user from JWT token.

    Raises:
        HTTPException: If token is invalid or user not found
    """
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise _credentials_error()
    user = db.get(User, user_id)
    if user is None:
        raise _credentials_error()
    return user


def get_optional_user(
    credentials: Annotated[
        HTTPAuthorizationCredentials | None, Depends(optional_bearer_scheme)
    ],
    db: SessionDep,
) -> User | None:
    """Return the signed-in user, or None for anonymous callers."""
    if credentials is None:
        return None
    user_id = decode_access_token(credentials.credentials)
    if user_id is None:
        raise _credentials_error()
    return db.get(User, user_id)


CurrentUserDep = Annotated[User, Depends(get_current_user)]
OptionalUserDep = Annotated[User | None, Depends(get_optional_user)]


def get_current_roles(current_user: CurrentUserDep, db: SessionDep) -> RoleFlags:
    """Resolve role flags for the caller on every request."""
    return resolve_roles(db, current_user.id)


CurrentRolesDep = Annotated[RoleFlags, Depends(get_current_roles)]


def require_admin(roles: CurrentRolesDep) -> RoleFlags:
    if not roles.is_admin:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Admin access required",
        )
    return roles


def require_owner(roles: CurrentRolesDep) -> RoleFlags:
    if not roles.is_owner:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Owner access required",
        )
    return roles


AdminRolesDep = Annotated[RoleFlags, Depends(require_admin)]
OwnerRolesDep = Annotated[RoleFlags, Depends(require_owner)]


def get_settings_store_dep() -> SettingsStore:
    """Return the shared site settings store."""
    return get_settings_store()


SettingsStoreDep = Annotated[SettingsStore, Depends(get_settings_store_dep)]


_ERROR_STATUS: tuple[tuple[type[VoiceError], int], ...] = (
    (ValidationFailure, status.HTTP_400_BAD_REQUEST),
    (PermissionDenied, status.HTTP_403_FORBIDDEN),
    (NotFound, status.HTTP_404_NOT_FOUND),
    (ChangeRequestConflict, status.HTTP_409_CONFLICT),
    (BackendFailure, status.HTTP_500_INTERNAL_SERVER_ERROR),
)


def http_error(exc: VoiceError) -> HTTPException:
    """Translate a domain error into the matching HTTP response."""
    for error_type, status_code in _ERROR_STATUS:
        if isinstance(exc, error_type):
            return HTTPException(status_code=status_code, detail=str(exc))
    return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))


def schedule_publish_notifications(db: Session, background: BackgroundTasks) -> None:
    """Queue new-post mail for posts that became published during this request."""
    post_ids = pop_published_posts(db)
    if post_ids and settings.notify_on_publish and get_mailer().enabled:
        background.add_task(dispatch_publish_notifications, post_ids)
