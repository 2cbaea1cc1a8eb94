"""Account lifecycle helpers: registration, profiles and role grants."""
from __future__ import annotations

import logging
from typing import Any

from sqlalchemy import delete, func, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core import security
from unfiltered_voice.core.errors import (
    BackendFailure,
    NotFound,
    PermissionDenied,
    ValidationFailure,
)
from unfiltered_voice.db.time import utcnow
from unfiltered_voice.models import Profile, User, UserRole
from unfiltered_voice.models.change_request import ROLE_ACTION_ADD, ROLE_ACTION_REMOVE
from unfiltered_voice.models.user import ROLE_ADMIN, ROLE_OWNER, ROLE_USER
from unfiltered_voice.services.comments import anonymize_user_comments
from unfiltered_voice.services.realtime import (
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    record_change,
)
from unfiltered_voice.services.roles import resolve_roles

logger = logging.getLogger(__name__)

__all__ = [
    "sign_up",
    "sign_in",
    "get_user",
    "user_summary",
    "get_all_users",
    "apply_role_change",
    "set_admin_role",
    "make_owner",
    "update_profile",
    "change_password",
    "unsubscribe",
    "resubscribe",
    "delete_user_account",
]

def _commit(db: Session, description: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", description, exc)
        raise BackendFailure(f"Failed to {description}") from exc


def sign_up(
    db: Session,
    email: str,
    password: str,
    confirm_password: str,
    display_name: str,
) -> User:
    """Register a new reader account with a profile and the base role.

    Raises:
        ValidationFailure: If the email, password policy or confirmation fail,
            or the email is already registered.
    """
    address = security.normalize_email(email)
    name = display_name.strip()
    if not name:
        raise ValidationFailure("Display name is required")
    if not security.is_password_strong(password):
        unmet = [item["label"] for item in security.check_password(password) if not item["met"]]
        raise ValidationFailure("Password does not meet requirements: " + ", ".join(unmet))
    if password != confirm_password:
        raise ValidationFailure("Passwords do not match")
    if db.scalar(select(User.id).where(func.lower(User.email) == address)) is not None:
        raise ValidationFailure("An account with this email already exists")

    user = User(email=address, password_hash=security.hash_password(password))
    user.profile = Profile(display_name=name, email=address, email_notifications_enabled=True)
    user.roles.append(UserRole(role=ROLE_USER))
    db.add(user)
    db.flush()
    record_change(db, "profiles", EVENT_INSERT, user.id)
    _commit(db, "create account")
    logger.info("Registered user %s", user.id)
    return user


def sign_in(db: Session, email: str, password: str) -> User:
    """Authenticate by email and password, stamping the sign-in time."""
    user = db.scalar(select(User).where(func.lower(User.email) == email.strip().lower()))
    if user is None or not security.verify_password(user.password_hash, password):
        raise PermissionDenied("Invalid email or password")
    user.last_sign_in_at = utcnow()
    _commit(db, "record sign-in")
    return user


def get_user(db: Session, user_id: str) -> User:
    user = db.get(User, user_id)
    if user is None:
        raise NotFound(f"User {user_id} not found")
    return user


def user_summary(db: Session, user: User) -> dict[str, Any]:
    """Return the administrative view of ``user``."""
    return {
        "id": user.id,
        "email": user.email,
        "display_name": user.profile.display_name if user.profile else None,
        "role": resolve_roles(db, user.id).role,
        "registered_at": user.created_at,
        "last_sign_in_at": user.last_sign_in_at,
        "email_confirmed_at": user.email_confirmed_at,
    }


def get_all_users(db: Session) -> list[dict[str, Any]]:
    """Return every account, newest registration first."""
    users = db.scalars(select(User).order_by(User.created_at.desc())).all()
    return [user_summary(db, user) for user in users]


def _grant(db: Session, user_id: str, role: str) -> None:
    exists = db.scalar(
        select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role)
    )
    if exists is None:
        db.add(UserRole(user_id=user_id, role=role))
        db.flush()
        record_change(db, "user_roles", EVENT_INSERT, user_id)


def _revoke(db: Session, user_id: str, role: str) -> None:
    result = db.execute(
        delete(UserRole).where(UserRole.user_id == user_id, UserRole.role == role)
    )
    if result.rowcount:
        record_change(db, "user_roles", EVENT_DELETE, user_id)


def apply_role_change(db: Session, user_id: str, action: str, role: str = ROLE_ADMIN) -> None:
    """Add or remove a role grant within the current transaction."""
    if role != ROLE_ADMIN:
        raise ValidationFailure(f"Role {role!r} cannot be changed this way")
    get_user(db, user_id)
    if action == ROLE_ACTION_ADD:
        _grant(db, user_id, role)
    elif action == ROLE_ACTION_REMOVE:
        _revoke(db, user_id, role)
    else:
        raise ValidationFailure(f"Unknown role action: {action!r}")


def set_admin_role(db: Session, actor_id: str, user_id: str, grant: bool) -> dict[str, Any]:
    """Grant or revoke the admin role and return the updated summary."""
    if actor_id == user_id:
        raise PermissionDenied("You cannot change your own role")
    apply_role_change(db, user_id, ROLE_ACTION_ADD if grant else ROLE_ACTION_REMOVE)
    _commit(db, "update user role")
    logger.info(
        "Admin role %s for %s by %s", "granted" if grant else "revoked", user_id, actor_id
    )
    return user_summary(db, get_user(db, user_id))


def make_owner(db: Session, actor_id: str, user_id: str) -> dict[str, Any]:
    """Grant the owner role; only an existing owner may do so."""
    if not resolve_roles(db, actor_id).is_owner:
        raise PermissionDenied("Only the owner can transfer ownership")
    if actor_id == user_id:
        raise ValidationFailure("You are already an owner")
    get_user(db, user_id)
    _grant(db, user_id, ROLE_OWNER)
    _grant(db, user_id, ROLE_ADMIN)
    _commit(db, "grant owner role")
    logger.warning("Owner role granted to %s by %s", user_id, actor_id)
    return user_summary(db, get_user(db, user_id))


def _profile(db: Session, user_id: str) -> Profile:
    profile = db.scalar(select(Profile).where(Profile.user_id == user_id))
    if profile is None:
        raise NotFound(f"Profile for user {user_id} not found")
    return profile


def update_profile(db: Session, user_id: str, display_name: str) -> Profile:
    name = display_name.strip()
    if not name:
        raise ValidationFailure("Display name is required")
    profile = _profile(db, user_id)
    profile.display_name = name
    record_change(db, "profiles", EVENT_UPDATE, user_id)
    _commit(db, "update profile")
    return profile


def change_password(db: Session, user_id: str, password: str, confirm_password: str) -> User:
    """Replace a user's password after the confirmation and strength checks.

    Raises:
        ValidationFailure: If the passwords differ or the new one is weak.
    """
    if password != confirm_password:
        raise ValidationFailure("Passwords do not match")
    if not security.is_password_strong(password):
        unmet = [item["label"] for item in security.check_password(password) if not item["met"]]
        raise ValidationFailure("Password does not meet requirements: " + ", ".join(unmet))
    user = get_user(db, user_id)
    user.password_hash = security.hash_password(password)
    _commit(db, "update password")
    logger.info("Changed password for user %s", user_id)
    return user


def _set_notifications(db: Session, user_id: str, enabled: bool) -> Profile:
    profile = _profile(db, user_id)
    profile.email_notifications_enabled = enabled
    record_change(db, "profiles", EVENT_UPDATE, user_id)
    _commit(db, "update notification preference")
    return profile


def unsubscribe(db: Session, user_id: str) -> Profile:
    """Stop new-post mail for a reader; staff always stay subscribed."""
    if resolve_roles(db, user_id).is_admin:
        raise PermissionDenied("Admins and owners cannot unsubscribe from notifications")
    return _set_notifications(db, user_id, False)


def resubscribe(db: Session, user_id: str) -> Profile:
    return _set_notifications(db, user_id, True)


def delete_user_account(db: Session, actor_id: str, user_id: str) -> bool:
    """Delete an account, keeping its comments under an anonymous name.

    The comment rewrite and the account removal commit together; a failure
    leaves both untouched.
    """
    if actor_id != user_id and not resolve_roles(db, actor_id).is_owner:
        raise PermissionDenied("You can only delete your own account")
    user = get_user(db, user_id)
    anonymize_user_comments(db, user_id)
    db.delete(user)
    record_change(db, "profiles", EVENT_DELETE, user_id)
    _commit(db, "delete account")
    logger.info("Deleted account %s", user_id)
    return True
