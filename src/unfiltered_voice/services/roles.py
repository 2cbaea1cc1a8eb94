"""Role resolution for authenticated principals."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.models import UserRole
from unfiltered_voice.models.user import ROLE_ADMIN, ROLE_OWNER, ROLE_USER

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RoleFlags:
    """Capabilities derived from a principal's role grants."""

    is_admin: bool = False
    is_owner: bool = False

    @property
    def role(self) -> str:
        """Return the highest role held."""
        if self.is_owner:
            return ROLE_OWNER
        if self.is_admin:
            return ROLE_ADMIN
        return ROLE_USER


NO_ROLES = RoleFlags()


def resolve_roles(db: Session, user_id: str | None) -> RoleFlags:
    """Return the role flags for ``user_id``.

    Owner implies admin. A missing principal or a failing role query both
    resolve to no privileges; the failure is logged rather than raised.
    """
    if not user_id:
        return NO_ROLES

    try:
        granted = set(
            db.scalars(
                select(UserRole.role).where(
                    UserRole.user_id == user_id,
                    UserRole.role.in_((ROLE_ADMIN, ROLE_OWNER)),
                )
            )
        )
    except SQLAlchemyError:
        logger.error("Role lookup failed for user %s", user_id, exc_info=True)
        db.rollback()
        return NO_ROLES

    has_owner = ROLE_OWNER in granted
    return RoleFlags(is_admin=has_owner or ROLE_ADMIN in granted, is_owner=has_owner)


def has_role(db: Session, user_id: str, role: str) -> bool:
    """Return True if ``user_id`` holds an explicit grant of ``role``."""
    return (
        db.scalar(
            select(UserRole.id).where(UserRole.user_id == user_id, UserRole.role == role)
        )
        is not None
    )


def is_owner(db: Session, user_id: str | None) -> bool:
    """Return True if ``user_id`` holds the owner role."""
    return resolve_roles(db, user_id).is_owner
