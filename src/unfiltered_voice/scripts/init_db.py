"""Create tables, seed default site settings and bootstrap the first owner."""
from __future__ import annotations

import argparse
import sys

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from unfiltered_voice.core.log_config import configure_logging
from unfiltered_voice.core.settings import settings
from unfiltered_voice.db.session import SessionLocal, create_tables
from unfiltered_voice.models import SiteSetting, User, UserRole
from unfiltered_voice.models.user import ROLE_ADMIN, ROLE_OWNER
from unfiltered_voice.services.site_settings import SiteConfig, upsert_setting


def seed_settings(db: Session, overwrite: bool = False) -> int:
    """Write the default value of every known setting; returns rows written."""
    written = 0
    for key, value in SiteConfig().model_dump().items():
        if not overwrite and db.get(SiteSetting, key) is not None:
            continue
        upsert_setting(db, key, value, category="general")
        written += 1
    db.commit()
    return written


def bootstrap_owner(db: Session, email: str) -> str:
    """Grant owner and admin to the account registered under ``email``."""
    user = db.scalar(select(User).where(func.lower(User.email) == email.strip().lower()))
    if user is None:
        raise SystemExit(f"No account registered with email {email!r}")
    for role in (ROLE_OWNER, ROLE_ADMIN):
        exists = db.scalar(
            select(UserRole.id).where(UserRole.user_id == user.id, UserRole.role == role)
        )
        if exists is None:
            db.add(UserRole(user_id=user.id, role=role))
    db.commit()
    return user.id


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument(
        "--skip-create",
        action="store_true",
        help="Do not create tables (use when migrations manage the schema).",
    )
    parser.add_argument(
        "--overwrite-settings",
        action="store_true",
        help="Reset every site setting to its default value.",
    )
    parser.add_argument(
        "--owner-email",
        help="Email of an existing account to promote to owner.",
    )
    args = parser.parse_args(argv)

    configure_logging(settings.log_level)
    if not args.skip_create:
        create_tables()
        print("Tables created.")

    with SessionLocal() as db:
        written = seed_settings(db, overwrite=args.overwrite_settings)
        print(f"Seeded {written} site setting(s).")
        if args.owner_email:
            user_id = bootstrap_owner(db, args.owner_email)
            print(f"Granted owner role to {user_id}.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
