# tests/conftest.py
from __future__ import annotations

import os
from collections.abc import Callable, Generator, Iterator
from itertools import count
from typing import Any

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session
from sqlalchemy.pool import StaticPool

os.environ.setdefault("PYTEST_RUNNING", "true")
os.environ.setdefault("SECRET_KEY", "test-secret-key-not-for-production")
os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("MAIL_ENABLED", "false")

from unfiltered_voice.core.security import create_access_token, hash_password
from unfiltered_voice.db.session import Base
from unfiltered_voice.db.session import get_db as app_get_session
from unfiltered_voice.main import app as fastapi_app
from unfiltered_voice.models import Post, Profile, User, UserRole
from unfiltered_voice.models.user import ROLE_ADMIN, ROLE_OWNER, ROLE_USER
from unfiltered_voice.services import site_settings

TEST_DB_URL = "sqlite://"
TEST_PASSWORD = "Str0ng!Passw0rd"

_USER_COUNTER = count(1)
_POST_COUNTER = count(1)


@pytest.fixture(scope="session")
def engine() -> Generator[Engine, None, None]:
    engine = create_engine(
        TEST_DB_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    try:
        yield engine
    finally:
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture()
def db_session(engine: Engine) -> Iterator[Session]:
    connection = engine.connect()
    transaction = connection.begin()
    # Service commits and rollbacks only touch a savepoint inside the test transaction.
    session = Session(
        bind=connection,
        autoflush=False,
        expire_on_commit=False,
        join_transaction_mode="create_savepoint",
    )

    try:
        yield session
    finally:
        session.close()

        if transaction.is_active:
            transaction.rollback()
        connection.close()

        # Ensure each test sees a clean database even if commits occurred.
        with engine.begin() as cleanup_conn:
            for table in reversed(Base.metadata.sorted_tables):
                cleanup_conn.execute(table.delete())


@pytest.fixture(scope="session")
def app() -> FastAPI:
    return fastapi_app


@pytest.fixture(autouse=True)
def override_session_dependency(app: FastAPI, db_session: Session) -> Iterator[None]:
    def _get_session_override() -> Generator[Session, None, None]:
        yield db_session

    app.dependency_overrides[app_get_session] = _get_session_override
    try:
        yield
    finally:
        app.dependency_overrides.pop(app_get_session, None)


@pytest.fixture(autouse=True)
def fresh_settings_store() -> Iterator[None]:
    """Give every test its own site settings cache."""
    site_settings._SettingsStoreSingleton._instance = None
    yield
    site_settings._SettingsStoreSingleton._instance = None


@pytest.fixture()
def client(app: FastAPI) -> Iterator[TestClient]:
    with TestClient(app, base_url="http://test") as test_client:
        yield test_client


@pytest.fixture(scope="session")
def password_hash() -> str:
    """Hash the shared test password once; argon2 is deliberately slow."""
    return hash_password(TEST_PASSWORD)


@pytest.fixture()
def make_user(db_session: Session, password_hash: str) -> Callable[..., User]:
    """Return a factory creating persisted accounts with the given roles."""

    def _make_user(
        display_name: str | None = None,
        roles: tuple[str, ...] = (),
        email: str | None = None,
        notifications: bool = True,
    ) -> User:
        n = next(_USER_COUNTER)
        address = email or f"user{n}@example.com"
        user = User(email=address, password_hash=password_hash)
        user.profile = Profile(
            display_name=display_name or f"User {n}",
            email=address,
            email_notifications_enabled=notifications,
        )
        user.roles.append(UserRole(role=ROLE_USER))
        for role in roles:
            user.roles.append(UserRole(role=role))
        db_session.add(user)
        db_session.commit()
        db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture()
def reader(make_user: Callable[..., User]) -> User:
    return make_user("Regular Reader")


@pytest.fixture()
def admin(make_user: Callable[..., User]) -> User:
    return make_user("Site Admin", roles=(ROLE_ADMIN,))


@pytest.fixture()
def owner(make_user: Callable[..., User]) -> User:
    return make_user("Site Owner", roles=(ROLE_OWNER, ROLE_ADMIN))


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user.id)}"}


@pytest.fixture()
def reader_headers(reader: User) -> dict[str, str]:
    return auth_headers(reader)


@pytest.fixture()
def admin_headers(admin: User) -> dict[str, str]:
    return auth_headers(admin)


@pytest.fixture()
def owner_headers(owner: User) -> dict[str, str]:
    return auth_headers(owner)


@pytest.fixture()
def make_post(db_session: Session) -> Callable[..., Post]:
    """Return a factory creating persisted posts without going through the service."""

    def _make_post(**overrides: Any) -> Post:
        n = next(_POST_COUNTER)
        values: dict[str, Any] = {
            "title": f"Post number {n}",
            "category": "mental-health",
            "slug": f"post-number-{n}",
            "content": "Some words worth reading. " * 20,
            "read_time_min": 1,
            "is_published": False,
        }
        values.update(overrides)
        post = Post(**values)
        db_session.add(post)
        db_session.commit()
        db_session.refresh(post)
        return post

    return _make_post


@pytest.fixture()
def published_post(make_post: Callable[..., Post]) -> Post:
    from unfiltered_voice.db.time import utcnow

    return make_post(is_published=True, published_at=utcnow(), excerpt="A short teaser.")


@pytest.fixture(scope="session")
def test_password() -> str:
    """Plain-text password shared by every factory-made account."""
    return TEST_PASSWORD
