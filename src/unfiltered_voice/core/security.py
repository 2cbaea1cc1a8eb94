"""Password hashing, password policy and access-token helpers."""
from __future__ import annotations

import re
from collections.abc import Callable
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt
from nacl import pwhash
from nacl.exceptions import InvalidkeyError
from pydantic import EmailStr, TypeAdapter, ValidationError

from unfiltered_voice.core.errors import ValidationFailure
from unfiltered_voice.core.settings import settings

_SPECIAL_CHARS = re.compile(r"[!@#$%^&*()_+\-=\[\]{};':\"\\|,.<>/?]")
_EMAIL_ADAPTER: TypeAdapter[str] = TypeAdapter(EmailStr)


@dataclass(frozen=True)
class PasswordRequirement:
    """A single rule of the password strength policy."""

    id: str
    label: str
    test: Callable[[str], bool]


PASSWORD_REQUIREMENTS: tuple[PasswordRequirement, ...] = (
    PasswordRequirement("length", "At least 8 characters", lambda p: len(p) >= 8),
    PasswordRequirement(
        "uppercase", "One uppercase letter (A-Z)", lambda p: re.search(r"[A-Z]", p) is not None
    ),
    PasswordRequirement(
        "lowercase", "One lowercase letter (a-z)", lambda p: re.search(r"[a-z]", p) is not None
    ),
    PasswordRequirement("number", "One number (0-9)", lambda p: re.search(r"\d", p) is not None),
    PasswordRequirement(
        "special",
        "One special character (!@#$%^&*)",
        lambda p: _SPECIAL_CHARS.search(p) is not None,
    ),
)


def check_password(password: str) -> list[dict[str, object]]:
    """Return the policy checklist for ``password``."""
    return [
        {"id": req.id, "label": req.label, "met": req.test(password)}
        for req in PASSWORD_REQUIREMENTS
    ]


def is_password_strong(password: str) -> bool:
    """Return True if every password requirement is met."""
    return all(req.test(password) for req in PASSWORD_REQUIREMENTS)


def password_strength(password: str) -> tuple[int, str]:
    """Return a ``(score, label)`` pair describing password strength."""
    met = sum(1 for req in PASSWORD_REQUIREMENTS if req.test(password))
    if met == 0:
        return 0, "Very Weak"
    if met <= 2:
        return 25, "Weak"
    if met <= 3:
        return 50, "Fair"
    if met <= 4:
        return 75, "Good"
    return 100, "Strong"


def hash_password(password: str) -> str:
    """Return an argon2id verifier string for ``password``."""
    return pwhash.argon2id.str(
        password.encode("utf-8"),
        opslimit=pwhash.argon2id.OPSLIMIT_INTERACTIVE,
        memlimit=pwhash.argon2id.MEMLIMIT_INTERACTIVE,
    ).decode("ascii")


def verify_password(password_hash: str, password: str) -> bool:
    """Return True if ``password`` matches the stored verifier."""
    try:
        return pwhash.verify(password_hash.encode("ascii"), password.encode("utf-8"))
    except InvalidkeyError:
        return False


def create_access_token(user_id: str, expires_minutes: int | None = None) -> str:
    """Issue a signed bearer token whose subject is ``user_id``."""
    minutes = expires_minutes or settings.access_token_expire_minutes
    expire = datetime.now(UTC) + timedelta(minutes=minutes)
    payload = {"sub": user_id, "exp": expire}
    return jwt.encode(payload, settings.secret_key, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> str | None:
    """Return the subject of a valid token, or None when it cannot be trusted."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.jwt_algorithm])
    except JWTError:
        return None
    subject = payload.get("sub")
    return subject if isinstance(subject, str) else None


def normalize_email(email: str) -> str:
    """Validate ``email`` and return it lower-cased.

    Raises:
        ValidationFailure: If the address is not a valid email.
    """
    try:
        address = _EMAIL_ADAPTER.validate_python(email.strip())
    except ValidationError as exc:
        raise ValidationFailure("Please enter a valid email address") from exc
    return address.lower()
