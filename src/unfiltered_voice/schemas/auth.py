"""Authentication request and response schemas."""
from __future__ import annotations

from pydantic import BaseModel, EmailStr, Field


class SignUpRequest(BaseModel):
    """Payload for creating a reader account."""

    email: EmailStr
    password: str = Field(..., min_length=1)
    confirm_password: str = Field(..., min_length=1)
    display_name: str = Field(..., min_length=1, max_length=200)


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(BaseModel):
    """Bearer token issued after sign-up or sign-in."""

    access_token: str
    token_type: str = "bearer"
    user_id: str


class PasswordCheckRequest(BaseModel):
    password: str


class PasswordRequirementStatus(BaseModel):
    id: str
    label: str
    met: bool


class PasswordStrengthResponse(BaseModel):
    """Checklist and overall rating for a candidate password."""

    score: int = Field(..., ge=0, le=100)
    label: str
    is_strong: bool
    requirements: list[PasswordRequirementStatus]


class SessionResponse(BaseModel):
    """Current principal and the capabilities derived from its roles."""

    user_id: str
    email: str
    display_name: str | None = None
    role: str
    is_admin: bool
    is_owner: bool
