"""Authentication endpoints for the Unfiltered Voice API."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from unfiltered_voice.api.v1.dependencies import (
    CurrentRolesDep,
    CurrentUserDep,
    SessionDep,
    http_error,
)
from unfiltered_voice.core import security
from unfiltered_voice.core.errors import PermissionDenied, VoiceError
from unfiltered_voice.schemas.auth import (
    LoginRequest,
    PasswordCheckRequest,
    PasswordRequirementStatus,
    PasswordStrengthResponse,
    SessionResponse,
    SignUpRequest,
    TokenResponse,
)
from unfiltered_voice.services import accounts

router = APIRouter(prefix="/auth", tags=["authentication"])


@router.post(
    "/signup",
    response_model=TokenResponse,
    status_code=status.HTTP_201_CREATED,
)
async def sign_up(payload: SignUpRequest, db: SessionDep) -> TokenResponse:
    """Create a reader account and return a bearer token for it."""
    try:
        user = accounts.sign_up(
            db,
            email=payload.email,
            password=payload.password,
            confirm_password=payload.confirm_password,
            display_name=payload.display_name,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return TokenResponse(access_token=security.create_access_token(user.id), user_id=user.id)


@router.post("/login", response_model=TokenResponse)
async def login(payload: LoginRequest, db: SessionDep) -> TokenResponse:
    """Exchange email and password for a bearer token."""
    try:
        user = accounts.sign_in(db, payload.email, payload.password)
    except PermissionDenied as exc:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=str(exc),
        ) from exc
    except VoiceError as exc:
        raise http_error(exc) from exc
    return TokenResponse(access_token=security.create_access_token(user.id), user_id=user.id)


@router.get("/me", response_model=SessionResponse)
async def read_session(current_user: CurrentUserDep, roles: CurrentRolesDep) -> SessionResponse:
    """Return the caller together with its resolved role flags."""
    return SessionResponse(
        user_id=current_user.id,
        email=current_user.email,
        display_name=current_user.profile.display_name if current_user.profile else None,
        role=roles.role,
        is_admin=roles.is_admin,
        is_owner=roles.is_owner,
    )


@router.post("/password-strength", response_model=PasswordStrengthResponse)
async def password_strength(payload: PasswordCheckRequest) -> PasswordStrengthResponse:
    score, label = security.password_strength(payload.password)
    return PasswordStrengthResponse(
        score=score,
        label=label,
        is_strong=security.is_password_strong(payload.password),
        requirements=[
            PasswordRequirementStatus.model_validate(item)
            for item in security.check_password(payload.password)
        ],
    )
