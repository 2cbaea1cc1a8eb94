"""Self-service account endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, status

from unfiltered_voice.api.v1.dependencies import CurrentUserDep, SessionDep, http_error
from unfiltered_voice.core.errors import VoiceError
from unfiltered_voice.models import Profile, User
from unfiltered_voice.schemas.common import MessageResponse
from unfiltered_voice.schemas.user import PasswordChange, ProfileResponse, ProfileUpdate
from unfiltered_voice.services import accounts

router = APIRouter(prefix="/users", tags=["users"])


def _profile_response(user: User, profile: Profile | None = None) -> ProfileResponse:
    profile = profile or user.profile
    if profile is None:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Profile not found")
    return ProfileResponse.model_validate(profile)


@router.get("/me", response_model=ProfileResponse)
async def read_profile(current_user: CurrentUserDep) -> ProfileResponse:
    return _profile_response(current_user)


@router.patch("/me", response_model=ProfileResponse)
async def update_profile(
    payload: ProfileUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> ProfileResponse:
    try:
        profile = accounts.update_profile(db, current_user.id, payload.display_name)
    except VoiceError as exc:
        raise http_error(exc) from exc
    return _profile_response(current_user, profile)


@router.delete("/me", response_model=MessageResponse)
async def delete_account(db: SessionDep, current_user: CurrentUserDep) -> MessageResponse:
    """Delete the caller's account; their comments remain under an anonymous name."""
    try:
        accounts.delete_user_account(db, current_user.id, current_user.id)
    except VoiceError as exc:
        raise http_error(exc) from exc
    return MessageResponse(message="Account deleted")


@router.put("/me/password", response_model=MessageResponse)
async def change_password(
    payload: PasswordChange,
    db: SessionDep,
    current_user: CurrentUserDep,
) -> MessageResponse:
    try:
        accounts.change_password(db, current_user.id, payload.password, payload.confirm_password)
    except VoiceError as exc:
        raise http_error(exc) from exc
    return MessageResponse(message="Password updated")


@router.post("/me/unsubscribe", response_model=ProfileResponse)
async def unsubscribe(db: SessionDep, current_user: CurrentUserDep) -> ProfileResponse:
    """Stop new-post emails for the caller."""
    try:
        profile = accounts.unsubscribe(db, current_user.id)
    except VoiceError as exc:
        raise http_error(exc) from exc
    return _profile_response(current_user, profile)


@router.post("/me/resubscribe", response_model=ProfileResponse)
async def resubscribe(db: SessionDep, current_user: CurrentUserDep) -> ProfileResponse:
    try:
        profile = accounts.resubscribe(db, current_user.id)
    except VoiceError as exc:
        raise http_error(exc) from exc
    return _profile_response(current_user, profile)
