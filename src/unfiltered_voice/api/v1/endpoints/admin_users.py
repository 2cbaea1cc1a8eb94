"""Account administration endpoints."""

from __future__ import annotations

from fastapi import APIRouter, HTTPException, Response, status
from fastapi.encoders import jsonable_encoder

from unfiltered_voice.api.v1.dependencies import (
    AdminRolesDep,
    CurrentUserDep,
    OwnerRolesDep,
    SessionDep,
    http_error,
)
from unfiltered_voice.core.errors import VoiceError
from unfiltered_voice.models.change_request import (
    CHANGE_USER_ROLE,
    ROLE_ACTION_ADD,
    ROLE_ACTION_REMOVE,
)
from unfiltered_voice.models.user import ROLE_ADMIN, ROLE_USER
from unfiltered_voice.schemas.common import DeferredResponse
from unfiltered_voice.schemas.user import RoleUpdate, UserSummary
from unfiltered_voice.services import accounts
from unfiltered_voice.services.gate import (
    GatedAction,
    ResourceType,
    perform_direct_write,
    perform_gated_action,
)

router = APIRouter(prefix="/admin/users", tags=["admin", "users"])


@router.get("", response_model=list[UserSummary])
async def list_users(db: SessionDep, _roles: AdminRolesDep) -> list[UserSummary]:
    """List every account with its highest role."""
    return [UserSummary.model_validate(summary) for summary in accounts.get_all_users(db)]


@router.put("/{user_id}/admin-role", response_model=UserSummary | DeferredResponse)
async def set_admin_role(
    user_id: str,
    payload: RoleUpdate,
    response: Response,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> UserSummary | DeferredResponse:
    """Grant or revoke the admin role; admins can only propose the change."""
    if user_id == current_user.id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="You cannot change your own role",
        )
    try:
        summary = accounts.user_summary(db, accounts.get_user(db, user_id))
        action = GatedAction(
            resource_type=ResourceType.USER_ROLE,
            direct=lambda: accounts.set_admin_role(db, current_user.id, user_id, payload.is_admin),
            change_type=CHANGE_USER_ROLE,
            target_id=user_id,
            original_data=jsonable_encoder(summary),
            proposed_changes={
                "action": ROLE_ACTION_ADD if payload.is_admin else ROLE_ACTION_REMOVE,
                "role": ROLE_ADMIN,
            },
            summary=(
                f"Change user role from {summary['role']} to "
                f"{ROLE_ADMIN if payload.is_admin else ROLE_USER}"
            ),
        )
        outcome = perform_gated_action(db, action, current_user.id, roles)
    except VoiceError as exc:
        raise http_error(exc) from exc

    if not outcome.applied:
        response.status_code = status.HTTP_202_ACCEPTED
        return DeferredResponse(change_request_id=outcome.change_request_id or "")
    return UserSummary.model_validate(outcome.result)


@router.post("/{user_id}/owner", response_model=UserSummary)
async def make_owner(
    user_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: OwnerRolesDep,
) -> UserSummary:
    """Grant the owner role to another account."""
    try:
        summary = perform_direct_write(
            db,
            ResourceType.USER_ROLE,
            lambda: accounts.make_owner(db, current_user.id, user_id),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return UserSummary.model_validate(summary)
