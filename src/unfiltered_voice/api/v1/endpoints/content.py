"""About page and category endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from unfiltered_voice.api.v1.dependencies import (
    AdminRolesDep,
    CurrentUserDep,
    SessionDep,
    http_error,
)
from unfiltered_voice.core.errors import VoiceError
from unfiltered_voice.schemas.about import AboutResponse, AboutUpdate
from unfiltered_voice.schemas.category import CategoryCreate, CategoryResponse, CategoryUpdate
from unfiltered_voice.schemas.common import MessageResponse
from unfiltered_voice.services import about as about_service
from unfiltered_voice.services import categories as category_service
from unfiltered_voice.services.gate import ResourceType, perform_direct_write

router = APIRouter(tags=["content"])


@router.get("/about", response_model=AboutResponse)
async def read_about(db: SessionDep) -> AboutResponse:
    """Return the about page, or its defaults when never edited."""
    return AboutResponse.model_validate(about_service.get_about(db))


@router.put("/admin/about", response_model=AboutResponse)
async def save_about(
    payload: AboutUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> AboutResponse:
    try:
        saved = perform_direct_write(
            db,
            ResourceType.ABOUT_CONTENT,
            lambda: about_service.save_about(db, payload.model_dump(exclude_unset=True)),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return AboutResponse.model_validate(saved)


@router.get("/categories", response_model=list[CategoryResponse])
async def list_categories(db: SessionDep) -> list[CategoryResponse]:
    """List active categories in display order."""
    return [
        CategoryResponse.model_validate(category)
        for category in category_service.list_categories(db)
    ]


@router.get("/admin/categories", response_model=list[CategoryResponse])
async def list_all_categories(db: SessionDep, _roles: AdminRolesDep) -> list[CategoryResponse]:
    return [
        CategoryResponse.model_validate(category)
        for category in category_service.list_categories(db, include_inactive=True)
    ]


@router.post(
    "/admin/categories",
    response_model=CategoryResponse,
    status_code=status.HTTP_201_CREATED,
)
async def create_category(
    payload: CategoryCreate,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> CategoryResponse:
    try:
        category = perform_direct_write(
            db,
            ResourceType.CATEGORY,
            lambda: category_service.create_category(db, payload.model_dump(exclude_none=True)),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return CategoryResponse.model_validate(category)


@router.patch("/admin/categories/{category_id}", response_model=CategoryResponse)
async def update_category(
    category_id: str,
    payload: CategoryUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> CategoryResponse:
    changes = payload.model_dump(exclude_unset=True)
    try:
        category = perform_direct_write(
            db,
            ResourceType.CATEGORY,
            lambda: category_service.update_category(db, category_id, changes),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return CategoryResponse.model_validate(category)


@router.delete("/admin/categories/{category_id}", response_model=MessageResponse)
async def delete_category(
    category_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> MessageResponse:
    try:
        perform_direct_write(
            db,
            ResourceType.CATEGORY,
            lambda: category_service.delete_category(db, category_id),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return MessageResponse(message="Category deleted")
