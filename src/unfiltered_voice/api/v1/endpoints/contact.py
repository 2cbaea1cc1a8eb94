"""Contact form endpoints."""

from __future__ import annotations

from fastapi import APIRouter, BackgroundTasks, status

from unfiltered_voice.api.v1.dependencies import (
    AdminRolesDep,
    CurrentUserDep,
    SessionDep,
    http_error,
)
from unfiltered_voice.core.errors import VoiceError
from unfiltered_voice.db.session import SessionLocal
from unfiltered_voice.models import ContactMessage
from unfiltered_voice.schemas.common import MessageResponse
from unfiltered_voice.schemas.contact import ContactCreate, ContactFlagsUpdate, ContactResponse
from unfiltered_voice.services import contact as contact_service
from unfiltered_voice.services.gate import ResourceType, perform_direct_write
from unfiltered_voice.services.mailer import get_mailer

router = APIRouter(tags=["contact"])


async def _alert_owners(message_id: str) -> None:
    with SessionLocal() as db:
        contact = db.get(ContactMessage, message_id)
        if contact is not None:
            await contact_service.alert_owners(db, contact)


@router.post("/contact", response_model=ContactResponse, status_code=status.HTTP_201_CREATED)
async def submit_contact(
    payload: ContactCreate,
    background: BackgroundTasks,
    db: SessionDep,
) -> ContactResponse:
    """Store a message for the owner; the email alert is best effort."""
    try:
        contact = contact_service.submit_contact_message(
            db, payload.name, payload.email, payload.message
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    if get_mailer().enabled:
        background.add_task(_alert_owners, contact.id)
    return ContactResponse.model_validate(contact)


@router.get("/admin/contact", response_model=list[ContactResponse])
async def list_messages(db: SessionDep, _roles: AdminRolesDep) -> list[ContactResponse]:
    return [
        ContactResponse.model_validate(message)
        for message in contact_service.list_contact_messages(db)
    ]


@router.patch("/admin/contact/{message_id}", response_model=ContactResponse)
async def update_message(
    message_id: str,
    payload: ContactFlagsUpdate,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> ContactResponse:
    """Mark a message read or replied."""
    try:
        contact = perform_direct_write(
            db,
            ResourceType.CONTACT_MESSAGE,
            lambda: contact_service.update_contact_flags(
                db, message_id, is_read=payload.is_read, is_replied=payload.is_replied
            ),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return ContactResponse.model_validate(contact)


@router.delete("/admin/contact/{message_id}", response_model=MessageResponse)
async def delete_message(
    message_id: str,
    db: SessionDep,
    current_user: CurrentUserDep,
    roles: AdminRolesDep,
) -> MessageResponse:
    try:
        perform_direct_write(
            db,
            ResourceType.CONTACT_MESSAGE,
            lambda: contact_service.delete_contact_message(db, message_id),
            current_user.id,
            roles,
        )
    except VoiceError as exc:
        raise http_error(exc) from exc
    return MessageResponse(message="Message deleted")
