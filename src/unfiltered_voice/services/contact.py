"""Contact-form submissions and their administration."""
from __future__ import annotations

import logging
from collections.abc import Sequence

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import BackendFailure, NotFound, ValidationFailure
from unfiltered_voice.core.security import normalize_email
from unfiltered_voice.models import ContactMessage
from unfiltered_voice.services import notifications
from unfiltered_voice.services.mailer import MailerClient, MailerError
from unfiltered_voice.services.realtime import (
    EVENT_DELETE,
    EVENT_INSERT,
    EVENT_UPDATE,
    record_change,
)

logger = logging.getLogger(__name__)

TOPIC = "contact_messages"


def _commit(db: Session, description: str) -> None:
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to %s: %s", description, exc)
        raise BackendFailure(f"Failed to {description}") from exc


def submit_contact_message(db: Session, name: str, email: str, message: str) -> ContactMessage:
    """Store a contact-form submission."""
    name, message = name.strip(), message.strip()
    if not name or not message:
        raise ValidationFailure("Name and message are required")
    email = normalize_email(email)

    contact = ContactMessage(name=name, email=email, message=message)
    db.add(contact)
    db.flush()
    record_change(db, TOPIC, EVENT_INSERT, contact.id)
    _commit(db, "save contact message")
    logger.info("Contact message %s received", contact.id)
    return contact


async def alert_owners(db: Session, contact: ContactMessage, mailer: MailerClient | None = None) -> bool:
    """Mail the owners about ``contact``; a failure is logged, never raised."""
    try:
        return await notifications.notify_contact(
            db, contact.name, contact.email, contact.message, mailer=mailer
        )
    except MailerError as exc:
        logger.warning("Contact alert for %s not sent: %s", contact.id, exc)
        return False


def list_contact_messages(db: Session) -> Sequence[ContactMessage]:
    return db.scalars(select(ContactMessage).order_by(ContactMessage.created_at.desc())).all()


def _get(db: Session, message_id: str) -> ContactMessage:
    contact = db.get(ContactMessage, message_id)
    if contact is None:
        raise NotFound(f"Contact message {message_id} not found")
    return contact


def update_contact_flags(
    db: Session,
    message_id: str,
    is_read: bool | None = None,
    is_replied: bool | None = None,
) -> ContactMessage:
    contact = _get(db, message_id)
    if is_read is not None:
        contact.is_read = is_read
    if is_replied is not None:
        contact.is_replied = is_replied
    record_change(db, TOPIC, EVENT_UPDATE, message_id)
    _commit(db, "update contact message")
    return contact


def delete_contact_message(db: Session, message_id: str) -> None:
    db.delete(_get(db, message_id))
    record_change(db, TOPIC, EVENT_DELETE, message_id)
    _commit(db, "delete contact message")
