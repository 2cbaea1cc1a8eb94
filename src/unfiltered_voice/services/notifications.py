"""Outbound notifications for new posts and contact messages."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from html import escape

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from unfiltered_voice.core.errors import NotFound
from unfiltered_voice.core.settings import settings
from unfiltered_voice.db.session import SessionLocal
from unfiltered_voice.models import EmailNotification, Post, Profile, User, UserRole
from unfiltered_voice.models.notification import NOTIFICATION_NEW_POST
from unfiltered_voice.models.post import CATEGORY_LABELS
from unfiltered_voice.models.user import ROLE_OWNER
from unfiltered_voice.services.mailer import MailerClient, MailerError, MailMessage, get_mailer

logger = logging.getLogger(__name__)

EXCERPT_LENGTH = 200
FALLBACK_EXCERPT = "A new post has been published. Click to read the full article."


@dataclass(frozen=True)
class NotificationResult:
    success_count: int
    failure_count: int
    total_subscribers: int


def post_excerpt(post: Post) -> str:
    """Return the explicit excerpt, else the opening of the content."""
    if post.excerpt and post.excerpt.strip():
        return post.excerpt.strip()
    if post.content and post.content.strip():
        return post.content.strip()[:EXCERPT_LENGTH] + "..."
    return FALLBACK_EXCERPT


def post_url(post: Post) -> str:
    return f"{settings.site_base_url.rstrip('/')}/{post.category}/{post.slug}"


def subscriber_emails(db: Session) -> list[str]:
    """Return addresses of profiles that accept new-post mail."""
    stmt = select(Profile.email).where(
        Profile.email.is_not(None),
        Profile.email_notifications_enabled.is_(True),
    )
    return [email for email in db.scalars(stmt) if email]


def owner_emails(db: Session) -> list[str]:
    stmt = (
        select(User.email)
        .join(UserRole, UserRole.user_id == User.id)
        .where(UserRole.role == ROLE_OWNER)
    )
    return list(db.scalars(stmt))


def render_post_email(post: Post) -> str:
    """Render the HTML body announcing ``post``."""
    published = post.published_at or post.created_at
    base = settings.site_base_url.rstrip("/")
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>New Post: {escape(post.title)}</title>
</head>
<body>
  <div class="container">
    <div class="header">
      <h1>{escape(settings.app_name)}</h1>
      <p>New post published</p>
    </div>
    <div class="content">
      <div class="category-badge">{escape(CATEGORY_LABELS.get(post.category, post.category))}</div>
      <h2 class="post-title">{escape(post.title)}</h2>
      <div class="post-meta">Published {published.strftime("%B %d, %Y")}</div>
      <div class="post-excerpt">{escape(post_excerpt(post))}</div>
      <a href="{escape(post_url(post))}" class="cta-button">Read More</a>
    </div>
    <div class="footer">
      <p>You're receiving this because you're subscribed to {escape(settings.app_name)}.</p>
      <p><a href="{base}/unsubscribe">Unsubscribe</a> | <a href="{base}">Visit Website</a></p>
    </div>
  </div>
</body>
</html>
"""


async def notify_published(
    db: Session,
    post_id: str,
    mailer: MailerClient | None = None,
) -> NotificationResult:
    """Mail every subscriber about a published post.

    All subscribers share one message through BCC, so delivery succeeds or
    fails for all of them together. The outcome is logged to
    ``email_notifications``.

    Raises:
        NotFound: If the post does not exist or is not published.
    """
    post = db.scalar(select(Post).where(Post.id == post_id, Post.is_published.is_(True)))
    if post is None:
        raise NotFound(f"Post {post_id} not found or not published")

    recipients = subscriber_emails(db)
    if not recipients:
        logger.info("No subscribers to notify for post %s", post_id)
        return NotificationResult(success_count=0, failure_count=0, total_subscribers=0)

    client = mailer or get_mailer()
    message = MailMessage(
        to=(settings.mail_primary_recipient,),
        bcc=tuple(recipients),
        subject=f"New Post: {post.title}",
        html=render_post_email(post),
    )
    try:
        await client.send(message)
    except MailerError as exc:
        logger.error("New-post notification for %s failed: %s", post_id, exc)
        result = NotificationResult(0, len(recipients), len(recipients))
    else:
        logger.info("New-post notification for %s sent to %d subscribers", post_id, len(recipients))
        result = NotificationResult(len(recipients), 0, len(recipients))

    db.add(
        EmailNotification(
            post_id=post_id,
            notification_type=NOTIFICATION_NEW_POST,
            recipients_count=result.total_subscribers,
            success_count=result.success_count,
            failure_count=result.failure_count,
        )
    )
    try:
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.error("Failed to record notification for post %s: %s", post_id, exc)
    return result


async def dispatch_publish_notifications(post_ids: list[str]) -> None:
    """Background entry point; failures are logged and never reach the caller."""
    with SessionLocal() as db:
        for post_id in post_ids:
            try:
                await notify_published(db, post_id)
            except NotFound:
                logger.warning("Skipping notification for unpublished post %s", post_id)


def notifications_for_post(db: Session, post_id: str) -> list[EmailNotification]:
    stmt = (
        select(EmailNotification)
        .where(EmailNotification.post_id == post_id)
        .order_by(EmailNotification.sent_at.desc())
    )
    return list(db.scalars(stmt))


def render_contact_email(name: str, email: str, message: str) -> str:
    body = escape(message).replace("\n", "<br>")
    base = settings.site_base_url.rstrip("/")
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <title>New Contact Message</title>
</head>
<body>
  <div class="container">
    <h1>New Contact Message</h1>
    <p><strong>From:</strong> {escape(name)}</p>
    <p><strong>Email:</strong> {escape(email)}</p>
    <p><strong>Message:</strong></p>
    <div class="message-box">{body}</div>
    <a href="{base}/admin" class="cta-button">View in Admin Panel</a>
    <p>This message was sent from your website contact form.</p>
  </div>
</body>
</html>
"""


async def notify_contact(
    db: Session,
    name: str,
    email: str,
    message: str,
    mailer: MailerClient | None = None,
) -> bool:
    """Alert every owner about a contact submission.

    Raises:
        MailerError: If there is nobody to notify or delivery fails.
    """
    recipients = owner_emails(db)
    if not recipients:
        raise MailerError("No owner emails found")
    client = mailer or get_mailer()
    await client.send(
        MailMessage(
            to=tuple(recipients),
            subject=f"New Contact Message from {name}",
            html=render_contact_email(name, email, message),
            reply_to=email,
        )
    )
    return True
