"""Business logic services for the Unfiltered Voice application."""

from .mailer import MailerClient
from .realtime import ChangeFeed
from .site_settings import SettingsStore

__all__ = [
    "ChangeFeed",
    "MailerClient",
    "SettingsStore",
]
