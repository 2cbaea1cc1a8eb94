"""Transactional mail client.

Wraps the HTTP mail provider API (``POST {MAIL_API_URL}/emails``) used for
new-post notifications and contact-form alerts.
"""

from __future__ import annotations

import asyncio
import logging
import time
from collections import defaultdict
from dataclasses import dataclass, field
from typing import Any

import httpx

from unfiltered_voice.core.settings import settings

logger = logging.getLogger(__name__)

HTTP_BAD_REQUEST = 400


class MailerError(RuntimeError):
    """Base exception raised when mail cannot be delivered."""


class MailerDisabledError(MailerError):
    """Raised when mail is sent while delivery is switched off."""


@dataclass
class MailerMetrics:
    """Delivery counters for the mail provider."""

    request_count: int = 0
    success_count: int = 0
    error_count: int = 0
    total_response_time: float = 0.0
    error_counts_by_type: dict[str, int] = field(default_factory=lambda: defaultdict(int))

    def record_request(
        self, response_time: float, success: bool, error_type: str | None = None
    ) -> None:
        self.request_count += 1
        self.total_response_time += response_time
        if success:
            self.success_count += 1
        else:
            self.error_count += 1
            if error_type:
                self.error_counts_by_type[error_type] += 1


@dataclass(frozen=True)
class MailerConfig:
    """Immutable configuration for outbound mail."""

    enabled: bool
    base_url: str
    api_key: str | None
    sender: str
    timeout_seconds: float


@dataclass(frozen=True)
class MailMessage:
    """One outbound email; ``bcc`` recipients never see each other."""

    to: tuple[str, ...]
    subject: str
    html: str
    bcc: tuple[str, ...] = ()
    reply_to: str | None = None


def load_mailer_config() -> MailerConfig:
    """Build configuration object from global settings."""
    return MailerConfig(
        enabled=bool(settings.mail_enabled and settings.mail_api_key),
        base_url=settings.mail_api_url,
        api_key=settings.mail_api_key,
        sender=settings.mail_from,
        timeout_seconds=float(settings.mail_timeout_seconds),
    )


class MailerClient:
    """HTTP client wrapper for the mail provider."""

    def __init__(
        self,
        config: MailerConfig | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.config = config or load_mailer_config()
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._client_lock = asyncio.Lock()
        self._metrics = MailerMetrics()

    @property
    def enabled(self) -> bool:
        return self.config.enabled and bool(self.config.api_key)

    async def _ensure_client(self) -> httpx.AsyncClient:
        if not self.enabled:
            raise MailerDisabledError("Outbound mail is not enabled")

        async with self._client_lock:
            if self._client is None:
                self._client = httpx.AsyncClient(
                    base_url=self.config.base_url,
                    timeout=httpx.Timeout(self.config.timeout_seconds),
                    transport=self._transport,
                )
        return self._client

    def _payload(self, message: MailMessage) -> dict[str, Any]:
        payload: dict[str, Any] = {
            "from": self.config.sender,
            "to": list(message.to),
            "subject": message.subject,
            "html": message.html,
        }
        if message.bcc:
            payload["bcc"] = list(message.bcc)
        if message.reply_to:
            payload["reply_to"] = message.reply_to
        return payload

    async def send(self, message: MailMessage) -> str | None:
        """Deliver ``message`` and return the provider's message id.

        Raises:
            MailerDisabledError: If mail is switched off.
            MailerError: If the provider rejects the message or is unreachable.
        """
        client = await self._ensure_client()
        start_time = time.time()
        success = False
        error_type = None
        try:
            response = await client.post(
                "/emails",
                json=self._payload(message),
                headers={"Authorization": f"Bearer {self.config.api_key}"},
            )
            if response.status_code >= HTTP_BAD_REQUEST:
                error_type = f"http_{response.status_code}"
                raise MailerError(f"Mail provider responded with {response.status_code}")
            success = True
        except httpx.HTTPError as exc:
            error_type = "network_error"
            raise MailerError(f"Mail request failed: {exc}") from exc
        finally:
            self._metrics.record_request(time.time() - start_time, success, error_type)

        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("id") if isinstance(body, dict) else None

    def get_metrics(self) -> dict[str, Any]:
        return {
            "request_count": self._metrics.request_count,
            "success_count": self._metrics.success_count,
            "error_count": self._metrics.error_count,
            "error_counts_by_type": dict(self._metrics.error_counts_by_type),
        }

    async def close(self) -> None:
        """Clean up underlying HTTP client resources."""
        async with self._client_lock:
            if self._client is not None:
                await self._client.aclose()
                self._client = None


class _MailerClientSingleton:
    """Singleton wrapper for MailerClient."""

    _instance: MailerClient | None = None

    @classmethod
    def get_instance(cls) -> MailerClient:
        if cls._instance is None:
            cls._instance = MailerClient()
        return cls._instance


def get_mailer() -> MailerClient:
    """Return a singleton mail client instance."""
    return _MailerClientSingleton.get_instance()
