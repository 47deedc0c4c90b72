"""Notifications - best-effort delivery of lifecycle events to the outside world.

Invariants:
    - Notifiers implement core.repository_protocols.Notifier
    - A notifier may raise; callers dispatch it detached and only log the failure
    - build_notifier picks the webhook notifier iff a URL is configured

Design Decisions:
    - Email rendering lives in the mail service; this side only hands over kind + payload
"""

import logging

import httpx

from lostfound.config import Settings
from lostfound.core.domain_types import NotificationKind

logger = logging.getLogger(__name__)


class LoggingNotifier:
    """Writes each notification to the log. Default when no webhook is configured."""

    async def notify(self, kind: NotificationKind, payload: dict) -> None:
        logger.info(
            f"Notification {kind.value}: {payload}",
            extra={"notification_kind": kind.value},
        )


class WebhookNotifier:
    """POSTs {kind, payload} as JSON to the mail service webhook."""

    def __init__(
        self, url: str, timeout_seconds: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.url = url
        self.timeout_seconds = timeout_seconds
        self._transport = transport

    async def notify(self, kind: NotificationKind, payload: dict) -> None:
        async with httpx.AsyncClient(
            timeout=self.timeout_seconds, transport=self._transport,
        ) as client:
            response = await client.post(
                self.url, json={"kind": kind.value, "payload": payload},
            )
            response.raise_for_status()
        logger.info(
            f"Notification {kind.value} delivered to webhook",
            extra={"notification_kind": kind.value},
        )


def build_notifier(settings: Settings) -> LoggingNotifier | WebhookNotifier:
    if settings.notification_webhook_url:
        return WebhookNotifier(
            settings.notification_webhook_url,
            timeout_seconds=settings.notification_timeout_seconds,
        )
    return LoggingNotifier()
