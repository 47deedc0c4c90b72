"""Notifications - webhook delivery, notifier selection and detached dispatch."""

import json
import logging
from datetime import date

import httpx
import pytest

from lostfound.config import Settings
from lostfound.core.domain_types import NotificationKind
from lostfound.infrastructure.notifications import (
    LoggingNotifier, WebhookNotifier, build_notifier,
)
from lostfound.services.object_lifecycle import ObjectLifecycleEngine, drain_notifications

PAYLOAD = {"object_id": "a" * 32, "institution": "inst-1", "applicant": "app-1",
           "devolution_code": "aaaaa"}


async def test_webhook_posts_kind_and_payload():
    received = []

    def handler(request: httpx.Request) -> httpx.Response:
        received.append((request.url, json.loads(request.content)))
        return httpx.Response(204)

    notifier = WebhookNotifier(
        "http://mail.test/hooks", transport=httpx.MockTransport(handler),
    )
    await notifier.notify(NotificationKind.SOLICIT_OBJECT, PAYLOAD)

    assert str(received[0][0]) == "http://mail.test/hooks"
    assert received[0][1] == {"kind": "solicit_object", "payload": PAYLOAD}


async def test_webhook_raises_on_error_status():
    notifier = WebhookNotifier(
        "http://mail.test/hooks",
        transport=httpx.MockTransport(lambda request: httpx.Response(500)),
    )
    with pytest.raises(httpx.HTTPStatusError):
        await notifier.notify(NotificationKind.SOLICIT_OBJECT, PAYLOAD)


async def test_logging_notifier_logs(caplog):
    with caplog.at_level(logging.INFO):
        await LoggingNotifier().notify(NotificationKind.SOLICIT_OBJECT, PAYLOAD)
    assert "solicit_object" in caplog.text


def test_build_notifier_selects_by_url():
    assert isinstance(build_notifier(Settings()), LoggingNotifier)
    webhook = build_notifier(Settings(notification_webhook_url="http://mail.test/hooks"))
    assert isinstance(webhook, WebhookNotifier)
    assert webhook.url == "http://mail.test/hooks"


async def test_notification_failure_does_not_fail_solicit(
    store, failing_notifier, institution, applicant, caplog,
):
    engine = ObjectLifecycleEngine(store, failing_notifier)
    obj = await engine.register(
        institution, "electronics", "phone", date(2024, 5, 1),
        [{"name": "color", "value": "black"}],
    )

    with caplog.at_level(logging.WARNING):
        code = await engine.solicit(applicant, obj.id)
        await drain_notifications()

    assert code
    assert "Notification dispatch failed" in caplog.text
