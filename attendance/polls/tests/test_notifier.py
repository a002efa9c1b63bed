"""Unit tests for the late-action notifiers, mocking the HTTP client."""

import logging
from dataclasses import dataclass

import httpx
import pytest

from attendance.polls import notifier as notifier_module
from attendance.polls.dtos import ActionKind, LateActionNotice
from attendance.polls.notifier import (
    LoggingLateActionNotifier,
    WebhookLateActionNotifier,
    get_late_action_notifier,
)

WEBHOOK_URL = "https://chat.example.com/api/webhooks/123/abc"

NOTICE = LateActionNotice(
    participant_name="Alice",
    action=ActionKind.SIGNUP,
    event_id="evt-1",
    event_date_text="10.03.2025, 18:00",
)


@dataclass
class MockWebhookConfig:
    log_channel_webhook_url: str = WEBHOOK_URL


class MockResponse:
    def __init__(self, status_code=204):
        self.status_code = status_code

    def raise_for_status(self):
        if self.status_code >= 400:
            raise httpx.HTTPStatusError(
                f"HTTP {self.status_code}",
                request=httpx.Request("POST", WEBHOOK_URL),
                response=httpx.Response(self.status_code),
            )


class MockHttpClient:
    """Stands in for ``httpx.AsyncClient``; calling it returns itself."""

    def __init__(self, response: MockResponse | None = None):
        self.post_calls: list[dict] = []
        self._response = response or MockResponse()

    def __call__(self):
        return self

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        return False

    async def post(self, url, json=None, **kwargs):
        self.post_calls.append({"url": url, "json": json})
        return self._response


async def test_webhook_notifier_posts_notice_text():
    client = MockHttpClient()
    notifier = WebhookLateActionNotifier(http_client_class=client, config=MockWebhookConfig())

    await notifier(NOTICE)

    assert client.post_calls == [
        {
            "url": WEBHOOK_URL,
            "json": {
                "content": "Alice signed up **after the deadline** for the event on 10.03.2025, 18:00."
            },
        }
    ]


async def test_webhook_notifier_raises_on_http_error():
    client = MockHttpClient(MockResponse(status_code=500))
    notifier = WebhookLateActionNotifier(http_client_class=client, config=MockWebhookConfig())

    with pytest.raises(httpx.HTTPStatusError):
        await notifier(NOTICE)


async def test_logging_notifier_writes_warning(caplog):
    with caplog.at_level(logging.WARNING):
        await LoggingLateActionNotifier()(NOTICE)

    assert "Alice signed up **after the deadline**" in caplog.text


def test_factory_picks_webhook_when_configured(monkeypatch):
    monkeypatch.setattr(notifier_module.settings, "log_channel_webhook_url", WEBHOOK_URL)

    assert isinstance(get_late_action_notifier(), WebhookLateActionNotifier)


def test_factory_falls_back_to_logging(monkeypatch):
    monkeypatch.setattr(notifier_module.settings, "log_channel_webhook_url", "")

    assert isinstance(get_late_action_notifier(), LoggingLateActionNotifier)
