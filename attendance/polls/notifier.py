import logging
from typing import Protocol

import httpx

from attendance.config.settings import settings
from attendance.polls.dtos import LateActionNotice

logger = logging.getLogger(__name__)


class LateActionNotifier(Protocol):
    """Delivers late sign-up/sign-off notices to the log destination."""

    async def __call__(self, notice: LateActionNotice) -> None: ...


class WebhookConfig(Protocol):
    log_channel_webhook_url: str


class WebhookLateActionNotifier:
    """Posts the notice text to a chat webhook (``{"content": ...}`` payload)."""

    def __init__(
        self,
        http_client_class: type[httpx.AsyncClient] = httpx.AsyncClient,
        config: WebhookConfig = settings,
    ):
        self._http_client_class = http_client_class
        self._config = config

    async def __call__(self, notice: LateActionNotice) -> None:
        async with self._http_client_class() as client:
            response = await client.post(
                self._config.log_channel_webhook_url,
                json={"content": notice.text},
            )
            response.raise_for_status()


class LoggingLateActionNotifier:
    async def __call__(self, notice: LateActionNotice) -> None:
        logger.warning(notice.text)


def get_late_action_notifier() -> LateActionNotifier:
    """Factory for the late-action notifier. Override in tests."""
    if settings.log_channel_webhook_url:
        return WebhookLateActionNotifier(http_client_class=httpx.AsyncClient, config=settings)
    return LoggingLateActionNotifier()
