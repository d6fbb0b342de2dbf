"""
Notification Service — best-effort ``fire(title, body)``.

The session never reads a result back from a notifier, and a failing
notifier must not disturb the session.  Delivery mechanisms:

  - LoggingNotifier   writes the notification to the log (default)
  - InMemoryNotifier  keeps notifications for a front end to poll
  - WebhookNotifier   POSTs {title, body} as JSON to NOTIFICATION_WEBHOOK_URL
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone

import httpx

from epiguard import settings as config

logger = logging.getLogger("tracker.notifications")


@dataclass
class Notification:
    title: str
    body: str
    created: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class NotificationService(ABC):
    @abstractmethod
    async def fire(self, title: str, body: str) -> None:
        """Deliver one notification.  Failures are the caller's to swallow."""


class LoggingNotifier(NotificationService):
    async def fire(self, title: str, body: str) -> None:
        logger.info("Notification [%s] %s", title, body)


class InMemoryNotifier(NotificationService):
    """Stores notifications in memory for a front end to poll."""

    def __init__(self) -> None:
        self._log: list[Notification] = []

    async def fire(self, title: str, body: str) -> None:
        self._log.append(Notification(title=title, body=body))

    @property
    def notifications(self) -> list[Notification]:
        return list(self._log)

    def clear(self) -> None:
        self._log.clear()


class WebhookNotifier(NotificationService):
    """POSTs notifications to an HTTP endpoint (ntfy, Slack-style hooks, ...)."""

    def __init__(self, url: str | None = None, timeout: float = 10.0) -> None:
        self._url = url or config.NOTIFICATION_WEBHOOK_URL
        self._timeout = timeout

    async def fire(self, title: str, body: str) -> None:
        if not self._url:
            logger.warning("Webhook notifier has no URL, notification dropped")
            return
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            resp = await client.post(self._url, json={"title": title, "body": body})
            resp.raise_for_status()
        logger.debug("Webhook notification delivered to %s", self._url)


def build_notifier() -> NotificationService:
    """Webhook delivery when configured, otherwise log only."""
    if config.NOTIFICATION_WEBHOOK_URL:
        return WebhookNotifier(config.NOTIFICATION_WEBHOOK_URL)
    return LoggingNotifier()
