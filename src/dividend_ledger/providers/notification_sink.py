"""Notification sink protocol and a logging implementation."""

import logging
from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Protocol

logger = logging.getLogger(__name__)


@dataclass
class Notification:
    owner_id: str
    title: str
    message: str
    scheduled_for: Optional[datetime] = None


class NotificationSink(Protocol):
    """Fire-and-forget consumer of owner notifications."""

    def send(self, notification: Notification) -> None:
        ...


class LoggingNotificationSink:
    """Writes notifications to the application log."""

    def send(self, notification: Notification) -> None:
        logger.info(
            "Notify %s: %s - %s (for %s)",
            notification.owner_id,
            notification.title,
            notification.message,
            notification.scheduled_for.isoformat() if notification.scheduled_for else "now",
        )
