from __future__ import annotations

import logging
from typing import List, Optional

from core.domain.enums.notification_enums import NotificationLevel
from core.domain.gateways import Notifier
from core.domain.schemas.swap_types import Notification

logger = logging.getLogger("notifications")


class LoggingNotifier(Notifier):
    """Writes user-facing messages to the `notifications` logger."""

    def success(self, message: str, description: Optional[str] = None) -> None:
        logger.info("%s%s", message, f" - {description}" if description else "")

    def error(self, message: str, description: Optional[str] = None) -> None:
        logger.error("%s%s", message, f" - {description}" if description else "")

    def info(self, message: str, description: Optional[str] = None) -> None:
        logger.info("%s%s", message, f" - {description}" if description else "")


class CollectingNotifier(LoggingNotifier):
    """
    Keeps every notification in memory (and still logs it).

    Used by the HTTP layer to hand the messages of one trade attempt back to
    the client.
    """

    def __init__(self) -> None:
        self.items: List[Notification] = []

    def success(self, message: str, description: Optional[str] = None) -> None:
        self.items.append(Notification(NotificationLevel.SUCCESS, message, description))
        super().success(message, description)

    def error(self, message: str, description: Optional[str] = None) -> None:
        self.items.append(Notification(NotificationLevel.ERROR, message, description))
        super().error(message, description)

    def info(self, message: str, description: Optional[str] = None) -> None:
        self.items.append(Notification(NotificationLevel.INFO, message, description))
        super().info(message, description)

    def as_dicts(self) -> List[dict]:
        return [
            {"level": str(n.level), "message": n.message, "description": n.description}
            for n in self.items
        ]
