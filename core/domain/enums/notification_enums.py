from __future__ import annotations

from enum import StrEnum


class NotificationLevel(StrEnum):
    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"
