from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional


class Notifier(ABC):
    """User-facing message sink (toast, chat message, API response...)."""

    @abstractmethod
    def success(self, message: str, description: Optional[str] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def error(self, message: str, description: Optional[str] = None) -> None:
        raise NotImplementedError

    @abstractmethod
    def info(self, message: str, description: Optional[str] = None) -> None:
        raise NotImplementedError
