from __future__ import annotations

from enum import StrEnum


class GasStrategy(StrEnum):
    """
    Gas limit padding applied by TxService to approvals and swaps.
    """

    DEFAULT = "default"
    BUFFERED = "buffered"
    AGGRESSIVE = "aggressive"

    @classmethod
    def parse(cls, value: str | None) -> "GasStrategy":
        raw = (value or "").strip().lower()
        if not raw:
            return cls.BUFFERED
        try:
            return cls(raw)
        except ValueError as exc:
            raise ValueError(f"Unknown gas strategy: {value!r}") from exc
