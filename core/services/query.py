# core/services/query.py
"""
Keyed read subscriptions and write trackers.

A `ContractQuery` behaves like a cached remote read bound to the arguments it
was last synced with: calling `sync(key, enabled)` with a new key drops the
previous subscription and fetches again, calling it with the same key only
refetches once the refresh interval has elapsed. Everything runs on the
caller's thread; components call `sync` from their own `refresh()`.

`TransactionTracker` covers the write side: submission returns a hash
immediately and the receipt is observed by a query keyed on that hash.
"""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Generic, Hashable, Optional, Tuple, TypeVar

from core.domain.gateways import ChainGateway
from core.domain.schemas.swap_types import ContractCall, TransactionReceipt
from core.services.exceptions import ReceiptTimeoutError

logger = logging.getLogger(__name__)

T = TypeVar("T")

_UNSET: Any = object()


class ContractQuery(Generic[T]):
    def __init__(
        self,
        fetcher: Callable[..., T],
        *,
        name: str,
        retry: int = 0,
        retry_delay_sec: float = 0.0,
        keep_previous_data: bool = False,
        refetch_interval_sec: Optional[float] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._fetcher = fetcher
        self.name = name
        self.retry = max(0, int(retry))
        self.retry_delay_sec = float(retry_delay_sec)
        self.keep_previous_data = keep_previous_data
        self.refetch_interval_sec = refetch_interval_sec
        self._sleep = sleep
        self._clock = clock

        self._key: Any = _UNSET
        self.enabled = False
        self.data: Optional[T] = None
        self.error: Optional[BaseException] = None
        self.fetch_count = 0
        self.updated_at: Optional[float] = None
        self._settled = False

    # ---------- state ----------

    @property
    def key(self) -> Optional[Tuple[Hashable, ...]]:
        return None if self._key is _UNSET else self._key

    @property
    def is_loading(self) -> bool:
        return self.enabled and not self._settled

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def is_success(self) -> bool:
        return self._settled and self.error is None

    # ---------- lifecycle ----------

    def sync(self, key: Tuple[Hashable, ...], enabled: bool) -> "ContractQuery[T]":
        """
        Bind the query to `key`. A changed key (or a re-enable) triggers a fetch;
        an unchanged key refetches only when the refresh interval elapsed.
        """
        key_changed = key != self._key
        if key_changed:
            self._key = key
            self._settled = False
            self.error = None
            if not self.keep_previous_data:
                self.data = None

        if not enabled:
            if self.enabled:
                logger.debug("query %s disabled", self.name)
            self.enabled = False
            return self

        was_enabled = self.enabled
        self.enabled = True
        if key_changed or not was_enabled or not self._settled:
            self._run()
        elif self._interval_elapsed():
            self._run()
        return self

    def refetch(self) -> "ContractQuery[T]":
        if self.enabled:
            self._run()
        return self

    def clear(self) -> None:
        self._key = _UNSET
        self.enabled = False
        self.data = None
        self.error = None
        self.updated_at = None
        self._settled = False

    # ---------- internals ----------

    def _interval_elapsed(self) -> bool:
        if self.refetch_interval_sec is None or self.updated_at is None:
            return False
        return (self._clock() - self.updated_at) >= self.refetch_interval_sec

    def _run(self) -> None:
        attempts = self.retry + 1
        last_exc: Optional[BaseException] = None
        for attempt in range(1, attempts + 1):
            self.fetch_count += 1
            try:
                value = self._fetcher(*self._key)
            except Exception as exc:  # noqa: BLE001
                last_exc = exc
                logger.warning(
                    "query %s attempt %d/%d failed: %s", self.name, attempt, attempts, exc
                )
                if attempt < attempts and self.retry_delay_sec > 0:
                    self._sleep(self.retry_delay_sec)
                continue

            self.data = value
            self.error = None
            self.updated_at = self._clock()
            self._settled = True
            return

        self.error = last_exc
        if not self.keep_previous_data:
            self.data = None
        self.updated_at = self._clock()
        self._settled = True


class TransactionTracker:
    """
    Fire-and-forget write plus the receipt subscription for the resulting hash.

    Only one transaction is tracked at a time: `submit` refuses to broadcast
    again until `reset()` clears the current hash.
    """

    def __init__(self, gateway: ChainGateway, *, name: str):
        self._gateway = gateway
        self.name = name
        self.tx_hash: Optional[str] = None
        self.is_pending = False
        self.error: Optional[BaseException] = None
        self._receipt: ContractQuery[Optional[TransactionReceipt]] = ContractQuery(
            gateway.get_transaction_receipt, name=f"{name}.receipt"
        )

    @property
    def is_error(self) -> bool:
        return self.error is not None

    @property
    def receipt(self) -> Optional[TransactionReceipt]:
        return self._receipt.data

    @property
    def receipt_error(self) -> Optional[BaseException]:
        return self._receipt.error

    @property
    def is_waiting_receipt(self) -> bool:
        return self.tx_hash is not None and self.receipt is None and self.receipt_error is None

    @property
    def in_flight(self) -> bool:
        return self.is_pending or self.tx_hash is not None

    def submit(self, call: ContractCall) -> Optional[str]:
        if self.in_flight:
            logger.info("%s: transaction already in flight (%s), not resubmitting", self.name, self.tx_hash)
            return self.tx_hash

        self.is_pending = True
        self.error = None
        try:
            tx_hash = self._gateway.submit_contract(call)
        except Exception as exc:  # noqa: BLE001
            logger.error("%s: submit %s failed: %s", self.name, call.function_name, exc)
            self.error = exc
            return None
        finally:
            self.is_pending = False

        self.tx_hash = tx_hash
        logger.info("%s: broadcast %s tx=%s", self.name, call.function_name, tx_hash)
        self.refresh()
        return tx_hash

    def refresh(self) -> None:
        before = self._receipt.fetch_count
        self._receipt.sync((self.tx_hash,), enabled=self.tx_hash is not None)
        # pending receipts are polled on every refresh
        if (
            self._receipt.fetch_count == before
            and self._receipt.enabled
            and self._receipt.data is None
            and self._receipt.error is None
        ):
            self._receipt.refetch()

    def wait(self, timeout: float) -> Optional[TransactionReceipt]:
        """
        Block until the tracked transaction is mined, then refresh the receipt subscription.

        A timeout leaves the receipt pending, so a later `refresh()` still picks
        up a transaction mined after the wait window.
        """
        if self.tx_hash is None:
            return None
        try:
            self._gateway.wait_for_transaction_receipt(self.tx_hash, timeout)
        except ReceiptTimeoutError as exc:
            logger.warning("%s: %s, still polling", self.name, exc)
            return None
        except Exception as exc:  # noqa: BLE001
            logger.error("%s: waiting for %s failed: %s", self.name, self.tx_hash, exc)
            self._receipt.error = exc
            return None
        self._receipt.refetch()
        return self.receipt

    def reset(self) -> None:
        self.tx_hash = None
        self.is_pending = False
        self.error = None
        self._receipt.clear()
