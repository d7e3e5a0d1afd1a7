# core/services/allowance_controller.py
"""
ERC20 allowance handshake for one (owner, token, spender, amount).

Native assets, an unset token and a zero amount bypass everything: the
allowance is satisfied and no RPC is issued. Otherwise the controller keeps
the allowance read and an `approve(spender, amount)` dry-run up to date, and
`check_allowance()` broadcasts that approval when needed.
"""

from __future__ import annotations

import logging
from typing import List, Optional

from adapters.chain.uniswap_v3 import UniswapV3Calls
from core.domain.enums.allowance_enums import AllowancePhase
from core.domain.gateways import ChainGateway
from core.domain.schemas.swap_types import (
    AllowanceState,
    ApprovalConfirmed,
    SimulationResult,
    SwapConfig,
)
from core.services.query import ContractQuery, TransactionTracker

logger = logging.getLogger(__name__)


class AllowanceController:
    def __init__(
        self,
        gateway: ChainGateway,
        config: SwapConfig,
        *,
        owner: Optional[str] = None,
        token: Optional[str] = None,
        spender: Optional[str] = None,
        amount: int = 0,
        is_native: bool = False,
    ):
        self._gateway = gateway
        self._calls = UniswapV3Calls(config)

        self.owner = owner
        self.token = token
        self.spender = spender
        self.amount = int(amount or 0)
        self.is_native = is_native

        self._allowance: ContractQuery[int] = ContractQuery(self._read_allowance, name="allowance.read")
        self._approve_sim: ContractQuery[SimulationResult] = ContractQuery(
            self._simulate_approve, name="allowance.approve_sim"
        )
        self._tx = TransactionTracker(gateway, name="approval")
        self._events: List[ApprovalConfirmed] = []
        self._announced_hash: Optional[str] = None

    # ---------- remote calls ----------

    def _read_allowance(self, token: str, owner: str, spender: str) -> int:
        return int(self._gateway.read_contract(self._calls.allowance(token, owner, spender)))

    def _simulate_approve(self, token: str, owner: str, spender: str, amount: int) -> SimulationResult:
        return self._gateway.simulate_contract(self._calls.approve(token, spender, amount))

    # ---------- inputs ----------

    def update(
        self,
        *,
        owner: Optional[str],
        token: Optional[str],
        spender: Optional[str],
        amount: int,
        is_native: bool = False,
    ) -> "AllowanceController":
        self.owner = owner
        self.token = token
        self.spender = spender
        self.amount = int(amount or 0)
        self.is_native = is_native
        self.refresh()
        return self

    @property
    def bypass(self) -> bool:
        return self.is_native or not self.token

    def _enabled(self) -> bool:
        return not self.bypass and bool(self.owner and self.spender) and self.amount > 0

    def _sync_reads(self) -> None:
        enabled = self._enabled()
        self._allowance.sync((self.token, self.owner, self.spender), enabled=enabled)
        self._approve_sim.sync(
            (self.token, self.owner, self.spender, self.amount),
            enabled=enabled and not self.is_satisfied,
        )

    def refresh(self) -> None:
        """Re-evaluate reads and the approval receipt; queue `ApprovalConfirmed` for new receipts."""
        self._sync_reads()
        if self.bypass:
            return

        self._tx.refresh()
        receipt = self._tx.receipt
        if receipt is None:
            return

        if not self.is_satisfied:
            # receipt is in but the allowance read is stale
            logger.info("approval %s mined, re-reading allowance", receipt.hash)
            self._allowance.refetch()
            self._sync_reads()

        if receipt.hash != self._announced_hash:
            self._announced_hash = receipt.hash
            self._events.append(
                ApprovalConfirmed(token=self.token, spender=self.spender, amount=self.amount, receipt=receipt)
            )

    # ---------- operations ----------

    def check_allowance(self) -> bool:
        """
        True when the trade may proceed. Otherwise submits the pending approval
        (at most once per approval attempt) and returns False.
        """
        if self.is_satisfied:
            return True

        if self._tx.in_flight:
            return False

        sim = self._approve_sim
        if sim.is_success and sim.data is not None:
            logger.info(
                "allowance %s < %s for spender %s, submitting approval",
                self._allowance.data,
                self.amount,
                self.spender,
            )
            self._tx.submit(sim.data.request)
        return False

    def reset(self) -> None:
        """Forget the approval transaction and re-read the allowance."""
        self._tx.reset()
        self._allowance.refetch()
        self._sync_reads()

    def pop_events(self) -> List[ApprovalConfirmed]:
        events, self._events = self._events, []
        return events

    # ---------- state ----------

    @property
    def is_satisfied(self) -> bool:
        if self.bypass or self.amount == 0:
            return True
        current = self._allowance.data
        if current is None:
            return False
        return int(current) >= self.amount

    @property
    def phase(self) -> AllowancePhase:
        if self.is_satisfied:
            return AllowancePhase.SATISFIED
        if self._tx.is_pending:
            return AllowancePhase.SUBMITTING
        if self._tx.is_waiting_receipt:
            return AllowancePhase.AWAITING_RECEIPT
        if self._allowance.data is None and self.error is None:
            return AllowancePhase.UNKNOWN
        return AllowancePhase.UNSATISFIED

    @property
    def state(self) -> AllowanceState:
        return AllowanceState(
            required_amount=self.amount,
            current_allowance=self._allowance.data,
            approval_tx_hash=self._tx.tx_hash,
            approval_receipt=self._tx.receipt,
            last_error=self.error,
        )

    @property
    def error(self) -> Optional[BaseException]:
        if self.bypass:
            return None
        return self._approve_sim.error or self._tx.error or self._tx.receipt_error or self._allowance.error

    @property
    def is_approve_pending(self) -> bool:
        return not self.bypass and self._approve_sim.is_loading

    @property
    def is_approving(self) -> bool:
        return not self.bypass and (self._tx.is_pending or self._tx.is_waiting_receipt)

    @property
    def is_approve_error(self) -> bool:
        return self.error is not None

    @property
    def has_been_approved(self) -> bool:
        return not self.bypass and self._tx.receipt is not None

    @property
    def receipt(self):
        return None if self.bypass else self._tx.receipt

    @property
    def tx_hash(self) -> Optional[str]:
        return None if self.bypass else self._tx.tx_hash

    def wait_for_approval(self, timeout: float):
        """Block on the approval receipt (server-side flows), then refresh."""
        receipt = self._tx.wait(timeout)
        self.refresh()
        return receipt
