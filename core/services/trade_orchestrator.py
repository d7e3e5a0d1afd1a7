# core/services/trade_orchestrator.py
"""
Exact-in swap flow on SwapRouter02: balance check, allowance handshake,
trade dry-run, submission and receipt tracking.

The orchestrator is recomputation-driven: callers change the intent with
`set_intent()` and call `refresh()` whenever they want remote state
re-evaluated. A mined approval arrives as a discrete `ApprovalConfirmed`
event; it arms a single automatic `start_trading()` that fires as soon as a
valid trade simulation exists, so an approve-then-swap flow needs only one
user action.
"""

from __future__ import annotations

import logging
from typing import Optional

from adapters.chain.uniswap_v3 import UniswapV3Calls
from core.domain.gateways import ChainGateway, Notifier
from core.domain.schemas.swap_types import (
    ApprovalConfirmed,
    SimulationResult,
    SwapConfig,
    TradeIntent,
    TradeStatus,
    TransactionReceipt,
)
from core.services.allowance_controller import AllowanceController
from core.services.query import ContractQuery, TransactionTracker
from core.services.spot_price import SpotPriceReader

logger = logging.getLogger(__name__)


class TradeOrchestrator:
    def __init__(
        self,
        gateway: ChainGateway,
        config: SwapConfig,
        notifier: Notifier,
        *,
        allowance: Optional[AllowanceController] = None,
        spot_price: Optional[SpotPriceReader] = None,
    ):
        self._gateway = gateway
        self._config = config
        self._notifier = notifier
        self._calls = UniswapV3Calls(config)
        self.allowance = allowance or AllowanceController(gateway, config)
        self.spot_price = spot_price

        self.intent: Optional[TradeIntent] = None
        self.account: Optional[str] = None

        self._in_balance: ContractQuery[int] = ContractQuery(self._read_balance, name="trade.balance_in")
        self._out_balance: ContractQuery[int] = ContractQuery(self._read_balance, name="trade.balance_out")
        self._simulation: ContractQuery[SimulationResult] = ContractQuery(
            self._simulate_trade, name="trade.simulation"
        )
        self._tx = TransactionTracker(gateway, name="trade")

        self._auto_continue_armed = False
        self._announced_trade_hash: Optional[str] = None

    # ---------- remote calls ----------

    def _read_balance(self, owner: str, token: str, native: bool) -> int:
        return self._gateway.get_balance(owner, None if native else token)

    def _simulate_trade(self, intent: TradeIntent, account: str, router: str) -> SimulationResult:
        call = self._calls.swap(intent, account, self._gateway.encode_call_data)
        return self._gateway.simulate_contract(call)

    # ---------- inputs ----------

    def set_intent(self, intent: Optional[TradeIntent]) -> "TradeOrchestrator":
        self.intent = intent
        self.refresh()
        return self

    def set_trade(self, token_in: str, token_out: str, amount_in: int, amount_out_min: int) -> "TradeOrchestrator":
        """Address-based entry point: native flags are inferred from the configured native sentinel."""
        return self.set_intent(
            TradeIntent.from_addresses(
                token_in,
                token_out,
                amount_in,
                amount_out_min,
                native_sentinel=self._config.native_sentinel,
            )
        )

    # ---------- recomputation ----------

    def refresh(self) -> None:
        self.account = self._gateway.account()
        intent = self.intent
        account = self.account
        router = self._config.router_address

        token_in = intent.token_in if intent else None
        token_out = intent.token_out if intent else None
        native_in = bool(intent and intent.native_in)
        native_out = bool(intent and intent.native_out)

        self._in_balance.sync((account, token_in, native_in), enabled=bool(account and token_in))
        self._out_balance.sync((account, token_out, native_out), enabled=bool(account and token_out))

        self.allowance.update(
            owner=account,
            token=token_in,
            spender=router,
            amount=intent.amount_in if intent else 0,
            is_native=native_in,
        )

        self._simulation.sync((intent, account, router), enabled=self._simulation_enabled())
        self._tx.refresh()
        self._announce_trade_receipt()

        for event in self.allowance.pop_events():
            self._on_approval_confirmed(event)
        self._maybe_auto_continue()

    def _simulation_enabled(self) -> bool:
        intent = self.intent
        if intent is None:
            return False
        return (
            bool(intent.token_in and intent.token_out)
            and self.allowance.is_satisfied
            and intent.amount_in > 0
            and intent.amount_out_min >= 0
            and self.is_balance_ok
            and bool(self.account)
            and bool(self._config.router_address)
        )

    def _on_approval_confirmed(self, event: ApprovalConfirmed) -> None:
        logger.info("approval confirmed tx=%s spender=%s amount=%s", event.receipt.hash, event.spender, event.amount)
        self._auto_continue_armed = True

    def _maybe_auto_continue(self) -> None:
        if not self._auto_continue_armed:
            return
        if self._tx.in_flight:
            self._auto_continue_armed = False
            return
        if not self._simulation_ready():
            return

        self._auto_continue_armed = False
        logger.info("allowance satisfied after approval, continuing trade")
        self.start_trading()
        self.allowance.reset()

    def _announce_trade_receipt(self) -> None:
        receipt = self._tx.receipt
        if receipt is not None and receipt.hash != self._announced_trade_hash:
            self._announced_trade_hash = receipt.hash
            self._notifier.success("Trade confirmed", description=receipt.hash)

    def _simulation_ready(self) -> bool:
        return self._simulation.is_success and self._simulation.data is not None

    # ---------- operations ----------

    def start_trading(self) -> bool:
        """
        Run the ordered preconditions and submit the swap.

        Returns True when a trade transaction was broadcast. False means a
        precondition failed (a notification was sent) or an approval is in
        flight and the trade will continue once it is mined.
        """
        if not self._config.router_address:
            self._notifier.error("Uniswap router not available")
            return False

        if not self.account:
            self._notifier.error("No account connected")
            return False

        if not self.is_balance_ok:
            self._notifier.error("Insufficient balance")
            return False

        if not self.allowance.check_allowance():
            return False

        if self._simulation_ready():
            if self._tx.in_flight:
                logger.info("trade already in flight (%s)", self._tx.tx_hash)
                return False
            return self._tx.submit(self._simulation.data.request) is not None

        err = self._simulation.error
        description = f"Error: {err}" if err is not None else "Unknown error during simulation"
        self._notifier.error("Unable to trade", description=description)
        self._tx.reset()
        return False

    def reset(self) -> None:
        """Drop trade and approval tracking, then re-read balances (and the spot price)."""
        self._tx.reset()
        self.allowance.reset()
        self._auto_continue_armed = False
        self._in_balance.refetch()
        self._out_balance.refetch()
        if self.spot_price is not None:
            self.spot_price.refetch()
        self.refresh()

    def wait_for_approval(self, timeout: float) -> Optional[TransactionReceipt]:
        """Block on the approval receipt; the following refresh may auto-submit the trade."""
        receipt = self.allowance.wait_for_approval(timeout)
        self.refresh()
        return receipt

    def wait_for_trade(self, timeout: float) -> Optional[TransactionReceipt]:
        receipt = self._tx.wait(timeout)
        self.refresh()
        return receipt

    # ---------- state ----------

    @property
    def balance(self) -> Optional[int]:
        return self._in_balance.data

    @property
    def out_balance(self) -> Optional[int]:
        return self._out_balance.data

    @property
    def is_balance_ok(self) -> bool:
        if self.intent is None or self._in_balance.data is None:
            return False
        return int(self._in_balance.data) >= int(self.intent.amount_in)

    @property
    def simulation(self) -> SimulationResult:
        data = self._simulation.data
        return SimulationResult(
            request=data.request if data else None,
            result=data.result if data else None,
            is_error=self._simulation.is_error,
            error=self._simulation.error,
        )

    @property
    def trade_tx_hash(self) -> Optional[str]:
        return self._tx.tx_hash

    @property
    def trade_receipt(self) -> Optional[TransactionReceipt]:
        return self._tx.receipt

    @property
    def error(self) -> Optional[BaseException]:
        return self.allowance.error or self._simulation.error or self._tx.error or self._tx.receipt_error

    def status(self) -> TradeStatus:
        return TradeStatus(
            is_allowance_ok=self.allowance.is_satisfied,
            is_approve_pending=self.allowance.is_approve_pending,
            is_approving=self.allowance.is_approving,
            is_approve_error=self.allowance.is_approve_error,
            has_been_approved=self.allowance.has_been_approved,
            is_trade_pending=(
                self._in_balance.is_loading or self._out_balance.is_loading or self._simulation.is_loading
            ),
            is_trading=self._tx.is_pending or self._tx.is_waiting_receipt,
            is_trade_error=self._simulation.is_error or self._tx.is_error,
            error=self.error,
            balance=self.balance,
            is_balance_ok=self.is_balance_ok,
            is_balance_loading=self._in_balance.is_loading,
            approval_tx_hash=self.allowance.tx_hash,
            trade_tx_hash=self._tx.tx_hash,
            trade_receipt=self._tx.receipt,
        )
