# core/use_cases/swap_usecase.py

from __future__ import annotations

import logging
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Optional

from adapters.chain.web3_gateway import Web3ChainGateway
from adapters.external.notifications.log_notifier import CollectingNotifier
from config import get_settings
from core.domain.gateways import ChainGateway
from core.domain.schemas.swap_types import SwapConfig
from core.services.exceptions import SwapConfigError
from core.services.quote_engine import QuoteEngine
from core.services.spot_price import SpotPriceReader, human_price
from core.services.trade_orchestrator import TradeOrchestrator
from core.services.utils import to_json_safe

logger = logging.getLogger(__name__)


@dataclass
class SwapUseCase:
    """
    Quote, spot price and exact-in execution on Uniswap v3 for the configured signer.

    The HTTP layer stays thin: it validates payloads and maps exceptions,
    everything on-chain happens through the injected gateway.
    """

    gateway: ChainGateway
    config: SwapConfig

    @classmethod
    def from_settings(cls) -> "SwapUseCase":
        s = get_settings()
        return cls(gateway=Web3ChainGateway.from_settings(s), config=SwapConfig.from_settings(s))

    @staticmethod
    def _require(value: Optional[str], setting: str) -> None:
        if not value:
            raise SwapConfigError(setting)

    # -------------------------------------------------------------------------
    # QUOTE
    # -------------------------------------------------------------------------

    def quote(
        self,
        *,
        token_in: str,
        token_out: str,
        amount_in: int,
        slippage_percent: float,
    ) -> dict[str, Any]:
        """
        Expected output for an exact-in swap plus the slippage-adjusted minimum.

        Raises:
            SwapConfigError: QUOTER_ADDRESS is not configured.
            ValueError: amount_in <= 0, or the quoter kept reverting after retries.
        """
        self._require(self.config.quoter_address, "QUOTER_ADDRESS")
        if int(amount_in) <= 0:
            raise ValueError("amount_in must be > 0")

        engine = QuoteEngine(self.gateway, self.config)
        q = engine.get_amount_out_min(int(amount_in), token_in, token_out, slippage_percent)
        if q.is_error or q.amount_out is None:
            raise ValueError(f"Quote failed after {engine.attempts} attempts: {q.error}")

        return {
            "token_in": token_in,
            "token_out": token_out,
            "fee": int(self.config.pool_fee),
            "amount_in": int(amount_in),
            "amount_out": int(q.amount_out),
            "amount_out_min": int(q.amount_out_min),
            "slippage_percent": float(slippage_percent),
            "attempts": engine.attempts,
        }

    # -------------------------------------------------------------------------
    # SPOT PRICE
    # -------------------------------------------------------------------------

    def spot_price(
        self,
        *,
        token_a: str,
        token_b: str,
        decimals_a: Optional[int] = None,
        decimals_b: Optional[int] = None,
    ) -> dict[str, Any]:
        """
        Current price of token_a in token_b from the pool at the configured fee tier.

        Missing decimals are read from the token contracts.

        Raises:
            SwapConfigError: V3_FACTORY_ADDRESS is not configured.
            ValueError: no pool exists for the pair at that fee tier.
        """
        self._require(self.config.factory_address, "V3_FACTORY_ADDRESS")

        reader = SpotPriceReader(self.gateway, self.config)
        if decimals_a is None:
            decimals_a = reader.token_decimals(token_a)
        if decimals_b is None:
            decimals_b = reader.token_decimals(token_b)

        reader.track(token_a, token_b, decimals_a, decimals_b)
        if reader.error is not None:
            raise reader.error
        if reader.pool_address is None:
            raise ValueError(f"No pool for {token_a}/{token_b} at fee {self.config.pool_fee}")

        state = reader.pool_state
        price = reader.spot_price
        human = human_price(price)
        return {
            "pool": reader.pool_address,
            "fee": int(self.config.pool_fee),
            "decimals_a": int(decimals_a),
            "decimals_b": int(decimals_b),
            "sqrt_price_x96": int(state.sqrt_price_x96) if state else None,
            "tick": int(state.tick) if state else None,
            "unlocked": bool(state.unlocked) if state else None,
            "spot_price_raw": str(price) if price is not None else None,
            "spot_price": format(human.normalize(), "f") if isinstance(human, Decimal) else None,
        }

    # -------------------------------------------------------------------------
    # EXACT-IN
    # -------------------------------------------------------------------------

    def swap_exact_in(
        self,
        *,
        token_in: str,
        token_out: str,
        amount_in: int,
        amount_out_min: Optional[int] = None,
        slippage_percent: float = 0.5,
        wait: bool = True,
    ) -> dict[str, Any]:
        """
        Run approve-then-swap for the configured signer.

        When the input token needs an approval, the approval is broadcast first
        and (with `wait=True`) the swap follows automatically once it is mined.
        Precondition failures do not raise: they show up in `notifications`.

        Raises:
            SwapConfigError: SWAP_ROUTER_ADDRESS is not configured.
            ValueError: amount_in <= 0 or no quote to derive amount_out_min from.
        """
        self._require(self.config.router_address, "SWAP_ROUTER_ADDRESS")
        if int(amount_in) <= 0:
            raise ValueError("amount_in must be > 0")

        if amount_out_min is None:
            amount_out_min = self.quote(
                token_in=token_in,
                token_out=token_out,
                amount_in=amount_in,
                slippage_percent=slippage_percent,
            )["amount_out_min"]

        notifier = CollectingNotifier()
        orchestrator = TradeOrchestrator(self.gateway, self.config, notifier)
        orchestrator.set_trade(token_in, token_out, int(amount_in), int(amount_out_min))

        submitted = orchestrator.start_trading()
        timeout = self.config.receipt_timeout_sec

        # the approval tracker is reset once the trade auto-continues
        approval_tx_hash = orchestrator.allowance.tx_hash
        approval_receipt = None
        if not submitted and wait and approval_tx_hash:
            logger.info("waiting for approval %s", approval_tx_hash)
            approval_receipt = orchestrator.wait_for_approval(timeout)

        if wait and orchestrator.trade_tx_hash:
            orchestrator.wait_for_trade(timeout)

        status = orchestrator.status()
        return {
            "token_in": token_in,
            "token_out": token_out,
            "amount_in": int(amount_in),
            "amount_out_min": int(amount_out_min),
            "native_in": orchestrator.intent.native_in,
            "native_out": orchestrator.intent.native_out,
            "is_allowance_ok": status.is_allowance_ok,
            "has_been_approved": status.has_been_approved or approval_receipt is not None,
            "is_balance_ok": status.is_balance_ok,
            "is_trading": status.is_trading,
            "is_trade_error": status.is_trade_error,
            "error": str(status.error) if status.error is not None else None,
            "approval_tx_hash": status.approval_tx_hash or approval_tx_hash,
            "trade_tx_hash": status.trade_tx_hash,
            "trade_receipt": to_json_safe(vars(status.trade_receipt)) if status.trade_receipt else None,
            "notifications": notifier.as_dicts(),
        }
