from __future__ import annotations

import time
from dataclasses import replace
from decimal import ROUND_FLOOR, Decimal
from typing import Callable, Optional, Union

from adapters.chain.uniswap_v3 import UniswapV3Calls
from core.domain.gateways import ChainGateway
from core.domain.schemas.swap_types import QuoteResult, SwapConfig
from core.services.query import ContractQuery

Number = Union[int, float, str, Decimal]


def compute_amount_out_min(amount_out: Optional[int], slippage_percent: Number) -> int:
    """
    floor(amount_out * floor((100 - slippage) * 100) / 10000).

    Slippage is a percentage (0.5 means 0.5%); two fractional digits survive,
    anything finer is truncated. Unknown or zero `amount_out` gives 0.
    """
    if not amount_out:
        return 0
    slippage = Decimal(str(slippage_percent))
    if slippage < 0 or slippage > 100:
        raise ValueError(f"slippage_percent must be within [0, 100], got {slippage_percent}")
    keep_bps = int(((Decimal(100) - slippage) * 100).to_integral_value(rounding=ROUND_FLOOR))
    return (int(amount_out) * keep_bps) // 10_000


class QuoteEngine:
    """
    Exact-in quotes through QuoterV2 `quoteExactInputSingle` (eth_call dry-run).

    A failing simulation is retried `config.quote_retries` times,
    `config.quote_retry_delay_sec` apart, before the error is surfaced.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        config: SwapConfig,
        *,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self._gateway = gateway
        self._calls = UniswapV3Calls(config)
        self._query: ContractQuery[int] = ContractQuery(
            self._quote,
            name="quote.amount_out",
            retry=config.quote_retries,
            retry_delay_sec=config.quote_retry_delay_sec,
            sleep=sleep,
        )

    def _quote(self, token_in: str, token_out: str, amount_in: int) -> int:
        sim = self._gateway.simulate_contract(
            self._calls.quote_exact_input_single(token_in, token_out, amount_in)
        )
        out = sim.result
        # QuoterV2 returns (amountOut, sqrtPriceX96After, ticksCrossed, gasEstimate)
        if isinstance(out, (list, tuple)):
            out = out[0]
        return int(out)

    def get_amount_out(self, amount_in: int, token_in: Optional[str], token_out: Optional[str]) -> QuoteResult:
        enabled = bool(token_in and token_out) and int(amount_in or 0) > 0
        self._query.sync((token_in, token_out, int(amount_in or 0)), enabled=enabled)
        return QuoteResult(
            amount_out=self._query.data,
            is_loading=self._query.is_loading,
            is_error=self._query.is_error,
            error=self._query.error,
        )

    def get_amount_out_min(
        self,
        amount_in: int,
        token_in: Optional[str],
        token_out: Optional[str],
        slippage_percent: Number,
    ) -> QuoteResult:
        quote = self.get_amount_out(amount_in, token_in, token_out)
        return replace(quote, amount_out_min=compute_amount_out_min(quote.amount_out, slippage_percent))

    def refetch(self) -> None:
        self._query.refetch()

    @property
    def attempts(self) -> int:
        """Total simulation attempts issued so far (retries included)."""
        return self._query.fetch_count
