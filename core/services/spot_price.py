# core/services/spot_price.py
"""
Spot price from Uniswap v3 pool state.

Prices are integers scaled by 10**18 (WAD). `compute_spot_price` never
raises: arithmetic problems degrade to 0, which callers treat as
"price unavailable".
"""

from __future__ import annotations

import logging
import time
from decimal import Decimal
from typing import Callable, Optional

from adapters.chain.uniswap_v3 import UniswapV3Calls
from core.domain.gateways import ChainGateway
from core.domain.schemas.swap_types import ZERO_ADDRESS, PoolState, SwapConfig, same_address
from core.services.query import ContractQuery

logger = logging.getLogger(__name__)

Q96 = 1 << 96
WAD = 10**18
INVERSE_SCALE = 10**36


def _div_pow10(value: int, exp: int) -> int:
    return value // (10**exp) if exp >= 0 else value * (10 ** (-exp))


def _mul_pow10(value: int, exp: int) -> int:
    return value * (10**exp) if exp >= 0 else value // (10 ** (-exp))


def compute_spot_price(
    pool_state: Optional[PoolState],
    token_a: Optional[str],
    token_b: Optional[str],
    token_a_decimals: int = 6,
    token_b_decimals: int = 18,
) -> Optional[int]:
    """
    Price of `token_a` expressed in `token_b`, WAD-scaled.

    Returns None until the pool state and both tokens are known, 0 for an
    uninitialized pool (sqrtPriceX96 == 0) or on any arithmetic failure.
    The lower-cased lexicographically smaller address is the pool's token0.
    """
    if pool_state is None or not token_a or not token_b:
        return None

    sqrt_price_x96 = int(pool_state.sqrt_price_x96)
    if sqrt_price_x96 == 0:
        return 0

    try:
        is_a_token0 = token_a.lower() < token_b.lower()

        # (sqrtPriceX96 / 2^96)^2 in WAD: token1 per token0, raw units
        sqrt_price = (sqrt_price_x96 * WAD) // Q96
        raw_price = (sqrt_price * sqrt_price) // WAD

        decimals_diff = int(token_b_decimals) - int(token_a_decimals)

        if is_a_token0:
            if raw_price == 0:
                return 0
            inverted = INVERSE_SCALE // raw_price
            return _div_pow10(inverted, decimals_diff)

        return _mul_pow10(raw_price, decimals_diff)
    except (ArithmeticError, ValueError, TypeError) as exc:
        logger.warning("spot price computation failed for %s/%s: %s", token_a, token_b, exc)
        return 0


def human_price(spot_price: Optional[int]) -> Optional[Decimal]:
    if spot_price is None:
        return None
    return Decimal(int(spot_price)) / Decimal(WAD)


class SpotPriceReader:
    """
    Pool resolution + polled `slot0()` for one token pair.

    The pool state keeps its previous value while a refetch is running, so
    `spot_price` never flips back to None between polls.
    """

    def __init__(
        self,
        gateway: ChainGateway,
        config: SwapConfig,
        *,
        clock: Callable[[], float] = time.monotonic,
    ):
        self._gateway = gateway
        self._config = config
        self._calls = UniswapV3Calls(config)

        self.token_a: Optional[str] = None
        self.token_b: Optional[str] = None
        self.token_a_decimals = 6
        self.token_b_decimals = 18
        self.enabled = True

        self._pool: ContractQuery[Optional[str]] = ContractQuery(
            self.resolve_pool, name="spot_price.pool"
        )
        self._slot0: ContractQuery[PoolState] = ContractQuery(
            self.read_pool_state,
            name="spot_price.slot0",
            keep_previous_data=True,
            refetch_interval_sec=config.pool_state_refresh_sec,
            clock=clock,
        )

    # ---------- one-shot reads ----------

    def resolve_pool(self, token_a: str, token_b: str, fee: Optional[int] = None) -> Optional[str]:
        """Pool address for the pair at `fee` (configured tier by default); None if no pool exists."""
        fee = self._config.pool_fee if fee is None else int(fee)
        addr = self._gateway.read_contract(self._calls.get_pool(token_a, token_b, fee))
        if not addr or same_address(addr, ZERO_ADDRESS):
            return None
        return addr

    def read_pool_state(self, pool_address: str) -> PoolState:
        return PoolState.from_slot0(self._gateway.read_contract(self._calls.slot0(pool_address)))

    def token_decimals(self, token: str) -> int:
        """ERC20 `decimals()`; the native sentinel reports 18."""
        if self._config.is_native(token):
            return 18
        return int(self._gateway.read_contract(self._calls.decimals(token)))

    # ---------- subscription ----------

    def track(
        self,
        token_a: Optional[str],
        token_b: Optional[str],
        token_a_decimals: int = 6,
        token_b_decimals: int = 18,
        *,
        enabled: bool = True,
    ) -> "SpotPriceReader":
        self.token_a = token_a
        self.token_b = token_b
        self.token_a_decimals = int(token_a_decimals)
        self.token_b_decimals = int(token_b_decimals)
        self.enabled = enabled
        self.refresh()
        return self

    def refresh(self) -> None:
        a, b = self.token_a, self.token_b
        self._pool.sync(
            (a, b, self._config.pool_fee),
            enabled=bool(a and b and self.enabled and self._config.factory_address),
        )
        pool = self.pool_address
        self._slot0.sync((pool,), enabled=bool(pool) and self.enabled)

    def refetch(self) -> None:
        self._slot0.refetch()

    @property
    def pool_address(self) -> Optional[str]:
        return self._pool.data

    @property
    def pool_state(self) -> Optional[PoolState]:
        return self._slot0.data

    @property
    def is_loading(self) -> bool:
        return self._pool.is_loading or self._slot0.is_loading

    @property
    def error(self) -> Optional[BaseException]:
        return self._pool.error or self._slot0.error

    @property
    def spot_price(self) -> Optional[int]:
        a = self._config.pool_token(self.token_a) if self.token_a else None
        b = self._config.pool_token(self.token_b) if self.token_b else None
        return compute_spot_price(
            self.pool_state,
            a,
            b,
            self.token_a_decimals,
            self.token_b_decimals,
        )
