from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional, Tuple

from config import Settings


ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"


def same_address(a: Optional[str], b: Optional[str]) -> bool:
    if not a or not b:
        return False
    return a.strip().lower() == b.strip().lower()


@dataclass(frozen=True)
class SwapConfig:
    """
    Addresses and tuning knobs shared by every swap component.

    Built once from `Settings` and injected at construction time so tests and
    multi-chain setups can run side by side with different values.
    """

    router_address: str
    quoter_address: str
    factory_address: str
    wrapped_native_address: str
    native_sentinel: str
    chain_id: int = 1
    pool_fee: int = 3000
    quote_retries: int = 2
    quote_retry_delay_sec: float = 1.0
    pool_state_refresh_sec: float = 30.0
    receipt_timeout_sec: float = 120.0

    @classmethod
    def from_settings(cls, s: Settings) -> "SwapConfig":
        return cls(
            router_address=s.SWAP_ROUTER_ADDRESS,
            quoter_address=s.QUOTER_ADDRESS,
            factory_address=s.V3_FACTORY_ADDRESS,
            wrapped_native_address=s.DEFAULT_WCOIN_ADDRESS,
            native_sentinel=s.NATIVE_TOKEN_ADDRESS,
            chain_id=int(s.DEFAULT_CHAIN_ID),
            pool_fee=int(s.POOL_FEE),
            quote_retries=int(s.QUOTE_RETRY),
            quote_retry_delay_sec=int(s.QUOTE_RETRY_DELAY_MS) / 1000.0,
            pool_state_refresh_sec=float(s.POOL_STATE_REFRESH_SEC),
            receipt_timeout_sec=float(s.RECEIPT_TIMEOUT_SEC),
        )

    def is_native(self, token: Optional[str]) -> bool:
        return same_address(token, self.native_sentinel)

    def pool_token(self, token: str) -> str:
        """Token address as seen by pools: the native sentinel maps to the wrapped asset."""
        return self.wrapped_native_address if self.is_native(token) else token


@dataclass(frozen=True)
class TradeIntent:
    """
    One exact-in trade attempt. Amounts are raw integers (smallest unit).

    Rebuild it whenever any input changes; components compare intents by value.
    """

    token_in: str
    token_out: str
    amount_in: int
    amount_out_min: int
    native_in: bool = False
    native_out: bool = False

    @classmethod
    def from_addresses(
        cls,
        token_in: str,
        token_out: str,
        amount_in: int,
        amount_out_min: int,
        *,
        native_sentinel: str,
    ) -> "TradeIntent":
        """Infer the native flags by comparing both tokens against the native sentinel."""
        return cls(
            token_in=token_in,
            token_out=token_out,
            amount_in=int(amount_in),
            amount_out_min=int(amount_out_min),
            native_in=same_address(token_in, native_sentinel),
            native_out=same_address(token_out, native_sentinel),
        )


@dataclass(frozen=True)
class ContractCall:
    """
    Request payload for read / simulate / submit / encode.

    `contract` names the ABI (see adapters.chain.abis.ABIS).
    """

    address: str
    contract: str
    function_name: str
    args: Tuple[Any, ...] = ()
    value: int = 0


@dataclass(frozen=True)
class SimulationResult:
    request: Optional[ContractCall] = None
    result: Any = None
    is_error: bool = False
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class TransactionReceipt:
    hash: str
    status: int = 1
    block_number: Optional[int] = None
    gas_used: Optional[int] = None


@dataclass(frozen=True)
class PoolState:
    """Decoded `slot0()` of a v3 pool."""

    sqrt_price_x96: int
    tick: int
    observation_index: int = 0
    observation_cardinality: int = 0
    observation_cardinality_next: int = 0
    fee_protocol: int = 0
    unlocked: bool = True

    @classmethod
    def from_slot0(cls, raw: Any) -> "PoolState":
        s = list(raw)
        return cls(
            sqrt_price_x96=int(s[0]),
            tick=int(s[1]),
            observation_index=int(s[2]) if len(s) > 2 else 0,
            observation_cardinality=int(s[3]) if len(s) > 3 else 0,
            observation_cardinality_next=int(s[4]) if len(s) > 4 else 0,
            fee_protocol=int(s[5]) if len(s) > 5 else 0,
            unlocked=bool(s[6]) if len(s) > 6 else True,
        )


@dataclass(frozen=True)
class QuoteResult:
    amount_out: Optional[int] = None
    amount_out_min: int = 0
    is_loading: bool = False
    is_error: bool = False
    error: Optional[BaseException] = None


@dataclass(frozen=True)
class Notification:
    level: str
    message: str
    description: Optional[str] = None


@dataclass
class TradeStatus:
    """Snapshot of everything a caller needs to render or report a trade attempt."""

    is_allowance_ok: bool
    is_approve_pending: bool
    is_approving: bool
    is_approve_error: bool
    has_been_approved: bool

    is_trade_pending: bool
    is_trading: bool
    is_trade_error: bool
    error: Optional[BaseException]

    balance: Optional[int]
    is_balance_ok: bool
    is_balance_loading: bool

    approval_tx_hash: Optional[str] = None
    trade_tx_hash: Optional[str] = None
    trade_receipt: Optional[TransactionReceipt] = None


@dataclass(frozen=True)
class AllowanceState:
    required_amount: int
    current_allowance: Optional[int] = None
    approval_tx_hash: Optional[str] = None
    approval_receipt: Optional[TransactionReceipt] = None
    last_error: Optional[BaseException] = None


@dataclass(frozen=True)
class ApprovalConfirmed:
    """Emitted once per mined approval transaction."""

    token: str
    spender: str
    amount: int
    receipt: TransactionReceipt
