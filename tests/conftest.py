from __future__ import annotations

from typing import Any, Dict, List, Optional, Set, Tuple

import pytest

from config import NATIVE_SENTINEL_DEFAULT
from core.domain.gateways import ChainGateway
from core.domain.schemas.swap_types import (
    ZERO_ADDRESS,
    ContractCall,
    SimulationResult,
    SwapConfig,
    TransactionReceipt,
)
from core.services.exceptions import ReceiptTimeoutError, TransactionRevertedError

ACCOUNT = "0x00000000000000000000000000000000000000a1"
ROUTER = "0x00000000000000000000000000000000000000b1"
QUOTER = "0x00000000000000000000000000000000000000c1"
FACTORY = "0x00000000000000000000000000000000000000d1"
WETH = "0x00000000000000000000000000000000000000e1"
POOL = "0x00000000000000000000000000000000000000f1"
NATIVE = NATIVE_SENTINEL_DEFAULT

# TOKEN_A < TOKEN_B lexicographically, so TOKEN_A is token0 of their pool
TOKEN_A = "0x0000000000000000000000000000000000000001"
TOKEN_B = "0x0000000000000000000000000000000000000002"

Q96 = 1 << 96


def _k(addr: Optional[str]) -> Optional[str]:
    return addr.lower() if addr else None


class FakeChainGateway(ChainGateway):
    """
    In-memory chain: ERC20 allowances and balances, v3 pools, a QuoterV2 that
    returns `quote_out`, and transactions that stay pending until `mine()`.
    """

    def __init__(self, account: Optional[str] = ACCOUNT):
        self.connected = account
        self.allowances: Dict[Tuple[str, str, str], int] = {}
        self.balances: Dict[Tuple[str, Optional[str]], int] = {}
        self.token_decimals: Dict[str, int] = {}
        self.pools: Dict[Tuple[frozenset, int], str] = {}
        self.slot0: Dict[str, Tuple[Any, ...]] = {}

        self.quote_out = 0
        self.quote_failures = 0
        self.fail_reads: Dict[str, Exception] = {}
        self.fail_simulation: Dict[str, Exception] = {}
        self.fail_submit: Optional[Exception] = None
        self.mine_on_wait = True

        self.reads: List[ContractCall] = []
        self.simulations: List[ContractCall] = []
        self.submitted: List[ContractCall] = []
        self.encoded: List[ContractCall] = []
        self.balance_reads: List[Tuple[str, Optional[str]]] = []
        self.receipts: Dict[str, TransactionReceipt] = {}
        self.reverted: Set[str] = set()

    # ---------- setup helpers ----------

    def set_allowance(self, token: str, owner: str, spender: str, amount: int) -> None:
        self.allowances[(_k(token), _k(owner), _k(spender))] = int(amount)

    def set_balance(self, owner: str, token: Optional[str], amount: int) -> None:
        self.balances[(_k(owner), _k(token))] = int(amount)

    def add_pool(self, token_a: str, token_b: str, fee: int, pool: str, slot0: Tuple[Any, ...]) -> None:
        self.pools[(frozenset({_k(token_a), _k(token_b)}), int(fee))] = pool
        self.slot0[_k(pool)] = slot0

    def hash_of(self, function_name: str) -> str:
        for i, call in enumerate(self.submitted):
            if call.function_name == function_name:
                return self._hash(i)
        raise KeyError(function_name)

    @staticmethod
    def _hash(index: int) -> str:
        return "0x" + format(index + 1, "064x")

    def mine(self, tx_hash: str, status: int = 1) -> None:
        if status == 0:
            self.reverted.add(tx_hash)
            return
        call = self.submitted[int(tx_hash, 16) - 1]
        if call.function_name == "approve":
            spender, amount = call.args
            self.set_allowance(call.address, self.connected, spender, amount)
        self.receipts[tx_hash] = TransactionReceipt(hash=tx_hash, status=1, block_number=100, gas_used=21_000)

    # ---------- ChainGateway ----------

    def account(self) -> Optional[str]:
        return self.connected

    def read_contract(self, call: ContractCall) -> Any:
        self.reads.append(call)
        if call.function_name in self.fail_reads:
            raise self.fail_reads[call.function_name]

        if call.function_name == "allowance":
            owner, spender = call.args
            return self.allowances.get((_k(call.address), _k(owner), _k(spender)), 0)
        if call.function_name == "decimals":
            return self.token_decimals[_k(call.address)]
        if call.function_name == "getPool":
            a, b, fee = call.args
            return self.pools.get((frozenset({_k(a), _k(b)}), int(fee)), ZERO_ADDRESS)
        if call.function_name == "slot0":
            return self.slot0[_k(call.address)]
        raise NotImplementedError(call.function_name)

    def simulate_contract(self, call: ContractCall) -> SimulationResult:
        self.simulations.append(call)
        if call.function_name in self.fail_simulation:
            raise self.fail_simulation[call.function_name]
        if call.function_name == "quoteExactInputSingle":
            if self.quote_failures > 0:
                self.quote_failures -= 1
                raise RuntimeError("execution reverted")
            return SimulationResult(request=call, result=(self.quote_out, Q96, 1, 90_000))
        return SimulationResult(request=call, result=None)

    def submit_contract(self, call: ContractCall) -> str:
        if self.fail_submit is not None:
            raise self.fail_submit
        self.submitted.append(call)
        return self._hash(len(self.submitted) - 1)

    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        if tx_hash in self.reverted:
            raise TransactionRevertedError(tx_hash=tx_hash, receipt={"status": 0}, msg="Transaction reverted")
        return self.receipts.get(tx_hash)

    def wait_for_transaction_receipt(self, tx_hash: str, timeout: float) -> TransactionReceipt:
        if tx_hash not in self.receipts and self.mine_on_wait:
            self.mine(tx_hash)
        receipt = self.get_transaction_receipt(tx_hash)
        if receipt is None:
            raise ReceiptTimeoutError(tx_hash, timeout)
        return receipt

    def get_balance(self, owner: str, token: Optional[str] = None) -> int:
        self.balance_reads.append((owner, token))
        return self.balances.get((_k(owner), _k(token)), 0)

    def encode_call_data(self, call: ContractCall) -> str:
        self.encoded.append(call)
        return f"encoded:{call.function_name}"

    # ---------- inspection ----------

    def reads_of(self, function_name: str) -> List[ContractCall]:
        return [c for c in self.reads if c.function_name == function_name]

    def simulations_of(self, function_name: str) -> List[ContractCall]:
        return [c for c in self.simulations if c.function_name == function_name]


class FakeClock:
    def __init__(self, now: float = 1_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture
def gateway() -> FakeChainGateway:
    return FakeChainGateway()


@pytest.fixture
def config() -> SwapConfig:
    return SwapConfig(
        router_address=ROUTER,
        quoter_address=QUOTER,
        factory_address=FACTORY,
        wrapped_native_address=WETH,
        native_sentinel=NATIVE,
        chain_id=1,
        pool_fee=3000,
        quote_retries=2,
        quote_retry_delay_sec=1.0,
        pool_state_refresh_sec=30.0,
        receipt_timeout_sec=5.0,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()
