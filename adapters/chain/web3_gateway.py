# adapters/chain/web3_gateway.py

from __future__ import annotations

import logging
import re
from time import monotonic
from typing import Any, Dict, Optional, Tuple

from web3 import Web3
from web3.exceptions import TimeExhausted, TransactionNotFound
from web3.providers.rpc import HTTPProvider

from adapters.chain.abis import abi_for
from config import Settings
from core.domain.enums.tx_enums import GasStrategy
from core.domain.gateways import ChainGateway
from core.domain.schemas.swap_types import ContractCall, SimulationResult, TransactionReceipt
from core.services.exceptions import ReceiptTimeoutError, TransactionRevertedError
from core.services.tx_service import TxService
from core.services.utils import to_json_safe

logger = logging.getLogger(__name__)

_ADDRESS_RE = re.compile(r"^0x[0-9a-fA-F]{40}$")

_WEB3_BY_URL: Dict[str, Tuple[float, Web3]] = {}
WEB3_CACHE_TTL_SEC = 600
RPC_TIMEOUT_SEC = 30


def get_web3(rpc_url: str, *, ttl_sec: float = WEB3_CACHE_TTL_SEC) -> Web3:
    """One HTTPProvider per RPC url, rebuilt after `ttl_sec`."""
    url = (rpc_url or "").strip()
    if not url:
        raise ValueError("RPC_URL_DEFAULT not configured")

    cached = _WEB3_BY_URL.get(url)
    if cached is not None and monotonic() - cached[0] < ttl_sec:
        return cached[1]

    logger.info("connecting web3 provider %s", url)
    w3 = Web3(HTTPProvider(url, request_kwargs={"timeout": RPC_TIMEOUT_SEC}))
    _WEB3_BY_URL[url] = (monotonic(), w3)
    return w3


def _checksum_args(value: Any) -> Any:
    """web3.py rejects non-checksummed addresses, so normalize every address-looking string."""
    if isinstance(value, str) and _ADDRESS_RE.match(value):
        return Web3.to_checksum_address(value)
    if isinstance(value, dict):
        return {k: _checksum_args(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return type(value)(_checksum_args(v) for v in value)
    return value


class Web3ChainGateway(ChainGateway):
    """
    `ChainGateway` over web3.py.

    Reads and simulations are plain `eth_call`s; writes go through `TxService`
    (absent when no private key is configured, which makes the gateway read-only).
    """

    def __init__(
        self,
        w3: Web3,
        tx_service: Optional[TxService] = None,
        *,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
    ):
        self.w3 = w3
        self.tx_service = tx_service
        self.gas_strategy = gas_strategy

    @classmethod
    def from_settings(cls, s: Settings) -> "Web3ChainGateway":
        w3 = get_web3(s.RPC_URL_DEFAULT)
        tx = TxService(w3, s.PRIVATE_KEY, chain_id=s.DEFAULT_CHAIN_ID) if s.PRIVATE_KEY else None
        return cls(w3, tx, gas_strategy=GasStrategy.parse(s.GAS_STRATEGY))

    # ---------- helpers ----------

    def _contract(self, call: ContractCall):
        return self.w3.eth.contract(address=Web3.to_checksum_address(call.address), abi=abi_for(call.contract))

    def _function(self, call: ContractCall):
        return self._contract(call).functions[call.function_name](*_checksum_args(tuple(call.args)))

    # ---------- ChainGateway ----------

    def account(self) -> Optional[str]:
        return self.tx_service.sender_address() if self.tx_service else None

    def read_contract(self, call: ContractCall) -> Any:
        return self._function(call).call()

    def simulate_contract(self, call: ContractCall) -> SimulationResult:
        tx: Dict[str, Any] = {"value": int(call.value or 0)}
        sender = self.account()
        if sender:
            tx["from"] = sender
        result = self._function(call).call(tx)
        return SimulationResult(request=call, result=result)

    def submit_contract(self, call: ContractCall) -> str:
        if self.tx_service is None:
            raise RuntimeError("No signer configured (PRIVATE_KEY missing)")
        return self.tx_service.send(
            self._function(call),
            value=int(call.value or 0),
            gas_strategy=self.gas_strategy,
        )

    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        try:
            rcpt = self.w3.eth.get_transaction_receipt(tx_hash)
        except TransactionNotFound:
            return None
        return self._to_receipt(tx_hash, rcpt)

    def wait_for_transaction_receipt(self, tx_hash: str, timeout: float) -> TransactionReceipt:
        try:
            rcpt = self.w3.eth.wait_for_transaction_receipt(tx_hash, timeout=timeout)
        except TimeExhausted as exc:
            raise ReceiptTimeoutError(tx_hash, timeout) from exc
        return self._to_receipt(tx_hash, rcpt)

    def get_balance(self, owner: str, token: Optional[str] = None) -> int:
        owner_cs = Web3.to_checksum_address(owner)
        if token is None:
            return int(self.w3.eth.get_balance(owner_cs))
        erc20 = self.w3.eth.contract(address=Web3.to_checksum_address(token), abi=abi_for("erc20"))
        return int(erc20.functions.balanceOf(owner_cs).call())

    def encode_call_data(self, call: ContractCall) -> str:
        return self._contract(call).encode_abi(call.function_name, args=list(_checksum_args(tuple(call.args))))

    @staticmethod
    def _to_receipt(tx_hash: str, rcpt: Any) -> TransactionReceipt:
        status = int(rcpt.get("status", 0))
        if status == 0:
            raise TransactionRevertedError(
                tx_hash=tx_hash,
                receipt=to_json_safe(dict(rcpt)),
                msg=f"Transaction {tx_hash} reverted on-chain (status 0)",
            )
        return TransactionReceipt(
            hash=tx_hash,
            status=status,
            block_number=rcpt.get("blockNumber"),
            gas_used=rcpt.get("gasUsed"),
        )
