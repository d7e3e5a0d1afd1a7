from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from core.domain.schemas.swap_types import ContractCall, SimulationResult, TransactionReceipt


class ChainGateway(ABC):
    """
    Read / simulate / write capability against one chain.

    Implementations raise on RPC or revert errors; callers (queries and
    transaction trackers) decide whether to retry, record or propagate.
    """

    @abstractmethod
    def account(self) -> Optional[str]:
        """Connected account address, or None when no signer is available."""
        raise NotImplementedError

    @abstractmethod
    def read_contract(self, call: ContractCall) -> Any:
        raise NotImplementedError

    @abstractmethod
    def simulate_contract(self, call: ContractCall) -> SimulationResult:
        """Dry-run `call` from the connected account. Raises if it would revert."""
        raise NotImplementedError

    @abstractmethod
    def submit_contract(self, call: ContractCall) -> str:
        """Broadcast `call` and return the transaction hash without waiting."""
        raise NotImplementedError

    @abstractmethod
    def get_transaction_receipt(self, tx_hash: str) -> Optional[TransactionReceipt]:
        """Receipt if mined, None while pending. Raises TransactionRevertedError on status 0."""
        raise NotImplementedError

    @abstractmethod
    def wait_for_transaction_receipt(self, tx_hash: str, timeout: float) -> TransactionReceipt:
        raise NotImplementedError

    @abstractmethod
    def get_balance(self, owner: str, token: Optional[str] = None) -> int:
        """Native balance when `token` is None, ERC20 balanceOf otherwise."""
        raise NotImplementedError

    @abstractmethod
    def encode_call_data(self, call: ContractCall) -> str:
        raise NotImplementedError
