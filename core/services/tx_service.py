from __future__ import annotations

import logging
from typing import Dict, Optional, Tuple

from eth_account import Account
from web3 import Web3
from web3.contract.contract import ContractFunction

from core.domain.enums.tx_enums import GasStrategy

logger = logging.getLogger(__name__)

# strategy -> (multiplier, flat padding) applied on top of eth_estimateGas
GAS_PADDING: Dict[GasStrategy, Tuple[float, int]] = {
    GasStrategy.DEFAULT: (1.0, 0),
    GasStrategy.BUFFERED: (1.25, 10_000),
    GasStrategy.AGGRESSIVE: (1.5, 25_000),
}
FALLBACK_GAS_LIMIT = 300_000


class TxService:
    """
    Signs and broadcasts approvals and swaps for one private key.

    Only the hash is returned; receipts are followed by the caller
    (TransactionTracker) so nothing here blocks on mining.
    """

    def __init__(self, w3: Web3, private_key: str, *, chain_id: Optional[int] = None):
        self.w3 = w3
        self._key = private_key
        self.signer = Account.from_key(private_key)
        self.chain_id = chain_id

    def sender_address(self) -> str:
        return self.signer.address

    def gas_limit_for(self, tx: dict, strategy: GasStrategy) -> int:
        """Node estimate padded per strategy; a failing estimate falls back to 300k."""
        try:
            estimate = int(self.w3.eth.estimate_gas(tx))
        except Exception as exc:  # noqa: BLE001
            logger.warning("estimate_gas failed for %s, using %d: %s", tx.get("to"), FALLBACK_GAS_LIMIT, exc)
            estimate = FALLBACK_GAS_LIMIT

        multiplier, flat = GAS_PADDING.get(strategy, GAS_PADDING[GasStrategy.DEFAULT])
        return int(estimate * multiplier) + flat

    def _apply_fees(self, tx: dict) -> dict:
        if any(k in tx for k in ("gasPrice", "maxFeePerGas", "maxPriorityFeePerGas")):
            return tx

        base_fee = self.w3.eth.get_block("latest").get("baseFeePerGas")
        if base_fee is None:
            tx["gasPrice"] = int(self.w3.eth.gas_price)
            return tx

        tip = int(self.w3.eth.max_priority_fee)
        tx["maxPriorityFeePerGas"] = tip
        tx["maxFeePerGas"] = int(base_fee) * 2 + tip
        return tx

    def send(
        self,
        fn: ContractFunction,
        *,
        value: int = 0,
        gas_limit: Optional[int] = None,
        gas_strategy: GasStrategy = GasStrategy.BUFFERED,
    ) -> str:
        """
        Build, sign and broadcast `fn`.

        Args:
            fn: parameterized web3 ContractFunction (approve, exactInputSingle, multicall)
            value: wei attached to the call (native-input swaps)
            gas_limit: skip estimation and use this limit
            gas_strategy: padding applied to the node estimate

        Returns:
            "0x..." transaction hash.
        """
        params = {
            "from": self.signer.address,
            "nonce": self.w3.eth.get_transaction_count(self.signer.address, "pending"),
            "value": int(value or 0),
        }
        if self.chain_id:
            params["chainId"] = int(self.chain_id)

        tx = fn.build_transaction(params)
        tx["gas"] = int(gas_limit) if gas_limit is not None else self.gas_limit_for(tx, gas_strategy)
        tx = self._apply_fees(tx)

        signed = self.w3.eth.account.sign_transaction(tx, self._key)
        tx_hash = Web3.to_hex(self.w3.eth.send_raw_transaction(signed.raw_transaction))
        logger.info("sent %s tx=%s gas=%s value=%s", fn.fn_name, tx_hash, tx["gas"], tx["value"])
        return tx_hash
