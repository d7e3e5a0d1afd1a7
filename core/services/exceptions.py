class SwapConfigError(Exception):
    """
    Raised when a required contract address (router, quoter, factory) is not configured.
    Nothing was sent on-chain.
    """
    def __init__(self, setting: str):
        super().__init__(f"{setting} not configured")
        self.setting = setting


class TransactionRevertedError(Exception):
    """
    Raised when the tx was actually sent on-chain, mined, and status == 0.
    You ALREADY paid gas, the chain executed and reverted.
    """
    def __init__(self, tx_hash: str, receipt: dict, msg: str):
        super().__init__(msg)
        self.tx_hash = tx_hash
        self.receipt = receipt
        self.msg = msg


class ReceiptTimeoutError(Exception):
    """
    Raised when a broadcast transaction did not get a receipt within the wait window.
    The transaction may still be mined later; only local tracking gave up.
    """
    def __init__(self, tx_hash: str, timeout: float):
        super().__init__(f"No receipt for {tx_hash} after {timeout:.0f}s")
        self.tx_hash = tx_hash
        self.timeout = timeout
