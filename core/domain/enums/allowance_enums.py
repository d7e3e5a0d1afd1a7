from __future__ import annotations

from enum import StrEnum


class AllowancePhase(StrEnum):
    """
    Lifecycle of the spender-allowance handshake for one trade attempt.

    UNKNOWN: allowance not read yet (treated as unsatisfied).
    SATISFIED: allowance covers the required amount, amount is zero or asset is native.
    UNSATISFIED: allowance read and too low, or the last approval attempt failed.
    SUBMITTING: approval transaction is being handed to the signer.
    AWAITING_RECEIPT: approval broadcast, receipt not observed yet.
    """

    UNKNOWN = "UNKNOWN"
    SATISFIED = "SATISFIED"
    UNSATISFIED = "UNSATISFIED"
    SUBMITTING = "SUBMITTING"
    AWAITING_RECEIPT = "AWAITING_RECEIPT"
