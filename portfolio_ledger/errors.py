"""Exceptions raised by the ledger and the position calculator."""

from __future__ import annotations


class LedgerError(Exception):
    """Base class for all ledger errors."""


class LedgerValidationError(LedgerError, ValueError):
    """Input rejected at construction or operation time."""


class CurrencyMismatchError(LedgerValidationError):
    """Amounts in different currencies were combined."""

    def __init__(self, operation: str, left: object, right: object):
        super().__init__(f"Cannot {operation} money with different currencies: {left} and {right}")
        self.left = left
        self.right = right


class InvalidOperationError(LedgerError):
    """Operation not allowed in the transaction's current state."""


class TransactionNotFoundError(LedgerError, LookupError):
    def __init__(self, transaction_id: object):
        super().__init__(f"Transaction {transaction_id} not found")
        self.transaction_id = transaction_id


class OversellError(LedgerError):
    """Sell quantity exceeds the quantity held in open lots."""

    def __init__(self, unmatched_quantity: object):
        super().__init__(f"Sell exceeds open lots by {unmatched_quantity}")
        self.unmatched_quantity = unmatched_quantity


class AggregationError(LedgerError):
    """Malformed aggregation input; indicates a bug in the caller."""


__all__ = [
    "LedgerError",
    "LedgerValidationError",
    "CurrencyMismatchError",
    "InvalidOperationError",
    "TransactionNotFoundError",
    "OversellError",
    "AggregationError",
]
