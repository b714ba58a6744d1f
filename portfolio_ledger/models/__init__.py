"""Ledger value objects, transactions and computed positions."""

from .ids import new_id, parse_id
from .money import Currency, Money, to_decimal
from .symbol import AssetType, Symbol
from .transaction import DEFAULT_TAX_RATE, Transaction, TransactionStatus, TransactionType, to_utc
from .position import PortfolioSummary, Position, PositionsResult

__all__ = [
    "AssetType",
    "Currency",
    "DEFAULT_TAX_RATE",
    "Money",
    "PortfolioSummary",
    "Position",
    "PositionsResult",
    "Symbol",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "new_id",
    "parse_id",
    "to_decimal",
    "to_utc",
]
