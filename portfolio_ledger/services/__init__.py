"""Lot matching, position aggregation, income reports and the ledger service."""

from .income import IncomeByMonth, IncomeBySymbol, IncomeSummary, summarize_income
from .ledger import TransactionLedger
from .lots import FifoResult, OpenLot, TradeInput, match_fifo
from .positions import calculate_position, calculate_positions, summarize_positions

__all__ = [
    "FifoResult",
    "IncomeByMonth",
    "IncomeBySymbol",
    "IncomeSummary",
    "OpenLot",
    "TradeInput",
    "TransactionLedger",
    "calculate_position",
    "calculate_positions",
    "match_fifo",
    "summarize_income",
    "summarize_positions",
]
