"""Wire schemas for ledger requests and computed reports."""

from .positions import (
    IncomeByMonthResponse,
    IncomeBySymbolResponse,
    IncomeSummaryResponse,
    PositionResponse,
    PositionsListResponse,
    PositionsSummaryResponse,
)
from .transactions import (
    RecordBuyRequest,
    RecordIncomeRequest,
    RecordSellRequest,
    TransactionResponse,
    UpdateTransactionRequest,
)

__all__ = [
    "IncomeByMonthResponse",
    "IncomeBySymbolResponse",
    "IncomeSummaryResponse",
    "PositionResponse",
    "PositionsListResponse",
    "PositionsSummaryResponse",
    "RecordBuyRequest",
    "RecordIncomeRequest",
    "RecordSellRequest",
    "TransactionResponse",
    "UpdateTransactionRequest",
]
