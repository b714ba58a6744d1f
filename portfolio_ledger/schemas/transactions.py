"""Pydantic schemas for recording and reading ledger transactions."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from uuid import UUID

from pydantic import BaseModel, Field

from ..models import Transaction


class _InstrumentFields(BaseModel):
    ticker: str = Field(..., examples=["AAPL"])
    exchange: str = Field(..., examples=["NASDAQ"])
    asset_type: str = Field(default="Stock", examples=["Stock", "Bond", "ETF"])
    currency: str = Field(default="USD", min_length=3, max_length=3)
    notes: str | None = None


class RecordBuyRequest(_InstrumentFields):
    quantity: Decimal
    price_per_unit: Decimal
    transaction_date: datetime
    fee: Decimal | None = None
    maturity_date: datetime | None = Field(default=None, description="Bonds only")


class RecordSellRequest(_InstrumentFields):
    quantity: Decimal
    price_per_unit: Decimal
    transaction_date: datetime
    fee: Decimal | None = None


class RecordIncomeRequest(_InstrumentFields):
    gross_amount: Decimal
    payment_date: datetime
    tax_rate: Decimal | None = Field(
        default=None,
        description="Withholding percentage; the configured default applies when omitted",
    )


class UpdateTransactionRequest(BaseModel):
    """Partial update; amounts are in the transaction's existing currency."""

    quantity: Decimal | None = None
    price_per_unit: Decimal | None = None
    fee: Decimal | None = None
    gross_amount: Decimal | None = None
    tax_rate: Decimal | None = None
    transaction_date: datetime | None = None
    maturity_date: datetime | None = None
    notes: str | None = None


class TransactionResponse(BaseModel):
    id: UUID
    portfolio_id: UUID
    type: str
    status: str
    ticker: str
    exchange: str
    asset_type: str
    currency: str
    transaction_date: datetime
    quantity: Decimal | None = None
    price_per_unit: Decimal | None = None
    fee: Decimal | None = None
    notional_value: Decimal | None = None
    maturity_date: datetime | None = None
    gross_amount: Decimal | None = None
    tax_rate: Decimal | None = None
    tax_withheld: Decimal | None = None
    net_amount: Decimal | None = None
    notes: str | None = None

    @classmethod
    def from_transaction(cls, tx: Transaction) -> TransactionResponse:
        def amount(money):
            return money.amount if money is not None else None

        return cls(
            id=tx.id,
            portfolio_id=tx.portfolio_id,
            type=tx.type.value,
            status=tx.status.value,
            ticker=tx.symbol.ticker,
            exchange=tx.symbol.exchange,
            asset_type=tx.symbol.asset_type.value,
            currency=tx.currency.value,
            transaction_date=tx.transaction_date,
            quantity=tx.quantity,
            price_per_unit=amount(tx.price_per_unit),
            fee=amount(tx.fee),
            notional_value=amount(tx.notional_value),
            maturity_date=tx.maturity_date,
            gross_amount=amount(tx.gross_amount),
            tax_rate=tx.tax_rate,
            tax_withheld=amount(tx.tax_withheld),
            net_amount=amount(tx.net_amount),
            notes=tx.notes,
        )


__all__ = [
    "RecordBuyRequest",
    "RecordSellRequest",
    "RecordIncomeRequest",
    "UpdateTransactionRequest",
    "TransactionResponse",
]
