"""Dividend and interest income reports."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from typing import Iterable, List

from ..models import Currency, Transaction, TransactionType

ZERO = Decimal("0")


@dataclass
class IncomeBySymbol:
    ticker: str
    exchange: str
    dividends: Decimal = ZERO
    interest: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.dividends + self.interest


@dataclass
class IncomeByMonth:
    year: int
    month: int
    dividends: Decimal = ZERO
    interest: Decimal = ZERO

    @property
    def total(self) -> Decimal:
        return self.dividends + self.interest


@dataclass
class IncomeSummary:
    total_dividends: Decimal
    total_interest: Decimal
    currency: str
    by_symbol: List[IncomeBySymbol] = field(default_factory=list)
    by_month: List[IncomeByMonth] = field(default_factory=list)

    @property
    def total_income(self) -> Decimal:
        return self.total_dividends + self.total_interest


def summarize_income(
    transactions: Iterable[Transaction],
    *,
    year: int | None = None,
    month: int | None = None,
    kind: TransactionType | None = None,
    default_currency: str = Currency.USD.value,
) -> IncomeSummary:
    """Total net income, grouped by symbol and by calendar month (UTC).

    ``kind`` limits the report to dividends or to interest.
    """

    if kind is not None and not TransactionType(kind).is_income:
        raise ValueError(f"{kind} is not an income transaction type")

    selected = [
        tx
        for tx in transactions
        if tx.is_active
        and tx.type.is_income
        and (kind is None or tx.type == kind)
        and (year is None or tx.transaction_date.year == year)
        and (month is None or tx.transaction_date.month == month)
    ]

    by_symbol: dict[tuple[str, str], IncomeBySymbol] = {}
    by_month: dict[tuple[int, int], IncomeByMonth] = {}
    for tx in selected:
        amount = tx.net_amount.amount
        sym_key = (tx.symbol.ticker, tx.symbol.exchange)
        month_key = (tx.transaction_date.year, tx.transaction_date.month)
        sym_row = by_symbol.setdefault(sym_key, IncomeBySymbol(*sym_key))
        month_row = by_month.setdefault(month_key, IncomeByMonth(*month_key))
        if tx.type == TransactionType.DIVIDEND:
            sym_row.dividends += amount
            month_row.dividends += amount
        else:
            sym_row.interest += amount
            month_row.interest += amount

    currency = selected[0].net_amount.currency.value if selected else default_currency
    return IncomeSummary(
        total_dividends=sum((row.dividends for row in by_symbol.values()), ZERO),
        total_interest=sum((row.interest for row in by_symbol.values()), ZERO),
        currency=currency,
        by_symbol=sorted(by_symbol.values(), key=lambda row: row.total, reverse=True),
        by_month=[by_month[key] for key in sorted(by_month)],
    )


__all__ = ["IncomeBySymbol", "IncomeByMonth", "IncomeSummary", "summarize_income"]
