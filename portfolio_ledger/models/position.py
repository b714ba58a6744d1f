"""Computed holdings; never persisted."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from uuid import UUID

from .money import Currency, Money
from .symbol import Symbol


@dataclass(frozen=True)
class Position:
    """Holding and income for one ticker, derived from active transactions.

    Gain/loss figures are signed and expressed in ``currency``.
    """

    symbol: Symbol
    portfolio_id: UUID
    total_quantity: Decimal
    average_cost: Money
    total_cost: Money
    current_price: Money
    current_value: Money
    unrealized_gain_loss: Decimal
    unrealized_gain_loss_percent: Decimal
    realized_gain_loss: Decimal
    total_dividends: Money
    total_interest: Money
    total_income: Money
    maturity_date: datetime | None = None
    unmatched_sell_quantity: Decimal = Decimal("0")

    @property
    def currency(self) -> Currency:
        return self.total_cost.currency


@dataclass(frozen=True)
class PortfolioSummary:
    total_value: Decimal
    total_cost: Decimal
    total_unrealized_gain_loss: Decimal
    total_realized_gain_loss: Decimal
    total_dividends: Decimal
    total_interest: Decimal
    currency: str

    @property
    def total_income(self) -> Decimal:
        return self.total_dividends + self.total_interest


@dataclass(frozen=True)
class PositionsResult:
    positions: list[Position] = field(default_factory=list)
    summary: PortfolioSummary | None = None

    @property
    def total_count(self) -> int:
        return len(self.positions)


__all__ = ["Position", "PortfolioSummary", "PositionsResult"]
