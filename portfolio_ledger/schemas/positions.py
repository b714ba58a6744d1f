"""Pydantic schemas for positions and income reports."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from pydantic import BaseModel, Field

from ..models import PortfolioSummary, Position, PositionsResult
from ..services.income import IncomeSummary


class PositionResponse(BaseModel):
    ticker: str
    exchange: str
    asset_type: str
    total_quantity: Decimal
    average_cost: Decimal
    total_cost: Decimal
    current_price: Decimal
    current_value: Decimal
    currency: str
    unrealized_gain_loss: Decimal
    unrealized_gain_loss_percent: Decimal
    realized_gain_loss: Decimal
    total_dividends: Decimal
    total_interest: Decimal
    total_income: Decimal
    maturity_date: datetime | None = None

    @classmethod
    def from_position(cls, position: Position) -> PositionResponse:
        return cls(
            ticker=position.symbol.ticker,
            exchange=position.symbol.exchange,
            asset_type=position.symbol.asset_type.value,
            total_quantity=position.total_quantity,
            average_cost=position.average_cost.amount,
            total_cost=position.total_cost.amount,
            current_price=position.current_price.amount,
            current_value=position.current_value.amount,
            currency=position.currency.value,
            unrealized_gain_loss=position.unrealized_gain_loss,
            unrealized_gain_loss_percent=position.unrealized_gain_loss_percent,
            realized_gain_loss=position.realized_gain_loss,
            total_dividends=position.total_dividends.amount,
            total_interest=position.total_interest.amount,
            total_income=position.total_income.amount,
            maturity_date=position.maturity_date,
        )


class PositionsSummaryResponse(BaseModel):
    total_value: Decimal = Decimal("0")
    total_cost: Decimal = Decimal("0")
    total_unrealized_gain_loss: Decimal = Decimal("0")
    total_realized_gain_loss: Decimal = Decimal("0")
    total_dividends: Decimal = Decimal("0")
    total_interest: Decimal = Decimal("0")
    currency: str = "USD"

    @classmethod
    def from_summary(cls, summary: PortfolioSummary) -> PositionsSummaryResponse:
        return cls(
            total_value=summary.total_value,
            total_cost=summary.total_cost,
            total_unrealized_gain_loss=summary.total_unrealized_gain_loss,
            total_realized_gain_loss=summary.total_realized_gain_loss,
            total_dividends=summary.total_dividends,
            total_interest=summary.total_interest,
            currency=summary.currency,
        )


class PositionsListResponse(BaseModel):
    positions: list[PositionResponse] = Field(default_factory=list)
    total_count: int = 0
    summary: PositionsSummaryResponse = Field(default_factory=PositionsSummaryResponse)

    @classmethod
    def from_result(cls, result: PositionsResult) -> PositionsListResponse:
        summary = (
            PositionsSummaryResponse.from_summary(result.summary)
            if result.summary is not None
            else PositionsSummaryResponse()
        )
        return cls(
            positions=[PositionResponse.from_position(p) for p in result.positions],
            total_count=result.total_count,
            summary=summary,
        )


class IncomeBySymbolResponse(BaseModel):
    ticker: str
    exchange: str
    dividends: Decimal
    interest: Decimal
    total: Decimal


class IncomeByMonthResponse(BaseModel):
    year: int
    month: int
    dividends: Decimal
    interest: Decimal
    total: Decimal


class IncomeSummaryResponse(BaseModel):
    total_dividends: Decimal
    total_interest: Decimal
    total_income: Decimal
    currency: str = "USD"
    by_symbol: list[IncomeBySymbolResponse] = Field(default_factory=list)
    by_month: list[IncomeByMonthResponse] = Field(default_factory=list)

    @classmethod
    def from_summary(cls, summary: IncomeSummary) -> IncomeSummaryResponse:
        return cls(
            total_dividends=summary.total_dividends,
            total_interest=summary.total_interest,
            total_income=summary.total_income,
            currency=summary.currency,
            by_symbol=[
                IncomeBySymbolResponse(
                    ticker=row.ticker,
                    exchange=row.exchange,
                    dividends=row.dividends,
                    interest=row.interest,
                    total=row.total,
                )
                for row in summary.by_symbol
            ],
            by_month=[
                IncomeByMonthResponse(
                    year=row.year,
                    month=row.month,
                    dividends=row.dividends,
                    interest=row.interest,
                    total=row.total,
                )
                for row in summary.by_month
            ],
        )


__all__ = [
    "PositionResponse",
    "PositionsSummaryResponse",
    "PositionsListResponse",
    "IncomeBySymbolResponse",
    "IncomeByMonthResponse",
    "IncomeSummaryResponse",
]
