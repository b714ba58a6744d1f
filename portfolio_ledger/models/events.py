"""Domain events recorded by transactions."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field, fields
from datetime import date, datetime, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID, uuid4

from .money import Money
from .symbol import Symbol


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _json_safe(value: Any) -> Any:
    if isinstance(value, Money):
        return {"amount": str(value.amount), "currency": value.currency.value}
    if isinstance(value, Symbol):
        return {
            "ticker": value.ticker,
            "exchange": value.exchange,
            "asset_type": value.asset_type.value,
        }
    if isinstance(value, enum.Enum):
        return value.value
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, dict):
        return {key: _json_safe(item) for key, item in value.items()}
    if isinstance(value, (list, tuple)):
        return [_json_safe(item) for item in value]
    return value


@dataclass(frozen=True)
class DomainEvent:
    """Base event; subclasses add their own data fields."""

    transaction_id: UUID
    portfolio_id: UUID

    event_id: UUID = field(default_factory=uuid4, kw_only=True)
    occurred_at: datetime = field(default_factory=_utcnow, kw_only=True)
    version: int = field(default=1, kw_only=True)

    @property
    def event_type(self) -> str:
        return type(self).__name__

    def to_payload(self) -> dict[str, Any]:
        """Return a JSON-serialisable dict of all event fields."""

        return {f.name: _json_safe(getattr(self, f.name)) for f in fields(self)}


@dataclass(frozen=True)
class BuyTransactionRecorded(DomainEvent):
    symbol: Symbol
    quantity: Decimal
    price_per_unit: Money
    fee: Money | None
    transaction_date: datetime
    maturity_date: datetime | None = None


@dataclass(frozen=True)
class SellTransactionRecorded(DomainEvent):
    symbol: Symbol
    quantity: Decimal
    sale_price: Money
    fee: Money | None
    transaction_date: datetime


@dataclass(frozen=True)
class DividendReceived(DomainEvent):
    symbol: Symbol
    gross_amount: Money
    tax_rate: Decimal
    tax_withheld: Money
    net_amount: Money
    payment_date: datetime


@dataclass(frozen=True)
class InterestReceived(DomainEvent):
    symbol: Symbol
    gross_amount: Money
    tax_rate: Decimal
    tax_withheld: Money
    net_amount: Money
    payment_date: datetime


@dataclass(frozen=True)
class TransactionUpdated(DomainEvent):
    # new values of every field the update touched, derived amounts included
    changes: dict[str, Any]


@dataclass(frozen=True)
class TransactionCancelled(DomainEvent):
    pass


__all__ = [
    "DomainEvent",
    "BuyTransactionRecorded",
    "SellTransactionRecorded",
    "DividendReceived",
    "InterestReceived",
    "TransactionUpdated",
    "TransactionCancelled",
]
