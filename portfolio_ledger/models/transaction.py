"""Ledger entries and their create / update / cancel lifecycle."""

from __future__ import annotations

import enum
from dataclasses import dataclass, field
from datetime import date, datetime, time, timezone
from decimal import Decimal
from typing import Any
from uuid import UUID

from ..errors import CurrencyMismatchError, InvalidOperationError, LedgerValidationError
from .events import (
    BuyTransactionRecorded,
    DividendReceived,
    DomainEvent,
    InterestReceived,
    SellTransactionRecorded,
    TransactionCancelled,
    TransactionUpdated,
)
from .ids import new_id, parse_id
from .money import Money, Number, to_decimal
from .symbol import AssetType, Symbol

DEFAULT_TAX_RATE = Decimal("19")
_HUNDRED = Decimal("100")


class TransactionType(str, enum.Enum):
    BUY = "BUY"
    SELL = "SELL"
    DIVIDEND = "DIVIDEND"
    INTEREST = "INTEREST"

    @property
    def is_trade(self) -> bool:
        return self in (TransactionType.BUY, TransactionType.SELL)

    @property
    def is_income(self) -> bool:
        return self in (TransactionType.DIVIDEND, TransactionType.INTEREST)


class TransactionStatus(str, enum.Enum):
    ACTIVE = "Active"
    CANCELLED = "Cancelled"


def to_utc(value: datetime | date) -> datetime:
    """Normalise to an aware UTC datetime; naive values are taken as UTC."""

    if not isinstance(value, datetime):
        if not isinstance(value, date):
            raise LedgerValidationError(f"Expected a date or datetime, got {value!r}")
        value = datetime.combine(value, time.min)
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _positive_quantity(quantity: Number) -> Decimal:
    value = to_decimal(quantity, "quantity")
    if value <= 0:
        raise LedgerValidationError("Quantity must be greater than zero")
    return value


def _tax_rate(rate: Number | None, default: Number) -> Decimal:
    value = to_decimal(default if rate is None else rate, "tax rate")
    if value < 0 or value > _HUNDRED:
        raise LedgerValidationError("Tax rate must be between 0 and 100")
    return value


def _withholding(gross: Money, rate: Decimal) -> tuple[Money, Money]:
    tax = Money(gross.amount * rate / _HUNDRED, gross.currency)
    return tax, gross.subtract(tax)


def _matching_fee(fee: Money | None, price: Money) -> Money | None:
    if fee is not None and fee.currency != price.currency:
        raise CurrencyMismatchError("combine", price.currency.value, fee.currency.value)
    return fee


@dataclass(frozen=True, eq=False)
class Transaction:
    """One ledger entry.

    Build instances with the ``record_*`` factories; change them only through
    :meth:`update` and :meth:`cancel`. The plain constructor is used to
    rehydrate stored rows and performs no event recording.
    """

    id: UUID
    portfolio_id: UUID
    type: TransactionType
    symbol: Symbol
    transaction_date: datetime
    status: TransactionStatus = TransactionStatus.ACTIVE
    notes: str | None = None

    quantity: Decimal | None = None
    price_per_unit: Money | None = None
    fee: Money | None = None
    maturity_date: datetime | None = None

    gross_amount: Money | None = None
    tax_rate: Decimal | None = None
    tax_withheld: Money | None = None
    net_amount: Money | None = None

    _events: list[DomainEvent] = field(default_factory=list, init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        if self.symbol is None:
            raise LedgerValidationError("Transaction symbol is required")
        object.__setattr__(self, "type", TransactionType(self.type))
        object.__setattr__(self, "status", TransactionStatus(self.status))
        object.__setattr__(self, "transaction_date", to_utc(self.transaction_date))
        if self.maturity_date is not None:
            object.__setattr__(self, "maturity_date", to_utc(self.maturity_date))
        if self.type.is_trade:
            if self.price_per_unit is None:
                raise LedgerValidationError(f"{self.type.value} requires a price per unit")
            object.__setattr__(self, "quantity", _positive_quantity(self.quantity))
            _matching_fee(self.fee, self.price_per_unit)
        else:
            if self.gross_amount is None or self.net_amount is None or self.tax_withheld is None:
                raise LedgerValidationError(f"{self.type.value} requires gross, tax and net amounts")

    # -- factories -----------------------------------------------------------------

    @classmethod
    def record_buy(
        cls,
        portfolio_id: UUID | str,
        symbol: Symbol,
        quantity: Number,
        price_per_unit: Money,
        transaction_date: datetime | date,
        *,
        fee: Money | None = None,
        maturity_date: datetime | date | None = None,
        notes: str | None = None,
    ) -> Transaction:
        if maturity_date is not None and symbol.asset_type != AssetType.BOND:
            raise LedgerValidationError("Maturity date is only valid for bonds")
        tx = cls(
            id=new_id(),
            portfolio_id=parse_id(portfolio_id, "portfolio id"),
            type=TransactionType.BUY,
            symbol=symbol,
            transaction_date=transaction_date,
            quantity=_positive_quantity(quantity),
            price_per_unit=price_per_unit,
            fee=fee,
            maturity_date=maturity_date,
            notes=notes,
        )
        tx._record(
            BuyTransactionRecorded(
                tx.id,
                tx.portfolio_id,
                symbol=tx.symbol,
                quantity=tx.quantity,
                price_per_unit=tx.price_per_unit,
                fee=tx.fee,
                transaction_date=tx.transaction_date,
                maturity_date=tx.maturity_date,
            )
        )
        return tx

    @classmethod
    def record_sell(
        cls,
        portfolio_id: UUID | str,
        symbol: Symbol,
        quantity: Number,
        sale_price: Money,
        transaction_date: datetime | date,
        *,
        fee: Money | None = None,
        notes: str | None = None,
    ) -> Transaction:
        tx = cls(
            id=new_id(),
            portfolio_id=parse_id(portfolio_id, "portfolio id"),
            type=TransactionType.SELL,
            symbol=symbol,
            transaction_date=transaction_date,
            quantity=_positive_quantity(quantity),
            price_per_unit=sale_price,
            fee=fee,
            notes=notes,
        )
        tx._record(
            SellTransactionRecorded(
                tx.id,
                tx.portfolio_id,
                symbol=tx.symbol,
                quantity=tx.quantity,
                sale_price=tx.price_per_unit,
                fee=tx.fee,
                transaction_date=tx.transaction_date,
            )
        )
        return tx

    @classmethod
    def record_dividend(
        cls,
        portfolio_id: UUID | str,
        symbol: Symbol,
        gross_amount: Money,
        payment_date: datetime | date,
        *,
        tax_rate: Number | None = None,
        default_tax_rate: Number = DEFAULT_TAX_RATE,
        notes: str | None = None,
    ) -> Transaction:
        return cls._record_income(
            TransactionType.DIVIDEND,
            portfolio_id,
            symbol,
            gross_amount,
            payment_date,
            tax_rate=tax_rate,
            default_tax_rate=default_tax_rate,
            notes=notes,
        )

    @classmethod
    def record_interest(
        cls,
        portfolio_id: UUID | str,
        symbol: Symbol,
        gross_amount: Money,
        payment_date: datetime | date,
        *,
        tax_rate: Number | None = None,
        default_tax_rate: Number = DEFAULT_TAX_RATE,
        notes: str | None = None,
    ) -> Transaction:
        return cls._record_income(
            TransactionType.INTEREST,
            portfolio_id,
            symbol,
            gross_amount,
            payment_date,
            tax_rate=tax_rate,
            default_tax_rate=default_tax_rate,
            notes=notes,
        )

    @classmethod
    def _record_income(
        cls,
        tx_type: TransactionType,
        portfolio_id: UUID | str,
        symbol: Symbol,
        gross_amount: Money,
        payment_date: datetime | date,
        *,
        tax_rate: Number | None,
        default_tax_rate: Number,
        notes: str | None,
    ) -> Transaction:
        if gross_amount is None:
            raise LedgerValidationError("Gross amount is required")
        rate = _tax_rate(tax_rate, default_tax_rate)
        tax, net = _withholding(gross_amount, rate)
        tx = cls(
            id=new_id(),
            portfolio_id=parse_id(portfolio_id, "portfolio id"),
            type=tx_type,
            symbol=symbol,
            transaction_date=payment_date,
            gross_amount=gross_amount,
            tax_rate=rate,
            tax_withheld=tax,
            net_amount=net,
            notes=notes,
        )
        event_cls = DividendReceived if tx_type == TransactionType.DIVIDEND else InterestReceived
        tx._record(
            event_cls(
                tx.id,
                tx.portfolio_id,
                symbol=tx.symbol,
                gross_amount=gross_amount,
                tax_rate=rate,
                tax_withheld=tax,
                net_amount=net,
                payment_date=tx.transaction_date,
            )
        )
        return tx

    # -- lifecycle -----------------------------------------------------------------

    @property
    def is_active(self) -> bool:
        return self.status == TransactionStatus.ACTIVE

    @property
    def currency(self):
        money = self.price_per_unit if self.type.is_trade else self.gross_amount
        return money.currency

    @property
    def notional_value(self) -> Money | None:
        if not self.type.is_trade:
            return None
        return self.price_per_unit.multiply(self.quantity)

    def update(
        self,
        *,
        quantity: Number | None = None,
        price_per_unit: Money | None = None,
        fee: Money | None = None,
        gross_amount: Money | None = None,
        tax_rate: Number | None = None,
        transaction_date: datetime | date | None = None,
        maturity_date: datetime | date | None = None,
        notes: str | None = None,
    ) -> dict[str, Any]:
        """Apply the fields relevant to this transaction's type.

        Arguments that do not apply to the type are ignored. All values are
        validated before anything is changed. Returns the applied changes.
        """

        if not self.is_active:
            raise InvalidOperationError("Cannot update a cancelled transaction")

        changes: dict[str, Any] = {}
        if self.type.is_trade:
            if quantity is not None:
                changes["quantity"] = _positive_quantity(quantity)
            if price_per_unit is not None:
                if price_per_unit.currency != self.price_per_unit.currency:
                    raise CurrencyMismatchError(
                        "replace", self.price_per_unit.currency.value, price_per_unit.currency.value
                    )
                changes["price_per_unit"] = price_per_unit
            if fee is not None:
                changes["fee"] = _matching_fee(fee, self.price_per_unit)
            if maturity_date is not None and self.type == TransactionType.BUY:
                if self.symbol.asset_type != AssetType.BOND:
                    raise LedgerValidationError("Maturity date is only valid for bonds")
                changes["maturity_date"] = to_utc(maturity_date)
        else:
            if gross_amount is not None or tax_rate is not None:
                gross = gross_amount if gross_amount is not None else self.gross_amount
                if gross.currency != self.gross_amount.currency:
                    raise CurrencyMismatchError(
                        "replace", self.gross_amount.currency.value, gross.currency.value
                    )
                rate = _tax_rate(tax_rate, self.tax_rate)
                tax, net = _withholding(gross, rate)
                changes.update(gross_amount=gross, tax_rate=rate, tax_withheld=tax, net_amount=net)

        if transaction_date is not None:
            changes["transaction_date"] = to_utc(transaction_date)
        if notes is not None:
            changes["notes"] = notes

        if not changes:
            return changes
        for name, value in changes.items():
            object.__setattr__(self, name, value)
        self._record(TransactionUpdated(self.id, self.portfolio_id, changes=dict(changes)))
        return changes

    def cancel(self) -> None:
        if not self.is_active:
            raise InvalidOperationError("Transaction is already cancelled")
        object.__setattr__(self, "status", TransactionStatus.CANCELLED)
        self._record(TransactionCancelled(self.id, self.portfolio_id))

    # -- events --------------------------------------------------------------------

    def _record(self, event: DomainEvent) -> None:
        self._events.append(event)

    @property
    def pending_events(self) -> tuple[DomainEvent, ...]:
        return tuple(self._events)

    def pull_events(self) -> list[DomainEvent]:
        """Return pending events and clear them."""

        events = list(self._events)
        self._events.clear()
        return events


__all__ = [
    "DEFAULT_TAX_RATE",
    "Transaction",
    "TransactionStatus",
    "TransactionType",
    "to_utc",
]
