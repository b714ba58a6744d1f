"""Currency-checked monetary amounts."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from typing import Union

from ..errors import CurrencyMismatchError, LedgerValidationError

Number = Union[Decimal, int, float, str]


class Currency(str, enum.Enum):
    """ISO 4217 codes supported by the ledger."""

    USD = "USD"
    EUR = "EUR"
    GBP = "GBP"
    JPY = "JPY"
    CAD = "CAD"
    AUD = "AUD"
    CHF = "CHF"
    CNY = "CNY"
    PLN = "PLN"

    @classmethod
    def parse(cls, value: Currency | str) -> Currency:
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().upper())
        except ValueError:
            raise LedgerValidationError(f"Unsupported currency: {value!r}") from None


def to_decimal(value: Number, name: str = "value") -> Decimal:
    """Convert user input to Decimal without binary float artefacts."""

    if isinstance(value, Decimal):
        result = value
    elif isinstance(value, bool):
        raise LedgerValidationError(f"{name} must be numeric")
    else:
        try:
            result = Decimal(str(value))
        except (InvalidOperation, ValueError):
            raise LedgerValidationError(f"{name} must be numeric, got {value!r}") from None
    if not result.is_finite():
        raise LedgerValidationError(f"{name} must be finite")
    return result


@dataclass(frozen=True)
class Money:
    """Immutable non-negative amount in a single currency."""

    amount: Decimal
    currency: Currency

    def __post_init__(self) -> None:
        amount = to_decimal(self.amount, "amount")
        if amount < 0:
            raise LedgerValidationError("Money amount cannot be negative")
        object.__setattr__(self, "amount", amount)
        object.__setattr__(self, "currency", Currency.parse(self.currency))

    @classmethod
    def zero(cls, currency: Currency | str) -> Money:
        return cls(Decimal("0"), currency)

    def add(self, other: Money) -> Money:
        self._check_currency("add", other)
        return Money(self.amount + other.amount, self.currency)

    def subtract(self, other: Money) -> Money:
        self._check_currency("subtract", other)
        return Money(self.amount - other.amount, self.currency)

    def multiply(self, factor: Number) -> Money:
        factor = to_decimal(factor, "factor")
        if factor < 0:
            raise LedgerValidationError("Multiplication factor cannot be negative")
        return Money(self.amount * factor, self.currency)

    def _check_currency(self, operation: str, other: Money) -> None:
        if self.currency != other.currency:
            raise CurrencyMismatchError(operation, self.currency.value, other.currency.value)

    __add__ = add
    __sub__ = subtract

    def __str__(self) -> str:
        return f"{self.amount:,.2f} {self.currency.value}"


__all__ = ["Currency", "Money", "Number", "to_decimal"]
