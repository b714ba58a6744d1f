"""Instrument identity."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from ..errors import LedgerValidationError

MAX_TICKER_LENGTH = 50


class AssetType(str, enum.Enum):
    STOCK = "Stock"
    BOND = "Bond"
    ETF = "ETF"
    MUTUAL_FUND = "MutualFund"
    CRYPTO = "Crypto"
    COMMODITY = "Commodity"
    FOREX = "Forex"
    OPTION = "Option"
    FUTURE = "Future"

    @classmethod
    def parse(cls, value: AssetType | str) -> AssetType:
        if isinstance(value, cls):
            return value
        text = str(value).strip()
        for member in cls:
            if text.lower() in (member.value.lower(), member.name.lower()):
                return member
        raise LedgerValidationError(f"Unknown asset type: {value!r}")


@dataclass(frozen=True)
class Symbol:
    """Ticker, exchange and asset type; ticker and exchange are upper-cased."""

    ticker: str
    exchange: str
    asset_type: AssetType = AssetType.STOCK

    def __post_init__(self) -> None:
        ticker = (self.ticker or "").strip()
        exchange = (self.exchange or "").strip()
        if not ticker:
            raise LedgerValidationError("Ticker cannot be empty")
        if len(ticker) > MAX_TICKER_LENGTH:
            raise LedgerValidationError(f"Ticker cannot exceed {MAX_TICKER_LENGTH} characters")
        if not exchange:
            raise LedgerValidationError("Exchange cannot be empty")
        object.__setattr__(self, "ticker", ticker.upper())
        object.__setattr__(self, "exchange", exchange.upper())
        object.__setattr__(self, "asset_type", AssetType.parse(self.asset_type))

    @classmethod
    def stock(cls, ticker: str, exchange: str) -> Symbol:
        return cls(ticker, exchange, AssetType.STOCK)

    @classmethod
    def etf(cls, ticker: str, exchange: str) -> Symbol:
        return cls(ticker, exchange, AssetType.ETF)

    @classmethod
    def bond(cls, ticker: str, exchange: str) -> Symbol:
        return cls(ticker, exchange, AssetType.BOND)

    @classmethod
    def crypto(cls, ticker: str, exchange: str) -> Symbol:
        return cls(ticker, exchange, AssetType.CRYPTO)

    @property
    def full_symbol(self) -> str:
        return f"{self.ticker}.{self.exchange}"

    def __str__(self) -> str:
        return f"{self.ticker} ({self.exchange}) - {self.asset_type.value}"


__all__ = ["AssetType", "Symbol", "MAX_TICKER_LENGTH"]
