from datetime import date, datetime, timedelta, timezone
from decimal import Decimal

import pytest

from portfolio_ledger.errors import CurrencyMismatchError, InvalidOperationError, LedgerValidationError
from portfolio_ledger.events import (
    BuyTransactionRecorded,
    DividendReceived,
    InterestReceived,
    SellTransactionRecorded,
    TransactionCancelled,
    TransactionUpdated,
)
from portfolio_ledger.models import Money, Symbol, Transaction, TransactionStatus, TransactionType

from conftest import buy, dividend, sell, usd, utc


def test_record_buy_sets_fields_and_event(portfolio_id):
    tx = buy(portfolio_id, "aapl", 10, "150.25", utc(2024, 1, 2), fee="1.5")
    assert tx.type is TransactionType.BUY
    assert tx.status is TransactionStatus.ACTIVE
    assert tx.symbol.ticker == "AAPL"
    assert tx.quantity == Decimal("10")
    assert tx.notional_value == usd("1502.50")
    [event] = tx.pending_events
    assert isinstance(event, BuyTransactionRecorded)
    assert event.transaction_id == tx.id
    assert event.portfolio_id == portfolio_id
    assert event.fee == usd("1.5")


@pytest.mark.parametrize("quantity", [0, -1])
def test_trades_require_positive_quantity(portfolio_id, quantity):
    with pytest.raises(LedgerValidationError, match="greater than zero"):
        buy(portfolio_id, "AAPL", quantity, 10, utc(2024, 1, 2))
    with pytest.raises(LedgerValidationError):
        sell(portfolio_id, "AAPL", quantity, 10, utc(2024, 1, 2))


def test_fee_currency_must_match_price(portfolio_id):
    with pytest.raises(CurrencyMismatchError):
        Transaction.record_buy(
            portfolio_id,
            Symbol.stock("SAP", "XETRA"),
            Decimal("1"),
            Money(Decimal("100"), "EUR"),
            utc(2024, 1, 2),
            fee=Money(Decimal("1"), "USD"),
        )


def test_sell_records_sale_event(portfolio_id):
    tx = sell(portfolio_id, "MSFT", 5, 300, utc(2024, 2, 1))
    [event] = tx.pull_events()
    assert isinstance(event, SellTransactionRecorded)
    assert event.sale_price == usd(300)
    assert tx.pending_events == ()


def test_dividend_default_tax_rate(portfolio_id):
    tx = dividend(portfolio_id, "KO", 1000, utc(2024, 3, 1))
    assert tx.tax_rate == Decimal("19")
    assert tx.tax_withheld == usd(190)
    assert tx.net_amount == usd(810)
    [event] = tx.pending_events
    assert isinstance(event, DividendReceived)
    assert event.net_amount == usd(810)


def test_dividend_explicit_tax_rate(portfolio_id):
    tx = dividend(portfolio_id, "KO", 1000, utc(2024, 3, 1), tax_rate=15)
    assert tx.tax_withheld == usd(150)
    assert tx.net_amount == usd(850)


def test_interest_uses_supplied_default(portfolio_id):
    tx = Transaction.record_interest(
        portfolio_id, Symbol.bond("US10Y", "OTC"), usd(200), utc(2024, 6, 30), default_tax_rate=0
    )
    assert tx.type is TransactionType.INTEREST
    assert tx.tax_rate == Decimal("0")
    assert tx.net_amount == usd(200)
    assert isinstance(tx.pending_events[0], InterestReceived)


@pytest.mark.parametrize("rate", [-1, Decimal("100.01")])
def test_tax_rate_bounds(portfolio_id, rate):
    with pytest.raises(LedgerValidationError, match="between 0 and 100"):
        dividend(portfolio_id, "KO", 100, utc(2024, 3, 1), tax_rate=rate)


def test_maturity_date_only_for_bonds(portfolio_id):
    with pytest.raises(LedgerValidationError, match="only valid for bonds"):
        Transaction.record_buy(
            portfolio_id, Symbol.stock("AAPL", "NASDAQ"), 1, usd(1), utc(2024, 1, 1), maturity_date=utc(2030, 1, 1)
        )
    bond = Transaction.record_buy(
        portfolio_id, Symbol.bond("US10Y", "OTC"), 10, usd(98), utc(2024, 1, 1), maturity_date=date(2034, 1, 15)
    )
    assert bond.maturity_date == utc(2034, 1, 15)


def test_dates_are_normalised_to_utc(portfolio_id):
    naive = buy(portfolio_id, "AAPL", 1, 1, datetime(2024, 5, 1, 12, 0))
    assert naive.transaction_date == datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
    plus_two = timezone(timedelta(hours=2))
    aware = buy(portfolio_id, "AAPL", 1, 1, datetime(2024, 5, 1, 12, 0, tzinfo=plus_two))
    assert aware.transaction_date == datetime(2024, 5, 1, 10, 0, tzinfo=timezone.utc)


def test_update_trade_fields(portfolio_id):
    tx = buy(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 2))
    tx.pull_events()
    changes = tx.update(quantity=12, price_per_unit=usd(101), notes="corrected", gross_amount=usd(5))
    assert set(changes) == {"quantity", "price_per_unit", "notes"}
    assert tx.quantity == Decimal("12")
    assert tx.price_per_unit == usd(101)
    assert tx.gross_amount is None
    [event] = tx.pull_events()
    assert isinstance(event, TransactionUpdated)
    assert event.changes["quantity"] == Decimal("12")


def test_update_income_recomputes_withholding(portfolio_id):
    tx = dividend(portfolio_id, "KO", 1000, utc(2024, 3, 1))
    tx.update(tax_rate=10)
    assert tx.tax_withheld == usd(100)
    assert tx.net_amount == usd(900)
    tx.update(gross_amount=usd(500))
    assert tx.tax_rate == Decimal("10")
    assert tx.net_amount == usd(450)


def test_update_is_all_or_nothing(portfolio_id):
    tx = buy(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 2))
    with pytest.raises(LedgerValidationError):
        tx.update(price_per_unit=usd(200), quantity=0)
    assert tx.price_per_unit == usd(100)
    assert tx.quantity == Decimal("10")


def test_update_rejects_currency_change(portfolio_id):
    tx = buy(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 2))
    with pytest.raises(CurrencyMismatchError):
        tx.update(price_per_unit=Money(Decimal("90"), "EUR"))


def test_empty_update_records_nothing(portfolio_id):
    tx = buy(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 2))
    tx.pull_events()
    assert tx.update() == {}
    assert tx.pending_events == ()


def test_cancel_and_guards(portfolio_id):
    tx = sell(portfolio_id, "AAPL", 1, 1, utc(2024, 1, 2))
    tx.pull_events()
    tx.cancel()
    assert tx.status is TransactionStatus.CANCELLED
    assert not tx.is_active
    assert isinstance(tx.pending_events[0], TransactionCancelled)
    with pytest.raises(InvalidOperationError, match="already cancelled"):
        tx.cancel()
    with pytest.raises(InvalidOperationError, match="cancelled transaction"):
        tx.update(notes="late")
