from decimal import Decimal

import pytest

from portfolio_ledger.errors import AggregationError, CurrencyMismatchError, OversellError
from portfolio_ledger.models import Symbol, Transaction, new_id
from portfolio_ledger.services import calculate_position, calculate_positions, summarize_positions

from conftest import buy, dividend, sell, usd, utc


def test_golden_fifo_position(portfolio_id):
    transactions = [
        buy(portfolio_id, "PATH", 100, 10, utc(2024, 3, 1)),
        buy(portfolio_id, "PATH", 50, 12, utc(2024, 7, 1)),
        sell(portfolio_id, "PATH", 120, 15, utc(2024, 9, 15)),
    ]
    result = calculate_positions(transactions)
    [position] = result.positions
    assert position.total_quantity == Decimal("30")
    assert position.average_cost == usd(12)
    assert position.total_cost == usd(360)
    assert position.realized_gain_loss == Decimal("560")
    # last buy price stands in for the market quote
    assert position.current_price == usd(12)
    assert position.current_value == usd(360)
    assert position.unrealized_gain_loss == Decimal("0")
    assert result.total_count == 1


def test_unrealized_gain_and_percent(portfolio_id):
    transactions = [
        buy(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 1), fee=10),
        buy(portfolio_id, "AAPL", 10, 120, utc(2024, 2, 1)),
    ]
    position = calculate_positions(transactions).positions[0]
    assert position.total_cost == usd(2210)
    assert position.current_value == usd(2400)
    assert position.unrealized_gain_loss == Decimal("190")
    assert position.unrealized_gain_loss_percent == Decimal("190") / Decimal("2210") * 100


def test_input_order_does_not_matter(portfolio_id):
    transactions = [
        sell(portfolio_id, "PATH", 120, 15, utc(2024, 9, 15)),
        buy(portfolio_id, "PATH", 50, 12, utc(2024, 7, 1)),
        buy(portfolio_id, "PATH", 100, 10, utc(2024, 3, 1)),
    ]
    first = calculate_positions(transactions)
    second = calculate_positions(list(reversed(transactions)))
    assert first.positions[0].realized_gain_loss == Decimal("560")
    assert first == second


def test_closed_position_without_income_is_omitted(portfolio_id):
    transactions = [
        buy(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 1)),
        sell(portfolio_id, "AAPL", 10, 110, utc(2024, 2, 1)),
        buy(portfolio_id, "MSFT", 1, 300, utc(2024, 1, 1)),
    ]
    result = calculate_positions(transactions)
    assert [p.symbol.ticker for p in result.positions] == ["MSFT"]
    # realized gains of closed positions are not carried into the summary
    assert result.summary.total_realized_gain_loss == Decimal("0")


def test_income_only_position_is_reported(portfolio_id):
    result = calculate_positions([dividend(portfolio_id, "KO", 100, utc(2024, 3, 1))])
    [position] = result.positions
    assert position.total_quantity == Decimal("0")
    assert position.total_dividends == usd(81)
    assert position.total_income == usd(81)
    assert position.current_price == usd(0)
    assert position.unrealized_gain_loss_percent == Decimal("0")


def test_cancelled_transactions_are_ignored(portfolio_id):
    cancelled = sell(portfolio_id, "AAPL", 10, 120, utc(2024, 2, 1))
    cancelled.cancel()
    transactions = [buy(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 1)), cancelled]
    [position] = calculate_positions(transactions).positions
    assert position.total_quantity == Decimal("10")
    assert position.realized_gain_loss == Decimal("0")


def test_ticker_filter(portfolio_id):
    transactions = [
        buy(portfolio_id, "AAPL", 1, 100, utc(2024, 1, 1)),
        buy(portfolio_id, "MSFT", 1, 300, utc(2024, 1, 1)),
    ]
    result = calculate_positions(transactions, ticker="msft")
    assert [p.symbol.ticker for p in result.positions] == ["MSFT"]
    assert result.summary.total_cost == Decimal("300")


def test_grouping_is_by_ticker_across_exchanges(portfolio_id):
    transactions = [
        buy(portfolio_id, "SHEL", 10, 20, utc(2024, 1, 1), exchange="LSE"),
        buy(portfolio_id, "SHEL", 10, 22, utc(2024, 1, 2), exchange="NYSE"),
    ]
    [position] = calculate_positions(transactions).positions
    assert position.total_quantity == Decimal("20")
    assert position.symbol.exchange == "LSE"


def test_mixed_portfolios_raise():
    with pytest.raises(AggregationError):
        calculate_positions(
            [buy(new_id(), "AAPL", 1, 1, utc(2024, 1, 1)), buy(new_id(), "AAPL", 1, 1, utc(2024, 1, 1))]
        )


def test_currency_mismatch_within_ticker(portfolio_id):
    transactions = [
        buy(portfolio_id, "SAP", 1, 100, utc(2024, 1, 1), currency="EUR"),
        buy(portfolio_id, "SAP", 1, 100, utc(2024, 1, 2), currency="USD"),
    ]
    with pytest.raises(CurrencyMismatchError):
        calculate_positions(transactions)


def test_strict_mode_rejects_oversell(portfolio_id):
    transactions = [
        buy(portfolio_id, "AAPL", 5, 100, utc(2024, 1, 1)),
        sell(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 2)),
    ]
    assert calculate_positions(transactions).positions == []
    with pytest.raises(OversellError):
        calculate_positions(transactions, strict=True)


def test_current_price_falls_back_to_last_sell(portfolio_id):
    transactions = [sell(portfolio_id, "AAPL", 1, 150, utc(2024, 1, 1))]
    position = calculate_position(transactions)
    assert position.current_price == usd(150)
    assert position.unmatched_sell_quantity == Decimal("1")


def test_bond_maturity_carried_to_position(portfolio_id):
    bond = Transaction.record_buy(
        portfolio_id, Symbol.bond("US10Y", "OTC"), 10, usd(98), utc(2024, 1, 1), maturity_date=utc(2034, 1, 15)
    )
    coupon = Transaction.record_interest(portfolio_id, Symbol.bond("US10Y", "OTC"), usd(40), utc(2024, 7, 1))
    [position] = calculate_positions([bond, coupon]).positions
    assert position.maturity_date == utc(2034, 1, 15)
    assert position.total_interest == usd("32.4")


def test_summary_totals(portfolio_id):
    transactions = [
        buy(portfolio_id, "AAPL", 10, 100, utc(2024, 1, 1)),
        sell(portfolio_id, "AAPL", 5, 120, utc(2024, 2, 1)),
        buy(portfolio_id, "MSFT", 2, 300, utc(2024, 1, 1)),
        dividend(portfolio_id, "MSFT", 10, utc(2024, 3, 1), tax_rate=0),
    ]
    summary = calculate_positions(transactions).summary
    assert summary.total_cost == Decimal("1100")
    assert summary.total_value == Decimal("1100")
    assert summary.total_realized_gain_loss == Decimal("100")
    assert summary.total_dividends == Decimal("10")
    assert summary.total_income == Decimal("10")
    assert summary.currency == "USD"


def test_empty_summary_uses_default_currency():
    result = calculate_positions([], default_currency="PLN")
    assert result.positions == []
    assert result.summary.currency == "PLN"
    assert result.summary.total_value == Decimal("0")


def test_mixed_currency_summary_warns(portfolio_id, caplog):
    positions = [
        calculate_position([buy(portfolio_id, "SAP", 1, 100, utc(2024, 1, 1), currency="EUR")]),
        calculate_position([buy(portfolio_id, "AAPL", 1, 100, utc(2024, 1, 1))]),
    ]
    summary = summarize_positions(positions)
    assert summary.currency == "EUR"
    assert "several currencies" in caplog.text


def test_fully_sold_bond_with_interest_still_surfaces(portfolio_id):
    bond = Symbol.bond("DE10Y", "XETRA")
    transactions = [
        Transaction.record_buy(portfolio_id, bond, 10, usd(100), utc(2024, 1, 1), maturity_date=utc(2034, 1, 1)),
        Transaction.record_interest(portfolio_id, bond, usd(50), utc(2024, 6, 1), tax_rate=0),
        Transaction.record_sell(portfolio_id, bond, 10, usd(101), utc(2024, 9, 1)),
    ]
    first = calculate_positions(transactions)
    [position] = first.positions
    assert position.total_quantity == Decimal("0")
    assert position.average_cost == usd(0)
    assert position.total_interest == usd(50)
    assert position.realized_gain_loss == Decimal("10")
    assert calculate_positions(transactions) == first
