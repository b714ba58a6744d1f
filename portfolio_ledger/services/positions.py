"""Position aggregation over a portfolio's transaction snapshot."""

from __future__ import annotations

import logging
from decimal import Decimal
from typing import Dict, Iterable, List, Sequence

from ..core.telemetry import get_tracer
from ..errors import AggregationError, CurrencyMismatchError
from ..models import (
    Currency,
    Money,
    PortfolioSummary,
    Position,
    PositionsResult,
    Transaction,
    TransactionType,
)
from .lots import TradeInput, match_fifo

logger = logging.getLogger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")


def _active_in_date_order(transactions: Iterable[Transaction]) -> List[Transaction]:
    # sorted() is stable, so equal dates keep ledger insertion order
    active = [tx for tx in transactions if tx.is_active]
    return sorted(active, key=lambda tx: tx.transaction_date)


def _group_by_ticker(transactions: Iterable[Transaction]) -> Dict[str, List[Transaction]]:
    grouped: Dict[str, List[Transaction]] = {}
    for tx in transactions:
        if tx.symbol is None:
            raise AggregationError(f"Transaction {tx.id} has no symbol")
        grouped.setdefault(tx.symbol.ticker, []).append(tx)
    return grouped


def _booking_currency(transactions: Sequence[Transaction]) -> Currency:
    currencies = {tx.currency for tx in transactions}
    if len(currencies) > 1:
        names = sorted(c.value for c in currencies)
        raise CurrencyMismatchError("aggregate", names[0], names[1])
    return transactions[0].currency


def _trade_input(tx: Transaction) -> TradeInput:
    fee = tx.fee.amount if tx.fee is not None else ZERO
    return TradeInput(quantity=tx.quantity, price=tx.price_per_unit.amount, fee=fee)


def calculate_position(transactions: Sequence[Transaction], *, strict: bool = False) -> Position:
    """Build the position for one ticker.

    ``transactions`` must be active, share one ticker and be in date order.
    """

    if not transactions:
        raise AggregationError("Cannot calculate a position without transactions")
    currency = _booking_currency(transactions)

    buys = [tx for tx in transactions if tx.type == TransactionType.BUY]
    sells = [tx for tx in transactions if tx.type == TransactionType.SELL]
    dividends = [tx for tx in transactions if tx.type == TransactionType.DIVIDEND]
    interests = [tx for tx in transactions if tx.type == TransactionType.INTEREST]

    fifo = match_fifo(
        [_trade_input(tx) for tx in buys],
        [_trade_input(tx) for tx in sells],
        strict=strict,
    )

    total_dividends = Money.zero(currency)
    for tx in dividends:
        total_dividends = total_dividends.add(tx.net_amount)
    total_interest = Money.zero(currency)
    for tx in interests:
        total_interest = total_interest.add(tx.net_amount)

    # latest transaction price stands in for a market quote
    if buys:
        current_price = buys[-1].price_per_unit
    elif sells:
        current_price = sells[-1].price_per_unit
    else:
        current_price = Money.zero(currency)

    current_value = current_price.multiply(fifo.remaining_quantity)
    unrealized = current_value.amount - fifo.total_cost
    if fifo.total_cost != 0:
        unrealized_pct = unrealized / fifo.total_cost * HUNDRED
    else:
        unrealized_pct = ZERO

    maturity_date = next((tx.maturity_date for tx in buys if tx.maturity_date is not None), None)

    return Position(
        symbol=transactions[0].symbol,
        portfolio_id=transactions[0].portfolio_id,
        total_quantity=fifo.remaining_quantity,
        average_cost=Money(fifo.average_cost, currency),
        total_cost=Money(fifo.total_cost, currency),
        current_price=current_price,
        current_value=current_value,
        unrealized_gain_loss=unrealized,
        unrealized_gain_loss_percent=unrealized_pct,
        realized_gain_loss=fifo.realized_gains,
        total_dividends=total_dividends,
        total_interest=total_interest,
        total_income=total_dividends.add(total_interest),
        maturity_date=maturity_date,
        unmatched_sell_quantity=fifo.unmatched_quantity,
    )


def summarize_positions(
    positions: Sequence[Position],
    *,
    default_currency: str = Currency.USD.value,
) -> PortfolioSummary:
    currency = positions[0].currency.value if positions else default_currency
    if len({p.currency for p in positions}) > 1:
        logger.warning("Summing positions held in several currencies; totals are reported in %s", currency)
    return PortfolioSummary(
        total_value=sum((p.current_value.amount for p in positions), ZERO),
        total_cost=sum((p.total_cost.amount for p in positions), ZERO),
        total_unrealized_gain_loss=sum((p.unrealized_gain_loss for p in positions), ZERO),
        total_realized_gain_loss=sum((p.realized_gain_loss for p in positions), ZERO),
        total_dividends=sum((p.total_dividends.amount for p in positions), ZERO),
        total_interest=sum((p.total_interest.amount for p in positions), ZERO),
        currency=currency,
    )


def calculate_positions(
    transactions: Iterable[Transaction],
    *,
    ticker: str | None = None,
    strict: bool = False,
    default_currency: str = Currency.USD.value,
) -> PositionsResult:
    """Derive every open or income-bearing position from a transaction snapshot.

    Cancelled transactions are ignored. All transactions must belong to one
    portfolio. A ticker is reported while units remain or it has paid income.
    """

    ordered = _active_in_date_order(transactions)
    portfolio_ids = {tx.portfolio_id for tx in ordered}
    if len(portfolio_ids) > 1:
        raise AggregationError(f"Transactions span {len(portfolio_ids)} portfolios; expected one")
    if ticker is not None:
        wanted = ticker.strip().upper()
        ordered = [tx for tx in ordered if tx.symbol.ticker == wanted]

    tracer = get_tracer()
    with tracer.start_as_current_span("positions.calculate") as span:
        span.set_attribute("ledger.transactions", len(ordered))
        positions: list[Position] = []
        for symbol_ticker, group in _group_by_ticker(ordered).items():
            position = calculate_position(group, strict=strict)
            logger.debug(
                "Position %s: quantity=%s cost=%s realized=%s income=%s",
                symbol_ticker,
                position.total_quantity,
                position.total_cost.amount,
                position.realized_gain_loss,
                position.total_income.amount,
            )
            if position.total_quantity > 0 or position.total_income.amount > 0:
                positions.append(position)
        span.set_attribute("ledger.positions", len(positions))

    return PositionsResult(
        positions=positions,
        summary=summarize_positions(positions, default_currency=default_currency),
    )


__all__ = ["calculate_position", "calculate_positions", "summarize_positions"]
