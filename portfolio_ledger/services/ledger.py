"""Ledger command service: record, amend and cancel transactions, read positions."""

from __future__ import annotations

import logging
from datetime import date, datetime
from uuid import UUID

from ..core.telemetry import get_tracer
from ..db.store import TransactionStore
from ..events import EventPublisher
from ..models import (
    DEFAULT_TAX_RATE,
    Currency,
    Money,
    PositionsResult,
    Symbol,
    Transaction,
    TransactionStatus,
    TransactionType,
)
from ..models.money import Number
from ..schemas.transactions import (
    RecordBuyRequest,
    RecordIncomeRequest,
    RecordSellRequest,
    UpdateTransactionRequest,
)
from .income import IncomeSummary, summarize_income
from .positions import calculate_positions

logger = logging.getLogger(__name__)


def _symbol(request: RecordBuyRequest | RecordSellRequest | RecordIncomeRequest) -> Symbol:
    return Symbol(request.ticker, request.exchange, request.asset_type)


def _money(amount, currency) -> Money | None:
    return Money(amount, currency) if amount is not None else None


class TransactionLedger:
    """Write side of the ledger plus recompute-on-read queries.

    Every write stores the transaction, hands its pending events to the
    publisher and then commits the store, so an outbox publisher sharing the
    store's session lands in the same unit of work. If any step fails the
    store is rolled back and the error propagates.
    """

    def __init__(
        self,
        store: TransactionStore,
        publisher: EventPublisher,
        *,
        default_tax_rate: Number = DEFAULT_TAX_RATE,
    ):
        self._store = store
        self._publisher = publisher
        self._default_tax_rate = default_tax_rate

    async def _publish(self, transaction: Transaction) -> None:
        for event in transaction.pull_events():
            await self._publisher.publish(event)

    async def _write(self, transaction: Transaction, *, new: bool) -> None:
        try:
            if new:
                await self._store.add(transaction)
            else:
                await self._store.save(transaction)
            await self._publish(transaction)
            await self._store.commit()
        except Exception:
            await self._store.rollback()
            raise

    async def _add(self, transaction: Transaction) -> Transaction:
        await self._write(transaction, new=True)
        logger.info(
            "Recorded %s %s for portfolio %s (%s)",
            transaction.type.value,
            transaction.symbol.ticker,
            transaction.portfolio_id,
            transaction.id,
        )
        return transaction

    async def record_buy(self, portfolio_id: UUID | str, request: RecordBuyRequest) -> Transaction:
        with get_tracer().start_as_current_span("ledger.record_buy"):
            tx = Transaction.record_buy(
                portfolio_id,
                _symbol(request),
                request.quantity,
                Money(request.price_per_unit, request.currency),
                request.transaction_date,
                fee=_money(request.fee, request.currency),
                maturity_date=request.maturity_date,
                notes=request.notes,
            )
            return await self._add(tx)

    async def record_sell(self, portfolio_id: UUID | str, request: RecordSellRequest) -> Transaction:
        with get_tracer().start_as_current_span("ledger.record_sell"):
            tx = Transaction.record_sell(
                portfolio_id,
                _symbol(request),
                request.quantity,
                Money(request.price_per_unit, request.currency),
                request.transaction_date,
                fee=_money(request.fee, request.currency),
                notes=request.notes,
            )
            return await self._add(tx)

    async def record_dividend(self, portfolio_id: UUID | str, request: RecordIncomeRequest) -> Transaction:
        with get_tracer().start_as_current_span("ledger.record_dividend"):
            tx = Transaction.record_dividend(
                portfolio_id,
                _symbol(request),
                Money(request.gross_amount, request.currency),
                request.payment_date,
                tax_rate=request.tax_rate,
                default_tax_rate=self._default_tax_rate,
                notes=request.notes,
            )
            return await self._add(tx)

    async def record_interest(self, portfolio_id: UUID | str, request: RecordIncomeRequest) -> Transaction:
        with get_tracer().start_as_current_span("ledger.record_interest"):
            tx = Transaction.record_interest(
                portfolio_id,
                _symbol(request),
                Money(request.gross_amount, request.currency),
                request.payment_date,
                tax_rate=request.tax_rate,
                default_tax_rate=self._default_tax_rate,
                notes=request.notes,
            )
            return await self._add(tx)

    async def get(self, transaction_id: UUID | str) -> Transaction:
        return await self._store.get(transaction_id)

    async def update(self, transaction_id: UUID | str, request: UpdateTransactionRequest) -> Transaction:
        """Amend a transaction; amounts are read in its booking currency."""

        with get_tracer().start_as_current_span("ledger.update"):
            tx = await self._store.get(transaction_id)
            currency = tx.currency
            changes = tx.update(
                quantity=request.quantity,
                price_per_unit=_money(request.price_per_unit, currency),
                fee=_money(request.fee, currency),
                gross_amount=_money(request.gross_amount, currency),
                tax_rate=request.tax_rate,
                transaction_date=request.transaction_date,
                maturity_date=request.maturity_date,
                notes=request.notes,
            )
            if not changes:
                logger.info("Update of transaction %s changed nothing", tx.id)
                return tx
            await self._write(tx, new=False)
            logger.info("Updated transaction %s: %s", tx.id, ", ".join(sorted(changes)))
            return tx

    async def cancel(self, transaction_id: UUID | str) -> Transaction:
        with get_tracer().start_as_current_span("ledger.cancel"):
            tx = await self._store.get(transaction_id)
            tx.cancel()
            await self._write(tx, new=False)
            logger.info("Cancelled transaction %s", tx.id)
            return tx

    async def list_transactions(
        self,
        portfolio_id: UUID | str,
        *,
        ticker: str | None = None,
        status: TransactionStatus | None = None,
        start: datetime | date | None = None,
        end: datetime | date | None = None,
    ) -> list[Transaction]:
        if ticker:
            return await self._store.list_by_symbol(portfolio_id, ticker, status=status, start=start, end=end)
        return await self._store.list_by_portfolio(portfolio_id, status=status, start=start, end=end)

    async def get_positions(
        self,
        portfolio_id: UUID | str,
        *,
        ticker: str | None = None,
        reject_oversell: bool = False,
        base_currency: str = Currency.USD.value,
    ) -> PositionsResult:
        """Recompute positions from the active transactions of one portfolio."""

        transactions = await self.list_transactions(
            portfolio_id, ticker=ticker, status=TransactionStatus.ACTIVE
        )
        return calculate_positions(
            transactions,
            ticker=ticker,
            strict=reject_oversell,
            default_currency=base_currency,
        )

    async def get_income(
        self,
        portfolio_id: UUID | str,
        *,
        year: int | None = None,
        month: int | None = None,
        kind: TransactionType | None = None,
        base_currency: str = Currency.USD.value,
    ) -> IncomeSummary:
        transactions = await self.list_transactions(portfolio_id, status=TransactionStatus.ACTIVE)
        return summarize_income(
            transactions,
            year=year,
            month=month,
            kind=kind,
            default_currency=base_currency,
        )


__all__ = ["TransactionLedger"]
