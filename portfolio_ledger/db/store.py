"""Transaction stores: the append-only ledger behind the position calculator."""

from __future__ import annotations

import copy
from datetime import date, datetime
from typing import Protocol
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..errors import TransactionNotFoundError
from ..models import Money, Symbol, Transaction, TransactionStatus, parse_id, to_utc
from .tables import TransactionRecord


class TransactionStore(Protocol):
    """Storage contract used by the ledger service.

    Listing methods return transactions ordered by transaction date, ties in
    insertion order.
    """

    async def add(self, transaction: Transaction) -> None:
        ...

    async def get(self, transaction_id: UUID | str) -> Transaction:
        ...

    async def save(self, transaction: Transaction) -> None:
        ...

    async def list_by_portfolio(
        self,
        portfolio_id: UUID | str,
        *,
        status: TransactionStatus | None = None,
        start: datetime | date | None = None,
        end: datetime | date | None = None,
    ) -> list[Transaction]:
        ...

    async def list_by_symbol(
        self,
        portfolio_id: UUID | str,
        ticker: str,
        *,
        status: TransactionStatus | None = None,
        start: datetime | date | None = None,
        end: datetime | date | None = None,
    ) -> list[Transaction]:
        ...

    async def commit(self) -> None:
        ...

    async def rollback(self) -> None:
        ...


def _in_range(tx: Transaction, start: datetime | None, end: datetime | None) -> bool:
    if start is not None and tx.transaction_date < start:
        return False
    if end is not None and tx.transaction_date > end:
        return False
    return True


class InMemoryTransactionStore:
    """Process-local store for tests and embedded use.

    Transactions are copied on the way in and out, and writes are staged
    until :meth:`commit`, so it keeps the unit-of-work semantics of
    :class:`SqlTransactionStore`.
    """

    def __init__(self) -> None:
        self._transactions: dict[UUID, Transaction] = {}
        self._staged: dict[UUID, Transaction] = {}

    @staticmethod
    def _snapshot(transaction: Transaction) -> Transaction:
        copied = copy.deepcopy(transaction)
        # events belong to the caller's instance, not to the stored state
        copied.pull_events()
        return copied

    def _view(self) -> dict[UUID, Transaction]:
        return {**self._transactions, **self._staged}

    async def add(self, transaction: Transaction) -> None:
        if transaction.id in self._view():
            raise ValueError(f"Transaction {transaction.id} already stored")
        self._staged[transaction.id] = self._snapshot(transaction)

    async def get(self, transaction_id: UUID | str) -> Transaction:
        key = parse_id(transaction_id, "transaction id")
        try:
            return self._snapshot(self._view()[key])
        except KeyError:
            raise TransactionNotFoundError(key) from None

    async def save(self, transaction: Transaction) -> None:
        if transaction.id not in self._view():
            raise TransactionNotFoundError(transaction.id)
        self._staged[transaction.id] = self._snapshot(transaction)

    async def list_by_portfolio(self, portfolio_id, *, status=None, start=None, end=None) -> list[Transaction]:
        key = parse_id(portfolio_id, "portfolio id")
        start = to_utc(start) if start is not None else None
        end = to_utc(end) if end is not None else None
        matches = [
            self._snapshot(tx)
            for tx in self._view().values()
            if tx.portfolio_id == key
            and (status is None or tx.status == status)
            and _in_range(tx, start, end)
        ]
        return sorted(matches, key=lambda tx: tx.transaction_date)

    async def list_by_symbol(self, portfolio_id, ticker, *, status=None, start=None, end=None) -> list[Transaction]:
        wanted = ticker.strip().upper()
        rows = await self.list_by_portfolio(portfolio_id, status=status, start=start, end=end)
        return [tx for tx in rows if tx.symbol.ticker == wanted]

    async def commit(self) -> None:
        self._transactions.update(self._staged)
        self._staged.clear()

    async def rollback(self) -> None:
        self._staged.clear()


def _to_record(tx: Transaction, record: TransactionRecord | None = None) -> TransactionRecord:
    record = record or TransactionRecord(id=str(tx.id))
    record.portfolio_id = str(tx.portfolio_id)
    record.type = tx.type.value
    record.status = tx.status.value
    record.ticker = tx.symbol.ticker
    record.exchange = tx.symbol.exchange
    record.asset_type = tx.symbol.asset_type.value
    record.transaction_date = tx.transaction_date
    record.currency = tx.currency.value
    record.quantity = tx.quantity
    record.price_per_unit = tx.price_per_unit.amount if tx.price_per_unit else None
    record.fee = tx.fee.amount if tx.fee else None
    record.maturity_date = tx.maturity_date
    record.gross_amount = tx.gross_amount.amount if tx.gross_amount else None
    record.tax_rate = tx.tax_rate
    record.tax_withheld = tx.tax_withheld.amount if tx.tax_withheld else None
    record.net_amount = tx.net_amount.amount if tx.net_amount else None
    record.notes = tx.notes
    return record


def _money(amount, currency: str) -> Money | None:
    return Money(amount, currency) if amount is not None else None


def _to_domain(record: TransactionRecord) -> Transaction:
    return Transaction(
        id=UUID(record.id),
        portfolio_id=UUID(record.portfolio_id),
        type=record.type,
        symbol=Symbol(record.ticker, record.exchange, record.asset_type),
        transaction_date=record.transaction_date,
        status=record.status,
        notes=record.notes,
        quantity=record.quantity,
        price_per_unit=_money(record.price_per_unit, record.currency),
        fee=_money(record.fee, record.currency),
        maturity_date=record.maturity_date,
        gross_amount=_money(record.gross_amount, record.currency),
        tax_rate=record.tax_rate,
        tax_withheld=_money(record.tax_withheld, record.currency),
        net_amount=_money(record.net_amount, record.currency),
    )


class SqlTransactionStore:
    """Store backed by an async SQLAlchemy session.

    Writes are flushed, not committed; call :meth:`commit` to end the unit of
    work so outbox rows added in the same session land atomically.
    """

    def __init__(self, session: AsyncSession):
        self._session = session

    @property
    def session(self) -> AsyncSession:
        return self._session

    async def _record(self, transaction_id: UUID) -> TransactionRecord:
        result = await self._session.execute(
            select(TransactionRecord).where(TransactionRecord.id == str(transaction_id))
        )
        record = result.scalars().first()
        if record is None:
            raise TransactionNotFoundError(transaction_id)
        return record

    async def add(self, transaction: Transaction) -> None:
        self._session.add(_to_record(transaction))
        await self._session.flush()

    async def get(self, transaction_id: UUID | str) -> Transaction:
        key = parse_id(transaction_id, "transaction id")
        return _to_domain(await self._record(key))

    async def save(self, transaction: Transaction) -> None:
        record = await self._record(transaction.id)
        _to_record(transaction, record)
        await self._session.flush()

    async def list_by_portfolio(self, portfolio_id, *, status=None, start=None, end=None) -> list[Transaction]:
        return await self._list(portfolio_id, None, status, start, end)

    async def list_by_symbol(self, portfolio_id, ticker, *, status=None, start=None, end=None) -> list[Transaction]:
        return await self._list(portfolio_id, ticker.strip().upper(), status, start, end)

    async def _list(self, portfolio_id, ticker, status, start, end) -> list[Transaction]:
        key = parse_id(portfolio_id, "portfolio id")
        stmt = select(TransactionRecord).where(TransactionRecord.portfolio_id == str(key))
        if ticker is not None:
            stmt = stmt.where(TransactionRecord.ticker == ticker)
        if status is not None:
            stmt = stmt.where(TransactionRecord.status == TransactionStatus(status).value)
        rows = (
            await self._session.execute(
                stmt.order_by(TransactionRecord.transaction_date, TransactionRecord.seq)
            )
        ).scalars().all()
        # SQLite hands back naive datetimes, so range filtering happens after normalisation
        start = to_utc(start) if start is not None else None
        end = to_utc(end) if end is not None else None
        transactions = [_to_domain(row) for row in rows]
        return [tx for tx in transactions if _in_range(tx, start, end)]

    async def commit(self) -> None:
        await self._session.commit()

    async def rollback(self) -> None:
        await self._session.rollback()


__all__ = ["TransactionStore", "InMemoryTransactionStore", "SqlTransactionStore"]
