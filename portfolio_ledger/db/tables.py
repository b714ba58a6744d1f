"""ORM tables for the transaction ledger and its outbox."""

from __future__ import annotations

from datetime import datetime, timezone
from decimal import Decimal

from sqlalchemy import JSON, DateTime, Enum, Index, Integer, Numeric, String
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

from ..models import TransactionStatus, TransactionType
from .database import Base

TRANSACTION_TYPES = tuple(t.value for t in TransactionType)
TRANSACTION_STATUSES = tuple(s.value for s in TransactionStatus)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ExactDecimal(TypeDecorator):
    """Decimal column that returns exactly the value written.

    PostgreSQL gets an unconstrained NUMERIC, so no scale is imposed. SQLite
    would round NUMERIC through a float, so it stores the decimal text.
    """

    impl = Numeric
    cache_ok = True

    def load_dialect_impl(self, dialect):
        if dialect.name == "sqlite":
            return dialect.type_descriptor(String(64))
        return dialect.type_descriptor(Numeric(asdecimal=True))

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        value = Decimal(str(value))
        return str(value) if dialect.name == "sqlite" else value

    def process_result_value(self, value, dialect):
        if value is None or isinstance(value, Decimal):
            return value
        return Decimal(str(value))


_AMOUNT = ExactDecimal()


class TransactionRecord(Base):
    __tablename__ = "ledger_transaction"
    __table_args__ = (
        Index("ix_ledger_transaction_portfolio_date", "portfolio_id", "transaction_date"),
        Index("ix_ledger_transaction_portfolio_ticker", "portfolio_id", "ticker"),
    )

    # insertion order breaks ties between equal transaction dates
    seq: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    id: Mapped[str] = mapped_column(String(36), unique=True, index=True)
    portfolio_id: Mapped[str] = mapped_column(String(36))
    type: Mapped[str] = mapped_column(Enum(*TRANSACTION_TYPES, name="ledger_transaction_type"))
    status: Mapped[str] = mapped_column(
        Enum(*TRANSACTION_STATUSES, name="ledger_transaction_status"),
        default=TransactionStatus.ACTIVE.value,
    )
    ticker: Mapped[str] = mapped_column(String(50))
    exchange: Mapped[str] = mapped_column(String(32))
    asset_type: Mapped[str] = mapped_column(String(16))
    transaction_date: Mapped[datetime] = mapped_column(DateTime(timezone=True))
    currency: Mapped[str] = mapped_column(String(3))

    quantity: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)
    price_per_unit: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)
    fee: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)
    maturity_date: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)

    gross_amount: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)
    tax_rate: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)
    tax_withheld: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)
    net_amount: Mapped[Decimal | None] = mapped_column(_AMOUNT, nullable=True)

    notes: Mapped[str | None] = mapped_column(String(512), nullable=True)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class OutboxRecord(Base):
    __tablename__ = "ledger_outbox"
    __table_args__ = (Index("ix_ledger_outbox_status", "status", "created_at"),)

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    event_id: Mapped[str] = mapped_column(String(36), unique=True)
    event_type: Mapped[str] = mapped_column(String(128), nullable=False)
    aggregate_id: Mapped[str] = mapped_column(String(36), index=True)
    payload: Mapped[dict] = mapped_column(JSON().with_variant(JSONB, "postgresql"), nullable=False)
    status: Mapped[str] = mapped_column(String(16), default="pending")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    processed_at: Mapped[datetime | None] = mapped_column(DateTime(timezone=True), nullable=True)


__all__ = ["ExactDecimal", "TransactionRecord", "OutboxRecord", "TRANSACTION_TYPES", "TRANSACTION_STATUSES"]
