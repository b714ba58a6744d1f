"""Persistence for the transaction ledger."""

from .database import Base, Database
from .outbox import OutboxEventPublisher, fetch_pending, mark_processed
from .store import InMemoryTransactionStore, SqlTransactionStore, TransactionStore
from .tables import OutboxRecord, TransactionRecord

__all__ = [
    "Base",
    "Database",
    "InMemoryTransactionStore",
    "OutboxEventPublisher",
    "OutboxRecord",
    "SqlTransactionStore",
    "TransactionRecord",
    "TransactionStore",
    "fetch_pending",
    "mark_processed",
]
