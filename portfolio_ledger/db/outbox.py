"""Outbox publisher: events are written in the same unit of work as the ledger change."""

from __future__ import annotations

import logging
from datetime import datetime, timezone

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..models.events import DomainEvent
from .tables import OutboxRecord

logger = logging.getLogger(__name__)


class OutboxEventPublisher:
    """Append events to ``ledger_outbox`` for a relay to deliver later."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def publish(self, event: DomainEvent) -> None:
        record = OutboxRecord(
            event_id=str(event.event_id),
            event_type=event.event_type,
            aggregate_id=str(event.transaction_id),
            payload=event.to_payload(),
            status="pending",
        )
        self._session.add(record)
        await self._session.flush()
        logger.debug("Queued %s in outbox", event.event_type)


async def fetch_pending(session: AsyncSession, limit: int = 100) -> list[OutboxRecord]:
    result = await session.execute(
        select(OutboxRecord)
        .where(OutboxRecord.status == "pending")
        .order_by(OutboxRecord.id)
        .limit(limit)
    )
    return list(result.scalars().all())


async def mark_processed(session: AsyncSession, records: list[OutboxRecord]) -> None:
    now = datetime.now(timezone.utc)
    for record in records:
        record.status = "processed"
        record.processed_at = now
    await session.commit()


__all__ = ["OutboxEventPublisher", "fetch_pending", "mark_processed"]
