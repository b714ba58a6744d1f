"""Event publishers.

Publishers are passed explicitly to whoever needs them; there is no
process-wide subscriber registry. The database-backed outbox publisher lives
in :mod:`portfolio_ledger.db.outbox`.
"""

from __future__ import annotations

import inspect
import logging
from collections import deque
from typing import Awaitable, Callable, Protocol, TypeVar, Union

from .models.events import (
    BuyTransactionRecorded,
    DividendReceived,
    DomainEvent,
    InterestReceived,
    SellTransactionRecorded,
    TransactionCancelled,
    TransactionUpdated,
)

logger = logging.getLogger(__name__)

E = TypeVar("E", bound=DomainEvent)
Handler = Callable[[E], Union[None, Awaitable[None]]]


class EventPublisher(Protocol):
    async def publish(self, event: DomainEvent) -> None:
        ...


class InMemoryEventPublisher:
    """Dispatch events to handlers registered on this instance.

    Handlers subscribed to a base class receive every subclass event, in
    registration order. Handler errors propagate to the publisher's caller.

    ``published`` keeps the most recent ``history`` events for inspection in
    tests and diagnostics; older events are discarded.
    """

    def __init__(self, history: int = 1000) -> None:
        self._handlers: list[tuple[type[DomainEvent], Handler]] = []
        self.published: deque[DomainEvent] = deque(maxlen=history)

    def subscribe(self, event_type: type[E], handler: Handler) -> None:
        if not (isinstance(event_type, type) and issubclass(event_type, DomainEvent)):
            raise TypeError(f"{event_type!r} is not a DomainEvent type")
        self._handlers.append((event_type, handler))

    async def publish(self, event: DomainEvent) -> None:
        self.published.append(event)
        for event_type, handler in self._handlers:
            if not isinstance(event, event_type):
                continue
            result = handler(event)
            if inspect.isawaitable(result):
                await result
        logger.debug("Published %s for transaction %s", event.event_type, event.transaction_id)


__all__ = [
    "DomainEvent",
    "BuyTransactionRecorded",
    "SellTransactionRecorded",
    "DividendReceived",
    "InterestReceived",
    "TransactionUpdated",
    "TransactionCancelled",
    "EventPublisher",
    "Handler",
    "InMemoryEventPublisher",
]
