"""FIFO lot matching for a single symbol.

Buy lots are consumed oldest first. Each lot carries its buy fee spread
evenly over its units, so a lot that is split keeps the same cost per unit.
A sell's own fee reduces realized gain once per sell, not per matched lot.
"""

from __future__ import annotations

import logging
from collections import deque
from dataclasses import dataclass, field
from decimal import Decimal, getcontext
from typing import Deque, Iterable, List

from ..errors import OversellError

getcontext().prec = 28

logger = logging.getLogger(__name__)

ZERO = Decimal("0")


@dataclass(frozen=True)
class TradeInput:
    """Quantity, unit price and total fee of one buy or sell."""

    quantity: Decimal
    price: Decimal
    fee: Decimal = ZERO


@dataclass(frozen=True)
class OpenLot:
    quantity: Decimal
    price: Decimal
    fee_per_unit: Decimal

    @property
    def cost_per_unit(self) -> Decimal:
        return self.price + self.fee_per_unit

    @property
    def cost_total(self) -> Decimal:
        return self.cost_per_unit * self.quantity


@dataclass(frozen=True)
class FifoResult:
    remaining_quantity: Decimal
    average_cost: Decimal
    total_cost: Decimal
    realized_gains: Decimal
    unmatched_quantity: Decimal = ZERO
    open_lots: List[OpenLot] = field(default_factory=list)


def _open_lot(buy: TradeInput) -> OpenLot:
    fee_per_unit = buy.fee / buy.quantity if buy.quantity != 0 else ZERO
    return OpenLot(quantity=buy.quantity, price=buy.price, fee_per_unit=fee_per_unit)


def match_fifo(
    buys: Iterable[TradeInput],
    sells: Iterable[TradeInput],
    *,
    strict: bool = False,
) -> FifoResult:
    """Match sells against buy lots in the order given.

    Both sequences must already be in transaction-date order. Sell quantity
    left over once every lot is consumed is reported as
    ``unmatched_quantity``; with ``strict`` it raises :class:`OversellError`
    instead.
    """

    lots: Deque[OpenLot] = deque(_open_lot(buy) for buy in buys)
    realized = ZERO
    unmatched = ZERO

    for sell in sells:
        remaining = sell.quantity
        while remaining > 0 and lots:
            lot = lots[0]
            if remaining >= lot.quantity:
                realized += lot.quantity * (sell.price - lot.cost_per_unit)
                remaining -= lot.quantity
                lots.popleft()
            else:
                realized += remaining * (sell.price - lot.cost_per_unit)
                lots[0] = OpenLot(
                    quantity=lot.quantity - remaining,
                    price=lot.price,
                    fee_per_unit=lot.fee_per_unit,
                )
                remaining = ZERO
        realized -= sell.fee
        if remaining > 0:
            if strict:
                raise OversellError(remaining)
            logger.warning("Sell of %s exceeds open lots; %s units left unmatched", sell.quantity, remaining)
            unmatched += remaining

    remaining_qty = sum((lot.quantity for lot in lots), ZERO)
    remaining_cost = sum((lot.cost_total for lot in lots), ZERO)
    average_cost = remaining_cost / remaining_qty if remaining_qty > 0 else ZERO

    return FifoResult(
        remaining_quantity=remaining_qty,
        average_cost=average_cost,
        total_cost=remaining_cost,
        realized_gains=realized,
        unmatched_quantity=unmatched,
        open_lots=list(lots),
    )


__all__ = ["TradeInput", "OpenLot", "FifoResult", "match_fifo"]
