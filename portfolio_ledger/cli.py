"""Command line reports over the configured ledger database."""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys
from typing import Sequence

from .core.config import LedgerSettings, get_settings
from .core.logging import setup_logging
from .core.telemetry import setup_telemetry, shutdown_telemetry
from .db import Database, SqlTransactionStore
from .errors import LedgerError
from .events import InMemoryEventPublisher
from .models import TransactionType
from .schemas import IncomeSummaryResponse, PositionsListResponse
from .services import TransactionLedger

logger = logging.getLogger(__name__)


async def _positions(db: Database, settings: LedgerSettings, args: argparse.Namespace) -> str:
    async with db.session() as session:
        ledger = TransactionLedger(
            SqlTransactionStore(session),
            InMemoryEventPublisher(),
            default_tax_rate=settings.default_tax_rate,
        )
        result = await ledger.get_positions(
            args.portfolio_id,
            ticker=args.ticker,
            reject_oversell=settings.reject_oversell,
            base_currency=settings.base_currency,
        )
    return PositionsListResponse.from_result(result).model_dump_json(indent=2)


async def _income(db: Database, settings: LedgerSettings, args: argparse.Namespace) -> str:
    kind = TransactionType(args.kind.upper()) if args.kind else None
    async with db.session() as session:
        ledger = TransactionLedger(
            SqlTransactionStore(session),
            InMemoryEventPublisher(),
            default_tax_rate=settings.default_tax_rate,
        )
        summary = await ledger.get_income(
            args.portfolio_id,
            year=args.year,
            month=args.month,
            kind=kind,
            base_currency=settings.base_currency,
        )
    return IncomeSummaryResponse.from_summary(summary).model_dump_json(indent=2)


async def _init_db(db: Database, settings: LedgerSettings, args: argparse.Namespace) -> str:
    await db.create_all()
    return f"Created ledger tables on {settings.dict_for_logging()['database_url']}"


async def _run(settings: LedgerSettings, args: argparse.Namespace) -> str:
    db = Database(settings.database_url)
    setup_telemetry(settings, db.engine)
    try:
        return await args.handler(db, settings, args)
    finally:
        await db.dispose()
        shutdown_telemetry()


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="portfolio-ledger", description="Portfolio ledger reports")
    parser.add_argument("--database-url", help="Override the configured database URL")
    subparsers = parser.add_subparsers(dest="command", required=True)

    positions = subparsers.add_parser("positions", help="Print current positions as JSON")
    positions.add_argument("--portfolio-id", required=True)
    positions.add_argument("--ticker")
    positions.set_defaults(handler=_positions)

    income = subparsers.add_parser("income", help="Print dividend and interest income as JSON")
    income.add_argument("--portfolio-id", required=True)
    income.add_argument("--year", type=int)
    income.add_argument("--month", type=int, choices=range(1, 13), metavar="{1..12}")
    income.add_argument("--kind", choices=["dividend", "interest"])
    income.set_defaults(handler=_income)

    init_db = subparsers.add_parser("init-db", help="Create the ledger tables")
    init_db.set_defaults(handler=_init_db)
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    settings = get_settings()
    if args.database_url:
        settings = settings.model_copy(update={"database_url": args.database_url})
    setup_logging(settings.log_level.upper())
    logger.debug("Settings: %s", settings.dict_for_logging())

    try:
        output = asyncio.run(_run(settings, args))
    except LedgerError as exc:
        logger.error("%s", exc)
        return 1
    print(output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
