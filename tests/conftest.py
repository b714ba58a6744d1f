import asyncio
import inspect
import pathlib
import sys
from datetime import datetime, timezone
from decimal import Decimal

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from portfolio_ledger.db import Database  # noqa: E402
from portfolio_ledger.models import Money, Symbol, Transaction, new_id  # noqa: E402


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers used in the suite."""

    config.addinivalue_line("markers", "asyncio: mark test as running in an asyncio event loop")


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem: pytest.Function) -> bool | None:
    """Execute async test functions without requiring pytest-asyncio."""

    test_function = pyfuncitem.obj
    if inspect.iscoroutinefunction(test_function):
        loop = asyncio.new_event_loop()
        try:
            asyncio.set_event_loop(loop)
            # funcargs also holds fixtures pulled in indirectly, e.g. tmp_path
            testargs = {name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames}
            loop.run_until_complete(test_function(**testargs))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


def utc(year: int, month: int, day: int) -> datetime:
    return datetime(year, month, day, tzinfo=timezone.utc)


def usd(amount) -> Money:
    return Money(Decimal(str(amount)), "USD")


def buy(portfolio_id, ticker, quantity, price, day, *, fee=None, exchange="NASDAQ", currency="USD"):
    return Transaction.record_buy(
        portfolio_id,
        Symbol.stock(ticker, exchange),
        Decimal(str(quantity)),
        Money(Decimal(str(price)), currency),
        day,
        fee=Money(Decimal(str(fee)), currency) if fee is not None else None,
    )


def sell(portfolio_id, ticker, quantity, price, day, *, fee=None, exchange="NASDAQ", currency="USD"):
    return Transaction.record_sell(
        portfolio_id,
        Symbol.stock(ticker, exchange),
        Decimal(str(quantity)),
        Money(Decimal(str(price)), currency),
        day,
        fee=Money(Decimal(str(fee)), currency) if fee is not None else None,
    )


def dividend(portfolio_id, ticker, gross, day, *, tax_rate=None, exchange="NASDAQ"):
    return Transaction.record_dividend(
        portfolio_id, Symbol.stock(ticker, exchange), usd(gross), day, tax_rate=tax_rate
    )


@pytest.fixture
def portfolio_id():
    return new_id()


@pytest.fixture
def database(tmp_path: pathlib.Path) -> Database:
    url = f"sqlite+aiosqlite:///{tmp_path / 'ledger.db'}"
    database = Database(url=url)

    async def _create() -> None:
        await database.create_all()
        # pooled connections belong to this loop; tests run on their own
        await database.dispose()

    asyncio.run(_create())
    return database
