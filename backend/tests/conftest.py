import asyncio
import inspect
import pathlib
import sys
from datetime import date
from decimal import Decimal

import pytest

ROOT = pathlib.Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from position_engine import TransactionRecord  # noqa: E402


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
            argnames = pyfuncitem._fixtureinfo.argnames
            loop.run_until_complete(test_function(**{name: pyfuncitem.funcargs[name] for name in argnames}))
        finally:
            asyncio.set_event_loop(None)
            loop.close()
        return True
    return None


@pytest.fixture
def make_tx():
    """Factory for engine transaction records with string-friendly numbers."""

    def _make(
        id: int,
        day: date,
        action: str,
        symbol: str,
        quantity="0",
        price="0",
        amount="0",
        *,
        description: str = "",
        fees="0",
        account_id: int = 1,
        processed: bool = False,
    ) -> TransactionRecord:
        return TransactionRecord(
            id=id,
            account_id=account_id,
            date=day,
            action=action,
            symbol=symbol,
            description=description,
            quantity=None if quantity is None else Decimal(str(quantity)),
            price=None if price is None else Decimal(str(price)),
            fees=None if fees is None else Decimal(str(fees)),
            amount=None if amount is None else Decimal(str(amount)),
            processed=processed,
        )

    return _make
