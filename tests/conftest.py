"""
conftest.py - Shared pytest fixtures for txledger tests

Provides common fixtures used across unit, functional and conformance tests:
- Empty ledgers and bare state containers
- A runner that feeds a list of events through a fresh ledger
- Balance assertion helper
- Paths to the CSV fixture files
"""

import pytest
from decimal import Decimal
from pathlib import Path
from typing import Callable, Iterable, Union

from txledger import (
    Ledger, Event, ClientBalance, TransactionIndex,
)


FIXTURES_DIR = Path(__file__).parent / "functional" / "fixtures"


# =============================================================================
# LEDGER FIXTURES
# =============================================================================

@pytest.fixture
def ledger() -> Ledger:
    """Empty, quiet ledger."""
    return Ledger("test", verbose=False)


@pytest.fixture
def index() -> TransactionIndex:
    """Empty transaction index for process_event() tests."""
    return TransactionIndex()


@pytest.fixture
def balances() -> dict:
    """Empty client balance map for process_event() tests."""
    return {}


@pytest.fixture
def run_events() -> Callable[[Iterable[Event]], Ledger]:
    """Feed events through a fresh ledger and return it."""
    def _run(events: Iterable[Event]) -> Ledger:
        ledger = Ledger("test", verbose=False)
        ledger.process_all(events)
        return ledger
    return _run


@pytest.fixture
def assert_balance() -> Callable[..., None]:
    """Assert all four balance fields of a ClientBalance at once."""
    def _assert(
        balance: ClientBalance,
        available: Union[str, Decimal],
        held: Union[str, Decimal],
        total: Union[str, Decimal],
        locked: bool = False,
    ) -> None:
        assert balance.available == Decimal(available), f"available: {balance}"
        assert balance.held == Decimal(held), f"held: {balance}"
        assert balance.total == Decimal(total), f"total: {balance}"
        assert balance.locked is locked, f"locked: {balance}"
    return _assert


@pytest.fixture
def fixture_path() -> Callable[[str], Path]:
    """Resolve the path of a CSV file under tests/functional/fixtures."""
    def _path(name: str) -> Path:
        return FIXTURES_DIR / name
    return _path
