"""Pytest configuration and shared fixtures for FinHigh tests.

Every test gets its own SQLite database file under ``tmp_path`` so the
tests exercise the real engine wiring, transactions included.
"""

from __future__ import annotations

import itertools
import logging
from decimal import Decimal

import pytest
from finhigh.config import TestConfig
from finhigh.domain.outcomes import AccountCreated
from finhigh.infra.database import create_db_engine, init_database
from finhigh.infra.store import LedgerStore
from finhigh.models import Account
from finhigh.services.catalog import seed_categories
from finhigh.services.dashboard import DashboardProjector
from finhigh.services.locks import AccountLocks
from finhigh.services.provisioning import AccountProvisioner
from finhigh.services.reconcile import Reconciler
from finhigh.services.recorder import TransactionRecorder

CARVE_OUT = Decimal("100.00")


@pytest.fixture(autouse=True)
def _reset_logging():
    """Drop handlers installed by setup_logging so they do not leak between tests."""
    yield
    logger = logging.getLogger("finhigh")
    for handler in list(logger.handlers):
        handler.close()
    logger.handlers.clear()

# =============================================================================
# Database Fixtures
# =============================================================================


@pytest.fixture
def ledger_config(tmp_path):
    return TestConfig(tmp_path, LOCK_TIMEOUT=10)


@pytest.fixture(scope="function")
def db_engine(ledger_config):
    """Create an isolated SQLite database file with all tables for each test.

    Yields:
        Engine: engine configured exactly like the application's
    """
    engine = create_db_engine(ledger_config)
    init_database(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def store(db_engine) -> LedgerStore:
    """Ledger store with the default category catalog seeded."""
    ledger_store = LedgerStore(db_engine)
    seed_categories(ledger_store)
    return ledger_store


@pytest.fixture
def locks() -> AccountLocks:
    return AccountLocks(timeout=10)


@pytest.fixture
def provisioner(store, locks) -> AccountProvisioner:
    return AccountProvisioner(store, locks, carve_out=CARVE_OUT)


@pytest.fixture
def recorder(store, locks) -> TransactionRecorder:
    return TransactionRecorder(store, locks, max_retries=5)


@pytest.fixture
def projector(store) -> DashboardProjector:
    return DashboardProjector(store)


@pytest.fixture
def reconciler(store, locks) -> Reconciler:
    return Reconciler(store, locks, carve_out=CARVE_OUT)


# =============================================================================
# Test Data Factories
# =============================================================================


@pytest.fixture
def account_factory(provisioner):
    """Factory for provisioning accounts through the real provisioner.

    Returns:
        Callable: Function that creates an account and returns the committed row
    """
    counter = itertools.count(1)

    def _create_account(
        allowance: str = "5000.00",
        name: str = "Test User",
        contact: str | None = None,
    ) -> Account:
        contact = contact or f"user{next(counter)}@example.com"
        result = provisioner.create_account(name, contact, allowance)
        assert isinstance(result, AccountCreated), result
        return result.account

    return _create_account


def ledger_state(store: LedgerStore, account_id: int) -> tuple:
    """Plain-value picture of everything stored for an account, for equality checks."""

    with store.snapshot() as unit:
        account = unit.accounts.get_by_id(account_id)
        account_row = (
            account.current_balance,
            account.total_savings,
            account.total_spent,
            account.version,
        )
        transactions = [
            (t.id, t.kind, t.category, t.amount)
            for t in unit.transactions.list_for_account(account_id)
        ]
        aggregates = [
            (a.category, a.total_amount, a.transaction_count)
            for a in unit.aggregates.list_for_account(account_id)
        ]
    return account_row, transactions, aggregates


@pytest.fixture
def state_of(store):
    """Callable returning :func:`ledger_state` for an account id."""

    return lambda account_id: ledger_state(store, account_id)
