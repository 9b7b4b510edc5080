"""Unit tests for the unit-of-work store and its repositories."""

from __future__ import annotations

from decimal import Decimal

import pytest

from finhigh.domain.errors import ConstraintViolationError
from finhigh.models import Account, CategoryAggregate, Transaction, TransactionKind


def _account(contact="a@example.com"):
    return Account(
        name="A",
        contact=contact,
        monthly_allowance=Decimal("1000.00"),
        current_balance=Decimal("900.00"),
        total_savings=Decimal("100.00"),
    )


def test_unit_commits_all_rows_together(store):
    with store.unit() as unit:
        account = unit.accounts.add(_account())
        unit.transactions.append(
            Transaction(account_id=account.id, kind=TransactionKind.INCOME, amount=Decimal("5.00"))
        )
        unit.aggregates.seed_zero(account.id, ["food"])

    assert store.get_account(account.id).contact == "a@example.com"
    assert len(store.list_transactions(account.id)) == 1
    assert [a.category for a in store.list_aggregates(account.id)] == ["food"]


def test_unit_rolls_back_everything_on_error(store):
    with pytest.raises(RuntimeError):
        with store.unit() as unit:
            account = unit.accounts.add(_account())
            unit.aggregates.seed_zero(account.id, ["food", "shopping"])
            raise RuntimeError("boom")

    assert store.list_accounts() == []


def test_duplicate_contact_violates_constraint(store):
    with store.unit() as unit:
        unit.accounts.add(_account())

    with pytest.raises(ConstraintViolationError):
        with store.unit() as unit:
            unit.accounts.add(_account())


def test_aggregate_pair_is_unique(store):
    with store.unit() as unit:
        account = unit.accounts.add(_account())
        unit.aggregates.seed_zero(account.id, ["food"])

    with pytest.raises(ConstraintViolationError):
        with store.unit() as unit:
            unit.session.add(CategoryAggregate(account_id=account.id, category="food"))


def test_compare_and_swap_requires_current_version(store):
    with store.unit() as unit:
        account = unit.accounts.add(_account())
    assert account.version == 1

    with store.unit() as unit:
        assert unit.accounts.compare_and_swap(account.id, 1, current_balance=Decimal("1.00"))
        assert not unit.accounts.compare_and_swap(account.id, 1, current_balance=Decimal("2.00"))

    stored = store.get_account(account.id)
    assert stored.version == 2
    assert stored.current_balance == Decimal("1.00")


def test_money_round_trips_exactly(store):
    with store.unit() as unit:
        account = unit.accounts.add(_account())
        for amount in ("0.01", "0.10", "0.20", "12345678.99"):
            unit.transactions.append(
                Transaction(
                    account_id=account.id, kind=TransactionKind.INCOME, amount=Decimal(amount)
                )
            )

    amounts = sorted(t.amount for t in store.list_transactions(account.id))
    assert amounts == [Decimal("0.01"), Decimal("0.10"), Decimal("0.20"), Decimal("12345678.99")]
    assert all(isinstance(a, Decimal) for a in amounts)


def test_transactions_ordered_by_timestamp_then_id(store):
    from datetime import datetime, timezone

    same_time = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)
    with store.unit() as unit:
        account = unit.accounts.add(_account())
        first = unit.transactions.append(
            Transaction(account_id=account.id, kind=TransactionKind.INCOME,
                        amount=Decimal("1.00"), occurred_at=same_time)
        )
        second = unit.transactions.append(
            Transaction(account_id=account.id, kind=TransactionKind.INCOME,
                        amount=Decimal("2.00"), occurred_at=same_time)
        )
        older = unit.transactions.append(
            Transaction(account_id=account.id, kind=TransactionKind.INCOME,
                        amount=Decimal("3.00"), occurred_at=datetime(2024, 1, 1, tzinfo=timezone.utc))
        )

    with store.snapshot() as unit:
        newest = [t.id for t in unit.transactions.list_for_account(account.id)]
        oldest = [t.id for t in unit.transactions.list_for_account(account.id, newest_first=False)]
        expenses = unit.transactions.list_for_account(account.id, kind=TransactionKind.EXPENSE)

    assert newest == [second.id, first.id, older.id]
    assert oldest == [older.id, first.id, second.id]
    assert expenses == []


def test_catalog_upsert_updates_metadata(store):
    from finhigh.models import Category

    with store.unit() as unit:
        unit.categories.upsert_by_name(
            Category(name="food", display_name="Eating", icon_class="fas fa-pizza", position=0)
        )

    categories = store.list_categories()
    assert len(categories) == 5
    food = next(c for c in categories if c.name == "food")
    assert (food.display_name, food.icon_class) == ("Eating", "fas fa-pizza")


def test_snapshot_rows_remain_readable_after_close(store, account_factory):
    account = account_factory()

    with store.snapshot() as unit:
        loaded = unit.accounts.get_by_id(account.id)

    assert loaded.current_balance == Decimal("4900.00")


def test_money_columns_hold_integer_cents(store, recorder, account_factory):
    from sqlalchemy import text

    account = account_factory(allowance="5000.00")
    recorder.record_expense(account.id, "food", "150.35")

    with store.engine.connect() as conn:
        balance = conn.execute(
            text("SELECT typeof(current_balance), current_balance FROM account WHERE id = :id"),
            {"id": account.id},
        ).one()
        food = conn.execute(
            text(
                "SELECT typeof(total_amount), total_amount FROM category_aggregate "
                "WHERE account_id = :id AND category = 'food'"
            ),
            {"id": account.id},
        ).one()
        kinds = conn.execute(text("SELECT DISTINCT typeof(amount) FROM ledger_transaction")).all()

    assert tuple(balance) == ("integer", 474965)
    assert tuple(food) == ("integer", 15035)
    assert [row[0] for row in kinds] == ["integer"]
    assert store.get_account(account.id).current_balance == Decimal("4749.65")


def test_money_column_refuses_floats(store):
    from finhigh.domain.errors import InvalidAmountError

    with pytest.raises(InvalidAmountError):
        with store.unit() as unit:
            unit.accounts.add(
                Account(name="F", contact="f@example.com", monthly_allowance=1000.5)
            )

    assert store.list_accounts() == []


def test_timestamps_round_trip_as_aware_utc(store, account_factory):
    from datetime import datetime, timedelta, timezone

    before = datetime.now(timezone.utc)
    account = account_factory()
    with store.unit() as unit:
        local = datetime(2025, 3, 1, 14, 30, tzinfo=timezone(timedelta(hours=5)))
        unit.transactions.append(
            Transaction(account_id=account.id, kind=TransactionKind.INCOME,
                        amount=Decimal("1.00"), occurred_at=local)
        )

    stored = store.get_account(account.id)
    [txn] = store.list_transactions(account.id)

    assert stored.created_at.tzinfo is not None
    assert stored.created_at >= before - timedelta(seconds=1)
    assert txn.occurred_at == datetime(2025, 3, 1, 9, 30, tzinfo=timezone.utc)
    assert txn.occurred_at.utcoffset() == timedelta(0)
