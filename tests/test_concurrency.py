"""Concurrent recorder calls must serialize per account."""

from __future__ import annotations

import threading
from decimal import Decimal

import pytest

from finhigh.domain.errors import ConcurrencyConflictError
from finhigh.domain.outcomes import Committed, RejectReason, Rejected
from finhigh.infra.repositories.account import SQLModelAccountRepository
from finhigh.services.locks import AccountLocks, run_serialized
from finhigh.services.recorder import TransactionRecorder


def _race(calls):
    """Start every call at the same moment and collect results/exceptions."""
    barrier = threading.Barrier(len(calls))
    results = [None] * len(calls)

    def worker(index, call):
        barrier.wait()
        try:
            results[index] = call()
        except Exception as exc:  # surfaced through the assertions below
            results[index] = exc

    threads = [threading.Thread(target=worker, args=(i, c)) for i, c in enumerate(calls)]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join(timeout=30)
    return results


def test_two_expenses_that_jointly_overdraw_only_one_commits(recorder, account_factory, store):
    account = account_factory(allowance="200.00")  # balance 100.00

    results = _race(
        [
            lambda: recorder.record_expense(account.id, "food", "70.00"),
            lambda: recorder.record_expense(account.id, "shopping", "60.00"),
        ]
    )

    committed = [r for r in results if isinstance(r, Committed)]
    rejected = [r for r in results if isinstance(r, Rejected)]
    assert len(committed) == 1, results
    assert len(rejected) == 1, results
    assert rejected[0].reason is RejectReason.INSUFFICIENT_BALANCE
    final = store.get_account(account.id)
    assert final.current_balance + final.total_spent == Decimal("100.00")
    assert final.current_balance >= 0
    assert len(store.list_transactions(account.id)) == 1


def test_writers_without_shared_locks_are_still_guarded(store, account_factory):
    """Two recorders with separate lock registries behave like two processes."""
    account = account_factory(allowance="200.00")
    first = TransactionRecorder(store, AccountLocks(timeout=10), max_retries=10)
    second = TransactionRecorder(store, AccountLocks(timeout=10), max_retries=10)

    results = _race(
        [
            lambda: first.record_expense(account.id, "food", "70.00"),
            lambda: second.record_expense(account.id, "food", "60.00"),
        ]
    )

    assert sorted(type(r).__name__ for r in results) == ["Committed", "Rejected"], results
    final = store.get_account(account.id)
    assert final.total_spent in {Decimal("70.00"), Decimal("60.00")}
    food = next(a for a in store.list_aggregates(account.id) if a.category == "food")
    assert food.transaction_count == 1
    assert food.total_amount == final.total_spent


def test_many_small_expenses_never_lose_updates(recorder, account_factory, store):
    account = account_factory(allowance="1100.00")  # balance 1000.00

    results = _race([lambda: recorder.record_expense(account.id, "food", "1.25")] * 16)

    assert all(isinstance(r, Committed) for r in results), results
    final = store.get_account(account.id)
    assert final.total_spent == Decimal("20.00")
    assert final.current_balance == Decimal("980.00")
    food = next(a for a in store.list_aggregates(account.id) if a.category == "food")
    assert (food.total_amount, food.transaction_count) == (Decimal("20.00"), 16)


def test_different_accounts_proceed_independently(recorder, account_factory, store):
    accounts = [account_factory(allowance="500.00") for _ in range(4)]

    results = _race(
        [lambda a=a: recorder.record_income(a.id, "100.00", "salary") for a in accounts]
        + [lambda a=a: recorder.record_expense(a.id, "social", "25.00") for a in accounts]
    )

    assert all(isinstance(r, Committed) for r in results), results
    for account in accounts:
        current = store.get_account(account.id)
        assert current.current_balance == Decimal("400.00") + Decimal("50.00") - Decimal("25.00")
        assert current.total_savings == Decimal("150.00")


def test_lost_compare_and_swap_is_retried_from_fresh_read(
    recorder, account_factory, store, monkeypatch
):
    account = account_factory()
    original = SQLModelAccountRepository.compare_and_swap
    calls = []

    def flaky(self, account_id, expected_version, **values):
        calls.append(expected_version)
        if len(calls) == 1:
            return False
        return original(self, account_id, expected_version, **values)

    monkeypatch.setattr(SQLModelAccountRepository, "compare_and_swap", flaky)

    result = recorder.record_expense(account.id, "food", "10.00")

    assert isinstance(result, Committed)
    assert len(calls) == 2
    assert result.account.current_balance == Decimal("4890.00")
    assert len(store.list_transactions(account.id)) == 1


def test_conflicts_exhausting_retries_surface_and_leave_no_partial_write(
    account_factory, store, state_of, monkeypatch
):
    account = account_factory()
    recorder = TransactionRecorder(store, AccountLocks(), max_retries=3)
    before = state_of(account.id)
    monkeypatch.setattr(
        SQLModelAccountRepository, "compare_and_swap", lambda self, *args, **kwargs: False
    )

    with pytest.raises(ConcurrencyConflictError) as excinfo:
        recorder.record_income(account.id, "10.00", "x")

    assert excinfo.value.attempts == 3
    monkeypatch.undo()
    assert state_of(account.id) == before


def test_lock_timeout_is_reported_as_conflict():
    locks = AccountLocks(timeout=0.05)
    with locks.hold(7):
        outcome = _race([lambda: run_serialized(locks, 7, lambda: "ran", max_retries=1)])
    assert isinstance(outcome[0], ConcurrencyConflictError)
