"""Consistency checks and aggregate repair by replaying the transaction log."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass, field, replace
from decimal import Decimal
from typing import Iterable

from ..domain.errors import ConcurrencyConflictError, UnknownAccountError
from ..domain.money import ZERO, split_income, to_money
from ..infra.store import LedgerStore, LedgerUnit
from ..logging_config import get_logger
from ..models.transaction import Transaction, TransactionKind
from .locks import AccountLocks, run_serialized

logger = get_logger("services.reconcile")


@dataclass(frozen=True)
class CategoryTotals:
    total_amount: Decimal = ZERO
    transaction_count: int = 0


@dataclass(frozen=True)
class CategoryDrift:
    category: str
    stored: CategoryTotals
    replayed: CategoryTotals


@dataclass(frozen=True)
class ReconciliationReport:
    account_id: int
    stored_total_spent: Decimal
    replayed_total_spent: Decimal
    stored_balance: Decimal
    expected_balance: Decimal
    stored_savings: Decimal
    expected_savings: Decimal
    drifts: list[CategoryDrift] = field(default_factory=list)
    repaired: bool = False

    @property
    def aggregates_consistent(self) -> bool:
        return not self.drifts and self.stored_total_spent == self.replayed_total_spent

    @property
    def balances_consistent(self) -> bool:
        return (
            self.stored_balance == self.expected_balance
            and self.stored_savings == self.expected_savings
        )

    @property
    def consistent(self) -> bool:
        return self.aggregates_consistent and self.balances_consistent


def replay_expenses(transactions: Iterable[Transaction]) -> dict[str, CategoryTotals]:
    """Rebuild per-category totals from expense transactions."""

    amounts: dict[str, Decimal] = defaultdict(lambda: ZERO)
    counts: dict[str, int] = defaultdict(int)
    for txn in transactions:
        if txn.kind != TransactionKind.EXPENSE or txn.category is None:
            continue
        amounts[txn.category] += txn.amount
        counts[txn.category] += 1
    return {name: CategoryTotals(amounts[name], counts[name]) for name in amounts}


class Reconciler:
    """Compares the denormalized aggregates and totals against the transaction log."""

    def __init__(
        self,
        store: LedgerStore,
        locks: AccountLocks,
        *,
        carve_out: Decimal = Decimal("100.00"),
        max_retries: int = 5,
    ):
        self.store = store
        self.locks = locks
        self.carve_out = to_money(carve_out)
        self.max_retries = max_retries

    def check_account(self, account_id: int) -> ReconciliationReport:
        with self.store.snapshot() as unit:
            return self._inspect(unit, account_id)

    def reconcile_aggregates(self, account_id: int) -> ReconciliationReport:
        """Rewrite aggregates and ``total_spent`` from the log in one unit.

        Returns the report describing the state found before the repair.
        Balance and savings are only reported, never rewritten.
        """

        def attempt() -> ReconciliationReport:
            with self.store.unit() as unit:
                report = self._inspect(unit, account_id)
                if report.aggregates_consistent:
                    return report
                account = unit.accounts.get_by_id(account_id, for_update=True)
                for drift in report.drifts:
                    unit.aggregates.set_totals(
                        account_id,
                        drift.category,
                        drift.replayed.total_amount,
                        drift.replayed.transaction_count,
                    )
                if not unit.accounts.compare_and_swap(
                    account_id, account.version, total_spent=report.replayed_total_spent
                ):
                    raise ConcurrencyConflictError(account_id)
                return replace(report, repaired=True)

        report = run_serialized(self.locks, account_id, attempt, max_retries=self.max_retries)
        if report.repaired:
            logger.warning(
                "Aggregates repaired from transaction log",
                extra={
                    "account_id": account_id,
                    "categories": [drift.category for drift in report.drifts],
                    "total_spent": report.replayed_total_spent,
                },
            )
        return report

    def _inspect(self, unit: LedgerUnit, account_id: int) -> ReconciliationReport:
        account = unit.accounts.get_by_id(account_id)
        if account is None:
            raise UnknownAccountError(account_id)
        transactions = unit.transactions.list_for_account(account_id, newest_first=False)
        replayed = replay_expenses(transactions)
        stored = {
            row.category: CategoryTotals(row.total_amount, row.transaction_count)
            for row in unit.aggregates.list_for_account(account_id)
        }
        catalog = [category.name for category in unit.categories.list_all()]

        drifts = []
        for name in sorted(set(catalog) | set(stored) | set(replayed)):
            expected = replayed.get(name, CategoryTotals())
            actual = stored.get(name)
            # a missing row is drift even when nothing was spent
            if actual != expected:
                drifts.append(CategoryDrift(name, actual or CategoryTotals(), expected))

        expense_total = sum((t.amount for t in transactions if t.kind == TransactionKind.EXPENSE), ZERO)
        splits = [split_income(t.amount) for t in transactions if t.kind == TransactionKind.INCOME]
        expected_balance = (
            account.monthly_allowance
            - self.carve_out
            + sum((s.balance for s in splits), ZERO)
            - expense_total
        )
        expected_savings = self.carve_out + sum((s.savings for s in splits), ZERO)
        return ReconciliationReport(
            account_id=account_id,
            stored_total_spent=account.total_spent,
            replayed_total_spent=expense_total,
            stored_balance=account.current_balance,
            expected_balance=expected_balance,
            stored_savings=account.total_savings,
            expected_savings=expected_savings,
            drifts=drifts,
        )
