"""Read-only dashboard projection over one consistent snapshot."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal
from enum import Enum

from ..domain.errors import UnknownAccountError, ValidationError
from ..domain.money import ZERO
from ..infra.store import LedgerStore
from ..models.account import Account
from ..models.transaction import Transaction

DEFAULT_RECENT_LIMIT = 20
HISTORY_DATE_FORMAT = "%d %B %Y at %I:%M %p"


class SpendingStatus(str, Enum):
    GOOD = "GOOD"
    MODERATE = "MODERATE"
    HIGH = "HIGH"


@dataclass(frozen=True)
class AggregateView:
    category: str
    display_name: str
    icon_class: str
    total_amount: Decimal
    transaction_count: int


@dataclass(frozen=True)
class SpendingAnalysis:
    spent_percentage: Decimal
    status: SpendingStatus


@dataclass(frozen=True)
class Dashboard:
    account: Account
    aggregates: list[AggregateView]
    recent_transactions: list[Transaction]
    analysis: SpendingAnalysis


@dataclass(frozen=True)
class HistoryEntry:
    transaction: Transaction
    formatted_date: str


def spending_analysis(account: Account) -> SpendingAnalysis:
    """Share of the monthly allowance already spent, bucketed GOOD/MODERATE/HIGH."""

    if account.monthly_allowance <= ZERO:
        ratio = Decimal("0")
    else:
        ratio = account.total_spent / account.monthly_allowance * 100
    # buckets use the unrounded ratio; only the reported figure is rounded
    percentage = ratio.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP)
    if ratio < 50:
        status = SpendingStatus.GOOD
    elif ratio < 75:
        status = SpendingStatus.MODERATE
    else:
        status = SpendingStatus.HIGH
    return SpendingAnalysis(spent_percentage=percentage, status=status)


class DashboardProjector:
    """Assembles account, aggregates and recent history without mutating anything."""

    def __init__(self, store: LedgerStore, *, recent_limit: int = DEFAULT_RECENT_LIMIT):
        self.store = store
        self.recent_limit = recent_limit

    def get_dashboard(self, account_id: int) -> Dashboard:
        # All three reads share one snapshot so no half-applied commit is visible.
        with self.store.snapshot() as unit:
            account = unit.accounts.get_by_id(account_id)
            if account is None:
                raise UnknownAccountError(account_id)
            catalog = {category.name: category for category in unit.categories.list_all()}
            aggregates = [
                AggregateView(
                    category=row.category,
                    display_name=catalog[row.category].display_name,
                    icon_class=catalog[row.category].icon_class,
                    total_amount=row.total_amount,
                    transaction_count=row.transaction_count,
                )
                for row in unit.aggregates.list_for_account(account_id)
                if row.category in catalog
            ]
            recent = unit.transactions.list_for_account(account_id, limit=self.recent_limit)
        return Dashboard(
            account=account,
            aggregates=aggregates,
            recent_transactions=recent,
            analysis=spending_analysis(account),
        )

    def transaction_history(
        self, account_id: int, *, limit: int = 50, offset: int = 0
    ) -> list[HistoryEntry]:
        """Page through an account's history, newest first."""
        if limit < 1 or offset < 0:
            raise ValidationError("limit must be positive and offset non-negative")
        with self.store.snapshot() as unit:
            if unit.accounts.get_by_id(account_id) is None:
                raise UnknownAccountError(account_id)
            rows = unit.transactions.list_for_account(account_id, limit=limit, offset=offset)
        return [
            HistoryEntry(transaction=row, formatted_date=row.occurred_at.strftime(HISTORY_DATE_FORMAT))
            for row in rows
        ]
