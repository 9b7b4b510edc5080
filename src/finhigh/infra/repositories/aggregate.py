"""SQLModel implementation of the CategoryAggregate repository."""

from __future__ import annotations

from decimal import Decimal
from typing import Iterable, Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from ...domain.money import ZERO
from ...models._time import utcnow
from ...models.aggregate import CategoryAggregate


class SQLModelAggregateRepository:
    """Per-category running totals keyed by (account id, category)."""

    def __init__(self, session: Session):
        self.session = session

    def get(self, account_id: int, category: str) -> Optional[CategoryAggregate]:
        statement = (
            select(CategoryAggregate)
            .where(CategoryAggregate.account_id == account_id)
            .where(CategoryAggregate.category == category)
            .execution_options(populate_existing=True)
        )
        return self.session.exec(statement).first()

    def seed_zero(self, account_id: int, categories: Iterable[str]) -> list[CategoryAggregate]:
        """Insert one zero-valued row per category."""
        rows = [
            CategoryAggregate(account_id=account_id, category=name, total_amount=ZERO)
            for name in categories
        ]
        self.session.add_all(rows)
        self.session.flush()
        return rows

    def add_expense(self, account_id: int, category: str, amount: Decimal) -> CategoryAggregate:
        """Upsert the aggregate row and add one expense of ``amount`` to it.

        A missing row is created at zero first.
        """
        aggregate = self.get(account_id, category)
        if aggregate is None:
            aggregate = CategoryAggregate(account_id=account_id, category=category, total_amount=ZERO)
        aggregate.total_amount = aggregate.total_amount + amount
        aggregate.transaction_count += 1
        aggregate.last_updated = utcnow()
        self.session.add(aggregate)
        self.session.flush()
        return aggregate

    def set_totals(
        self, account_id: int, category: str, total_amount: Decimal, transaction_count: int
    ) -> CategoryAggregate:
        aggregate = self.get(account_id, category)
        if aggregate is None:
            aggregate = CategoryAggregate(account_id=account_id, category=category)
        aggregate.total_amount = total_amount
        aggregate.transaction_count = transaction_count
        aggregate.last_updated = utcnow()
        self.session.add(aggregate)
        self.session.flush()
        return aggregate

    def list_for_account(self, account_id: int) -> list[CategoryAggregate]:
        """List aggregates, largest spend first."""
        statement = (
            select(CategoryAggregate)
            .where(CategoryAggregate.account_id == account_id)
            .order_by(
                CategoryAggregate.total_amount.desc(),  # type: ignore[attr-defined]
                CategoryAggregate.category,
            )
        )
        return list(self.session.exec(statement).all())

    def delete_for_account(self, account_id: int) -> int:
        result = self.session.connection().execute(
            delete(CategoryAggregate).where(CategoryAggregate.account_id == account_id)
        )
        return result.rowcount or 0
