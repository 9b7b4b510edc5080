"""Per-account, per-category running expense totals."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Optional

from sqlalchemy import Column, UniqueConstraint
from sqlmodel import Field, SQLModel

from ._columns import Money, UTCDateTime
from ._time import utcnow


class CategoryAggregate(SQLModel, table=True):
    """Denormalized cache of the expense log, maintained incrementally."""

    __tablename__: ClassVar[str] = "category_aggregate"
    __table_args__ = (
        UniqueConstraint("account_id", "category", name="uq_aggregate_account_category"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="account.id", nullable=False, index=True)
    category: str = Field(nullable=False, index=True, max_length=100)
    total_amount: Decimal = Field(
        default=Decimal("0.00"), sa_column=Column(Money(), nullable=False)
    )
    transaction_count: int = Field(default=0, nullable=False)
    last_updated: datetime = Field(
        default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False)
    )
