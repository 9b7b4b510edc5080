"""SQLModel definitions for the append-only transaction log."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import ClassVar, Optional

from sqlalchemy import Column, Index, UniqueConstraint
from sqlmodel import Field, SQLModel

from ._columns import Money, UTCDateTime
from ._time import utcnow


class TransactionKind(str, Enum):
    INCOME = "income"
    EXPENSE = "expense"


class Transaction(SQLModel, table=True):
    """A single committed income or expense event. Never updated after insert."""

    __tablename__: ClassVar[str] = "ledger_transaction"
    __table_args__ = (
        UniqueConstraint("account_id", "idempotency_key", name="uq_transaction_idempotency"),
        Index("ix_transaction_account_occurred", "account_id", "occurred_at"),
    )

    id: Optional[int] = Field(default=None, primary_key=True)
    account_id: int = Field(foreign_key="account.id", nullable=False, index=True)
    kind: TransactionKind = Field(nullable=False, index=True)
    category: Optional[str] = Field(default=None, index=True, max_length=100)
    amount: Decimal = Field(sa_column=Column(Money(), nullable=False))
    description: str = Field(default="")
    # Income only
    source: Optional[str] = Field(default=None, max_length=100)
    idempotency_key: Optional[str] = Field(default=None, max_length=128)
    occurred_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False, index=True)
    )
