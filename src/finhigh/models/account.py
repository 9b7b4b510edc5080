"""Account model holding allowance, balance, savings and spend totals."""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import ClassVar, Optional

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from ._columns import Money, UTCDateTime
from ._time import utcnow


class Account(SQLModel, table=True):
    """A user's financial record.

    Mutated only by the provisioner and the recorder. ``version`` is bumped on
    every write and guards the compare-and-swap in the recorder.
    """

    __tablename__: ClassVar[str] = "account"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, max_length=255)
    contact: str = Field(nullable=False, unique=True, index=True, max_length=255)
    monthly_allowance: Decimal = Field(sa_column=Column(Money(), nullable=False))
    current_balance: Decimal = Field(
        default=Decimal("0.00"), sa_column=Column(Money(), nullable=False)
    )
    total_savings: Decimal = Field(
        default=Decimal("0.00"), sa_column=Column(Money(), nullable=False)
    )
    total_spent: Decimal = Field(default=Decimal("0.00"), sa_column=Column(Money(), nullable=False))
    notes: Optional[str] = Field(default=None)
    version: int = Field(default=1, nullable=False)
    created_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False, index=True)
    )
    updated_at: datetime = Field(
        default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False, index=True)
    )
