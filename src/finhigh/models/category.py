"""Expense category reference data."""

from __future__ import annotations

from datetime import datetime
from typing import ClassVar, Optional

from sqlalchemy import Column
from sqlmodel import Field, SQLModel

from ._columns import UTCDateTime
from ._time import utcnow


class Category(SQLModel, table=True):
    """Catalog entry; ``name`` is the key transactions and aggregates refer to."""

    __tablename__: ClassVar[str] = "expense_category"

    id: Optional[int] = Field(default=None, primary_key=True)
    name: str = Field(nullable=False, unique=True, index=True, max_length=100)
    display_name: str = Field(nullable=False, max_length=150)
    icon_class: str = Field(nullable=False, max_length=100)
    position: int = Field(default=0, nullable=False)
    created_at: datetime = Field(default_factory=utcnow, sa_column=Column(UTCDateTime(), nullable=False))
