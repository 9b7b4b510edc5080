"""Column types for money and timestamps.

Money is stored as an integer count of cents so no backend ever holds it as
a float; timestamps are always handed back as aware UTC datetimes.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from sqlalchemy import BigInteger, DateTime
from sqlalchemy.types import TypeDecorator

from ..domain.money import CENT, to_money
from ._time import as_utc


class Money(TypeDecorator):
    """``Decimal`` with two fractional digits, persisted as integer cents."""

    impl = BigInteger
    cache_ok = True

    def process_bind_param(self, value: Any, dialect) -> Optional[int]:
        if value is None:
            return None
        return int(to_money(value) / CENT)

    def process_result_value(self, value: Any, dialect) -> Optional[Decimal]:
        if value is None:
            return None
        return (Decimal(int(value)) * CENT).quantize(CENT)

    @property
    def python_type(self):
        return Decimal


class UTCDateTime(TypeDecorator):
    impl = DateTime(timezone=True)
    cache_ok = True

    def process_bind_param(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        return as_utc(value)

    def process_result_value(self, value: Optional[datetime], dialect) -> Optional[datetime]:
        if value is None:
            return None
        return as_utc(value)

    @property
    def python_type(self):
        return datetime
