"""Fixed-point money helpers.

Every amount in the ledger is a :class:`~decimal.Decimal` with exactly two
fractional digits. Floats are refused outright.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_DOWN, Decimal, InvalidOperation
from typing import Union

from .errors import InvalidAmountError

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
MAX_AMOUNT = Decimal("9999999999.99")

MoneyInput = Union[Decimal, int, str]


def to_money(value: MoneyInput) -> Decimal:
    """Parse ``value`` into a two-digit Decimal, rejecting floats and sub-cent precision."""

    if isinstance(value, bool) or isinstance(value, float):
        raise InvalidAmountError(value, "floating point values are not accepted for money")
    try:
        amount = value if isinstance(value, Decimal) else Decimal(str(value).strip())
    except (InvalidOperation, ValueError) as exc:
        raise InvalidAmountError(value, "not a decimal number") from exc
    if not amount.is_finite():
        raise InvalidAmountError(value, "not a finite number")
    quantized = amount.quantize(CENT)
    if quantized != amount:
        raise InvalidAmountError(value, "more than two fractional digits")
    if abs(quantized) > MAX_AMOUNT:
        raise InvalidAmountError(value, "exceeds the storable range")
    return quantized


def positive_money(value: MoneyInput) -> Decimal:
    amount = to_money(value)
    if amount <= ZERO:
        raise InvalidAmountError(value)
    return amount


@dataclass(frozen=True)
class IncomeSplit:
    savings: Decimal
    balance: Decimal


def split_income(amount: Decimal) -> IncomeSplit:
    """Split income 50/50 between savings and balance.

    The savings half is rounded down to the cent and the balance receives the
    remainder, so ``savings + balance == amount`` holds for odd-cent amounts too
    (``0.01`` -> savings ``0.00``, balance ``0.01``).
    """

    savings = (amount / 2).quantize(CENT, rounding=ROUND_DOWN)
    return IncomeSplit(savings=savings, balance=amount - savings)
