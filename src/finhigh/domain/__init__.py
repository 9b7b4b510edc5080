"""Ledger domain rules: money arithmetic, outcomes and errors."""

from .errors import (
    ConcurrencyConflictError,
    ConstraintViolationError,
    IdempotencyKeyReusedError,
    InvalidAmountError,
    LedgerError,
    StorageError,
    UnknownAccountError,
    UnknownCategoryError,
    ValidationError,
)
from .money import ZERO, IncomeSplit, split_income, to_money
from .outcomes import AccountCreated, Committed, RejectReason, Rejected

__all__ = [
    "AccountCreated",
    "Committed",
    "ConcurrencyConflictError",
    "ConstraintViolationError",
    "IdempotencyKeyReusedError",
    "IncomeSplit",
    "InvalidAmountError",
    "LedgerError",
    "RejectReason",
    "Rejected",
    "StorageError",
    "UnknownAccountError",
    "UnknownCategoryError",
    "ValidationError",
    "ZERO",
    "split_income",
    "to_money",
]
