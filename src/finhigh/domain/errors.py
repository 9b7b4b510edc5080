"""Exception hierarchy for conditions that are not business outcomes.

Insufficient balance and duplicate contacts are *not* exceptions; they are
returned as :class:`~finhigh.domain.outcomes.Rejected`.
"""

from __future__ import annotations


class LedgerError(Exception):
    """Root of every error raised by the ledger core."""


class ValidationError(LedgerError, ValueError):
    """Request was malformed; nothing was written and retrying will not help."""


class InvalidAmountError(ValidationError):
    def __init__(self, amount: object, reason: str = "amount must be positive") -> None:
        super().__init__(f"Invalid amount {amount!r}: {reason}")
        self.amount = amount


class UnknownCategoryError(ValidationError):
    def __init__(self, category: str) -> None:
        super().__init__(f"Unknown expense category: {category!r}")
        self.category = category


class UnknownAccountError(ValidationError, LookupError):
    def __init__(self, account_id: int) -> None:
        super().__init__(f"Account {account_id} does not exist")
        self.account_id = account_id


class ConcurrencyConflictError(LedgerError):
    """A concurrent writer changed the account first; retry from a fresh read."""

    def __init__(self, account_id: int | None, attempts: int = 1) -> None:
        super().__init__(
            f"Concurrent modification of account {account_id} (after {attempts} attempt(s))"
        )
        self.account_id = account_id
        self.attempts = attempts


class StorageError(LedgerError):
    """The store failed mid-unit; the unit was rolled back and left no partial effect."""


class ConstraintViolationError(StorageError):
    """A uniqueness or foreign-key constraint rejected the unit."""


class IdempotencyKeyReusedError(ValidationError):
    """The key already names a different request on this account."""

    def __init__(self, key: str, transaction_id: int | None) -> None:
        super().__init__(
            f"Idempotency key {key!r} was already used for transaction {transaction_id} "
            "with different details"
        )
        self.key = key
        self.transaction_id = transaction_id
