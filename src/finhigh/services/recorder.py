"""Transaction recorder: validates a request and applies it as one atomic unit.

Each request appends one transaction, updates exactly one account and at most
one category aggregate. The balance check and the writes are evaluated against
the same read, and the account write is a compare-and-swap on
``Account.version`` so a stale read can never commit.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Optional, Union

from ..domain.errors import (
    ConcurrencyConflictError,
    IdempotencyKeyReusedError,
    UnknownAccountError,
    UnknownCategoryError,
)
from ..domain.money import MoneyInput, positive_money, split_income
from ..domain.outcomes import Committed, RejectReason, Rejected
from ..infra.store import LedgerStore, LedgerUnit
from ..logging_config import get_logger
from ..models.account import Account
from ..models.transaction import Transaction, TransactionKind
from .locks import AccountLocks, run_serialized

logger = get_logger("services.recorder")

RecordResult = Union[Committed, Rejected]


def _normalize_key(idempotency_key: Optional[str]) -> Optional[str]:
    if idempotency_key is None:
        return None
    key = idempotency_key.strip()
    return key or None


class TransactionRecorder:
    """Records income and expense events against an account."""

    def __init__(self, store: LedgerStore, locks: AccountLocks, *, max_retries: int = 5):
        self.store = store
        self.locks = locks
        self.max_retries = max_retries

    def record_expense(
        self,
        account_id: int,
        category: str,
        amount: MoneyInput,
        description: str = "",
        *,
        idempotency_key: Optional[str] = None,
    ) -> RecordResult:
        """Debit ``amount`` from the balance and book it against ``category``.

        Returns ``Rejected(INSUFFICIENT_BALANCE)`` without writing anything
        when the balance does not cover the amount.
        """
        value = positive_money(amount)
        category = (category or "").strip()
        if not category:
            raise UnknownCategoryError(category)
        key = _normalize_key(idempotency_key)

        def attempt() -> RecordResult:
            with self.store.unit() as unit:
                account = self._load(unit, account_id)
                if unit.categories.get_by_name(category) is None:
                    raise UnknownCategoryError(category)
                replay = self._replay(
                    unit, account, key, TransactionKind.EXPENSE, value, category=category
                )
                if replay is not None:
                    return replay
                if account.current_balance < value:
                    return Rejected(
                        RejectReason.INSUFFICIENT_BALANCE,
                        f"Balance {account.current_balance} does not cover expense of {value}",
                        account=account,
                    )
                self._swap(
                    unit,
                    account,
                    current_balance=account.current_balance - value,
                    total_spent=account.total_spent + value,
                )
                txn = unit.transactions.append(
                    Transaction(
                        account_id=account_id,
                        kind=TransactionKind.EXPENSE,
                        category=category,
                        amount=value,
                        description=description or "",
                        idempotency_key=key,
                    )
                )
                unit.aggregates.add_expense(account_id, category, value)
                return Committed(txn.id, unit.accounts.get_by_id(account_id))

        result = run_serialized(
            self.locks,
            account_id,
            attempt,
            max_retries=self.max_retries,
            retry_on_constraint=key is not None,
        )
        if isinstance(result, Rejected):
            logger.info(
                "Expense rejected",
                extra={"account_id": account_id, "amount": value, "reason": result.reason.value},
            )
        else:
            logger.info(
                "Expense recorded",
                extra={
                    "account_id": account_id,
                    "transaction_id": result.transaction_id,
                    "category": category,
                    "amount": value,
                    "replayed": result.replayed,
                },
            )
        return result

    def record_income(
        self,
        account_id: int,
        amount: MoneyInput,
        source: str = "",
        description: str = "",
        *,
        idempotency_key: Optional[str] = None,
    ) -> Committed:
        """Credit income, half to savings (rounded down) and the rest to balance."""
        value = positive_money(amount)
        split = split_income(value)
        key = _normalize_key(idempotency_key)

        def attempt() -> Committed:
            with self.store.unit() as unit:
                account = self._load(unit, account_id)
                replay = self._replay(
                    unit, account, key, TransactionKind.INCOME, value, source=source or None
                )
                if replay is not None:
                    return replay
                self._swap(
                    unit,
                    account,
                    current_balance=account.current_balance + split.balance,
                    total_savings=account.total_savings + split.savings,
                )
                txn = unit.transactions.append(
                    Transaction(
                        account_id=account_id,
                        kind=TransactionKind.INCOME,
                        amount=value,
                        source=source or None,
                        description=description or "",
                        idempotency_key=key,
                    )
                )
                return Committed(txn.id, unit.accounts.get_by_id(account_id))

        result = run_serialized(
            self.locks,
            account_id,
            attempt,
            max_retries=self.max_retries,
            retry_on_constraint=key is not None,
        )
        logger.info(
            "Income recorded",
            extra={
                "account_id": account_id,
                "transaction_id": result.transaction_id,
                "amount": value,
                "savings_delta": split.savings,
                "balance_delta": split.balance,
                "replayed": result.replayed,
            },
        )
        return result

    @staticmethod
    def _load(unit: LedgerUnit, account_id: int) -> Account:
        account = unit.accounts.get_by_id(account_id, for_update=True)
        if account is None:
            raise UnknownAccountError(account_id)
        return account

    @staticmethod
    def _replay(
        unit: LedgerUnit,
        account: Account,
        key: Optional[str],
        kind: TransactionKind,
        amount: Decimal,
        *,
        category: Optional[str] = None,
        source: Optional[str] = None,
    ) -> Optional[Committed]:
        """Return the earlier result for ``key``, refusing a key reused for another request."""
        if key is None:
            return None
        existing = unit.transactions.get_by_idempotency_key(account.id, key)
        if existing is None:
            return None
        if (existing.kind, existing.amount, existing.category, existing.source) != (
            kind,
            amount,
            category,
            source,
        ):
            raise IdempotencyKeyReusedError(key, existing.id)
        return Committed(existing.id, account, replayed=True)

    @staticmethod
    def _swap(unit: LedgerUnit, account: Account, **values) -> None:
        if not unit.accounts.compare_and_swap(account.id, account.version, **values):
            raise ConcurrencyConflictError(account.id)
