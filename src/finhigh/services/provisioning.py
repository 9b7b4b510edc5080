"""Account provisioning and removal."""

from __future__ import annotations

from dataclasses import dataclass
from decimal import Decimal
from typing import Optional, Union

from ..domain.errors import ConstraintViolationError, UnknownAccountError, ValidationError
from ..domain.money import MoneyInput, positive_money, to_money
from ..domain.outcomes import AccountCreated, RejectReason, Rejected
from ..infra.store import LedgerStore
from ..logging_config import get_logger
from ..models.account import Account
from .locks import AccountLocks, run_serialized

logger = get_logger("services.provisioning")

DEFAULT_CARVE_OUT = Decimal("100.00")

CreateResult = Union[AccountCreated, Rejected]


@dataclass(frozen=True)
class DeleteSummary:
    """Row counts removed by an account deletion."""

    account_id: int
    transactions: int
    aggregates: int


def normalize_contact(contact: str) -> str:
    """Contacts compare case-insensitively and without surrounding whitespace."""

    return (contact or "").strip().lower()


class AccountProvisioner:
    """Creates accounts with their savings carve-out and zeroed aggregates."""

    def __init__(
        self,
        store: LedgerStore,
        locks: AccountLocks,
        *,
        carve_out: MoneyInput = DEFAULT_CARVE_OUT,
        max_retries: int = 5,
    ):
        self.store = store
        self.locks = locks
        self.carve_out = to_money(carve_out)
        self.max_retries = max_retries

    def create_account(
        self,
        name: str,
        contact: str,
        allowance: MoneyInput,
        notes: Optional[str] = None,
    ) -> CreateResult:
        """Create an account seeded from ``allowance``.

        The carve-out goes to savings and the remainder to the balance. One
        zero aggregate is inserted per catalog category in the same unit.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Account name must not be empty")
        contact_key = normalize_contact(contact)
        if not contact_key:
            raise ValidationError("Contact must not be empty")
        value = positive_money(allowance)

        if value < self.carve_out:
            logger.info(
                "Account rejected: allowance below carve-out",
                extra={"contact": contact_key, "allowance": value, "carve_out": self.carve_out},
            )
            return Rejected(
                RejectReason.INSUFFICIENT_ALLOWANCE,
                f"Allowance {value} is below the savings carve-out of {self.carve_out}",
            )

        try:
            with self.store.unit() as unit:
                if unit.accounts.get_by_contact(contact_key) is not None:
                    return self._duplicate(contact_key)
                account = unit.accounts.add(
                    Account(
                        name=name,
                        contact=contact_key,
                        monthly_allowance=value,
                        current_balance=value - self.carve_out,
                        total_savings=self.carve_out,
                        notes=notes,
                    )
                )
                categories = [category.name for category in unit.categories.list_all()]
                unit.aggregates.seed_zero(account.id, categories)
        except ConstraintViolationError:
            # Lost a race against another insert of the same contact
            with self.store.snapshot() as unit:
                taken = unit.accounts.get_by_contact(contact_key) is not None
            if taken:
                return self._duplicate(contact_key)
            raise

        logger.info(
            "Account created",
            extra={
                "account_id": account.id,
                "allowance": value,
                "current_balance": account.current_balance,
                "total_savings": account.total_savings,
                "aggregates": len(categories),
            },
        )
        return AccountCreated(account.id, account)

    def delete_account(self, account_id: int) -> DeleteSummary:
        """Delete an account with its transactions and aggregates in one unit."""

        def attempt() -> DeleteSummary:
            with self.store.unit() as unit:
                if unit.accounts.get_by_id(account_id, for_update=True) is None:
                    raise UnknownAccountError(account_id)
                aggregates = unit.aggregates.delete_for_account(account_id)
                transactions = unit.transactions.delete_for_account(account_id)
                unit.accounts.delete(account_id)
            return DeleteSummary(account_id, transactions, aggregates)

        summary = run_serialized(self.locks, account_id, attempt, max_retries=self.max_retries)
        logger.info(
            "Account deleted",
            extra={
                "account_id": account_id,
                "transactions": summary.transactions,
                "aggregates": summary.aggregates,
            },
        )
        return summary

    @staticmethod
    def _duplicate(contact: str) -> Rejected:
        logger.info("Account rejected: duplicate contact", extra={"contact": contact})
        return Rejected(RejectReason.DUPLICATE_CONTACT, f"Contact {contact!r} is already registered")
