"""Typed results returned by the provisioner and recorder."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING, Optional

if TYPE_CHECKING:  # pragma: no cover
    from ..models.account import Account


class RejectReason(str, Enum):
    INSUFFICIENT_BALANCE = "insufficient_balance"
    DUPLICATE_CONTACT = "duplicate_contact"
    INSUFFICIENT_ALLOWANCE = "insufficient_allowance"


@dataclass(frozen=True)
class Committed:
    """The atomic unit was applied.

    ``account`` is a detached copy of the account row as committed.
    ``replayed`` is true when an earlier commit with the same idempotency key
    was returned instead of writing again.
    """

    transaction_id: int
    account: "Account"
    replayed: bool = False

    ok = True


@dataclass(frozen=True)
class AccountCreated:
    account_id: int
    account: "Account"

    ok = True


@dataclass(frozen=True)
class Rejected:
    """An expected business outcome; no writes occurred."""

    reason: RejectReason
    message: str = ""
    account: Optional["Account"] = None

    ok = False
