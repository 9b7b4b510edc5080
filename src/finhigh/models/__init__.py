"""SQLModel table exports."""

from .account import Account
from .aggregate import CategoryAggregate
from .category import Category
from .transaction import Transaction, TransactionKind

__all__ = [
    "Account",
    "Category",
    "CategoryAggregate",
    "Transaction",
    "TransactionKind",
]
