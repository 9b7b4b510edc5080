"""Session-bound repository implementations using SQLModel."""

from .account import SQLModelAccountRepository
from .aggregate import SQLModelAggregateRepository
from .category import SQLModelCategoryRepository
from .transaction import SQLModelTransactionRepository

__all__ = [
    "SQLModelAccountRepository",
    "SQLModelAggregateRepository",
    "SQLModelCategoryRepository",
    "SQLModelTransactionRepository",
]
