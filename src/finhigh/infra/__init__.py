"""Persistence layer: engine wiring, repositories and the unit-of-work store."""

from .database import bootstrap_database, create_db_engine, init_database
from .store import LedgerStore, LedgerUnit

__all__ = [
    "LedgerStore",
    "LedgerUnit",
    "bootstrap_database",
    "create_db_engine",
    "init_database",
]
