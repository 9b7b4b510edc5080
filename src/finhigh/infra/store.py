"""Unit-of-work store spanning accounts, transactions and aggregates."""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator, Optional

from sqlalchemy.engine import Engine
from sqlalchemy.exc import DBAPIError, IntegrityError, OperationalError, SQLAlchemyError
from sqlmodel import Session

from ..domain.errors import (
    ConcurrencyConflictError,
    ConstraintViolationError,
    LedgerError,
    StorageError,
)
from ..logging_config import get_logger
from ..models import Account, Category, CategoryAggregate, Transaction
from .database import BEGIN_MODE_OPTION
from .repositories import (
    SQLModelAccountRepository,
    SQLModelAggregateRepository,
    SQLModelCategoryRepository,
    SQLModelTransactionRepository,
)

logger = get_logger("infra.store")

_CONFLICT_MARKERS = (
    "database is locked",
    "database table is locked",
    "busy",
    "deadlock",
    "could not serialize",
    "lock wait timeout",
    "lock timeout",
)


def translate_error(exc: SQLAlchemyError) -> Exception:
    """Map a SQLAlchemy failure onto the ledger error taxonomy."""

    # column types validate on bind; their errors arrive wrapped in StatementError
    if isinstance(getattr(exc, "orig", None), LedgerError):
        return exc.orig
    if isinstance(exc, IntegrityError):
        return ConstraintViolationError(str(exc.orig))
    if isinstance(exc, (OperationalError, DBAPIError)):
        message = str(getattr(exc, "orig", exc)).lower()
        if any(marker in message for marker in _CONFLICT_MARKERS):
            return ConcurrencyConflictError(None)
    return StorageError(str(exc))


class LedgerUnit:
    """Repositories sharing one session; everything commits or nothing does."""

    def __init__(self, session: Session):
        self.session = session
        self.accounts = SQLModelAccountRepository(session)
        self.transactions = SQLModelTransactionRepository(session)
        self.aggregates = SQLModelAggregateRepository(session)
        self.categories = SQLModelCategoryRepository(session)


class LedgerStore:
    """Durable keyed storage for the ledger with an atomic multi-row commit primitive."""

    def __init__(self, engine: Engine):
        self.engine = engine

    @contextmanager
    def unit(self) -> Iterator[LedgerUnit]:
        """Open a read-write unit; commit on clean exit, roll back on any exception."""

        session = Session(self.engine, expire_on_commit=False)
        try:
            session.connection(execution_options={BEGIN_MODE_OPTION: "IMMEDIATE"})
            yield LedgerUnit(session)
            session.commit()
        except SQLAlchemyError as exc:
            session.rollback()
            translated = translate_error(exc)
            if isinstance(translated, StorageError) and not isinstance(
                translated, ConstraintViolationError
            ):
                logger.error("Unit of work failed", exc_info=True)
            raise translated from exc
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    @contextmanager
    def snapshot(self) -> Iterator[LedgerUnit]:
        """Open a read-only unit; every read sees the same committed state."""

        session = Session(self.engine, expire_on_commit=False)
        try:
            yield LedgerUnit(session)
            # detach loaded rows so the rollback below does not expire them
            session.expunge_all()
        except SQLAlchemyError as exc:
            raise translate_error(exc) from exc
        finally:
            session.rollback()
            session.close()

    # Convenience reads, each in its own snapshot ----------------------------

    def get_account(self, account_id: int) -> Optional[Account]:
        with self.snapshot() as unit:
            return unit.accounts.get_by_id(account_id)

    def list_accounts(self) -> list[Account]:
        with self.snapshot() as unit:
            return unit.accounts.list_all()

    def list_transactions(
        self, account_id: int, *, limit: Optional[int] = None, offset: int = 0
    ) -> list[Transaction]:
        with self.snapshot() as unit:
            return unit.transactions.list_for_account(account_id, limit=limit, offset=offset)

    def list_aggregates(self, account_id: int) -> list[CategoryAggregate]:
        with self.snapshot() as unit:
            return unit.aggregates.list_for_account(account_id)

    def list_categories(self) -> list[Category]:
        with self.snapshot() as unit:
            return unit.categories.list_all()
