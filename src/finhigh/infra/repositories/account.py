"""SQLModel implementation of the Account repository."""

from __future__ import annotations

from typing import Any, Optional

from sqlalchemy import update
from sqlmodel import Session, select

from ...models._time import utcnow
from ...models.account import Account


class SQLModelAccountRepository:
    """Account access bound to the session of one unit of work."""

    def __init__(self, session: Session):
        self.session = session

    def get_by_id(self, account_id: int, *, for_update: bool = False) -> Optional[Account]:
        """Retrieve an account by ID, re-reading it from the database.

        With ``for_update`` the row is locked on backends that support
        ``SELECT ... FOR UPDATE``; SQLite ignores the clause.
        """
        statement = select(Account).where(Account.id == account_id)
        if for_update:
            statement = statement.with_for_update()
        statement = statement.execution_options(populate_existing=True)
        return self.session.exec(statement).first()

    def get_by_contact(self, contact: str) -> Optional[Account]:
        statement = select(Account).where(Account.contact == contact)
        return self.session.exec(statement).first()

    def list_all(self) -> list[Account]:
        statement = select(Account).order_by(Account.id)  # type: ignore[arg-type]
        return list(self.session.exec(statement).all())

    def add(self, account: Account) -> Account:
        """Insert a new account and flush so its id is assigned."""
        self.session.add(account)
        self.session.flush()
        return account

    def compare_and_swap(self, account_id: int, expected_version: int, **values: Any) -> bool:
        """Write ``values`` only if the row still carries ``expected_version``.

        Returns False when another writer got there first; the version is
        bumped on success.
        """
        statement = (
            update(Account)
            .where(Account.id == account_id)
            .where(Account.version == expected_version)
            .values(version=expected_version + 1, updated_at=utcnow(), **values)
        )
        result = self.session.connection().execute(statement)
        return result.rowcount == 1

    def delete(self, account_id: int) -> bool:
        account = self.session.get(Account, account_id)
        if account is None:
            return False
        self.session.delete(account)
        self.session.flush()
        return True
