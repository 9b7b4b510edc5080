"""SQLModel implementation of the Transaction repository."""

from __future__ import annotations

from typing import Optional

from sqlalchemy import delete
from sqlmodel import Session, select

from ...models.transaction import Transaction, TransactionKind


class SQLModelTransactionRepository:
    """Append-only access to the transaction log."""

    def __init__(self, session: Session):
        self.session = session

    def append(self, transaction: Transaction) -> Transaction:
        """Insert a transaction and flush so its id is assigned."""
        self.session.add(transaction)
        self.session.flush()
        return transaction

    def get_by_idempotency_key(self, account_id: int, key: str) -> Optional[Transaction]:
        statement = (
            select(Transaction)
            .where(Transaction.account_id == account_id)
            .where(Transaction.idempotency_key == key)
        )
        return self.session.exec(statement).first()

    def list_for_account(
        self,
        account_id: int,
        *,
        limit: Optional[int] = None,
        offset: int = 0,
        newest_first: bool = True,
        kind: Optional[TransactionKind] = None,
    ) -> list[Transaction]:
        """List an account's transactions ordered by (timestamp, insertion id)."""
        statement = select(Transaction).where(Transaction.account_id == account_id)
        if kind is not None:
            statement = statement.where(Transaction.kind == kind)
        if newest_first:
            statement = statement.order_by(
                Transaction.occurred_at.desc(), Transaction.id.desc()  # type: ignore[union-attr]
            )
        else:
            statement = statement.order_by(Transaction.occurred_at, Transaction.id)  # type: ignore[arg-type]
        if offset:
            statement = statement.offset(offset)
        if limit is not None:
            statement = statement.limit(limit)
        return list(self.session.exec(statement).all())

    def delete_for_account(self, account_id: int) -> int:
        result = self.session.connection().execute(
            delete(Transaction).where(Transaction.account_id == account_id)
        )
        return result.rowcount or 0
