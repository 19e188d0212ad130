# ruff: noqa: I001
"""Target store contract and its SQLAlchemy implementation.

The merge engine and the source readers depend only on :class:`ExpenseStore`.
Swapping the persistence technology means writing another implementation of
that protocol; nothing upstream changes.

:class:`SqlAlchemyExpenseStore` writes to ``expenses`` (``db.models.expenses``)
through a caller-provided session:

- each insert is flushed inside a SAVEPOINT, so later duplicate checks in the
  same run see it and a failing insert rolls back only itself;
- durability happens once, in :meth:`SqlAlchemyExpenseStore.commit`.
"""

from __future__ import annotations

from datetime import UTC
from typing import NamedTuple, Protocol

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from db.models.expenses import Expense
from .models import DuplicateKey, ExpenseRecord


class StoredExpense(NamedTuple):
    """A record as held by the target store, with its store-assigned id."""

    id: int
    record: ExpenseRecord


class ExpenseStore(Protocol):
    """Abstract target store used by the merge engine and exporters."""

    def fetch_all(self) -> list[StoredExpense]:
        """Return every stored expense, newest first."""
        ...

    def insert(self, record: ExpenseRecord) -> None:
        """Add ``record``; it must be visible to later ``count_matching`` calls."""
        ...

    def count_matching(self, key: DuplicateKey) -> int:
        """Count stored expenses whose ``(timestamp, amount, description)`` equals ``key``."""
        ...

    def commit(self) -> None:
        """Make all insertions since the last commit durable, or none of them."""
        ...

    def rollback(self) -> None:
        """Discard all insertions since the last commit."""
        ...


class SqlAlchemyExpenseStore:
    """:class:`ExpenseStore` backed by a SQLAlchemy session."""

    def __init__(self, session: Session) -> None:
        self._session = session

    @property
    def session(self) -> Session:
        return self._session

    def fetch_all(self) -> list[StoredExpense]:
        rows = self._session.scalars(
            select(Expense).order_by(Expense.timestamp.desc(), Expense.id.desc())
        ).all()
        out: list[StoredExpense] = []
        for row in rows:
            # SQLite returns naive datetimes; values are always written in UTC.
            ts = row.timestamp if row.timestamp.tzinfo else row.timestamp.replace(tzinfo=UTC)
            out.append(
                StoredExpense(
                    id=row.id,
                    record=ExpenseRecord(
                        amount=row.amount,
                        category=row.category,
                        description=row.description,
                        timestamp=ts,
                        source_id=row.source_id,
                    ),
                )
            )
        return out

    def insert(self, record: ExpenseRecord) -> None:
        row = Expense(
            amount=record.amount,
            category=record.category,
            description=record.description,
            timestamp=record.timestamp,
            source_id=record.source_id,
        )
        # Savepoint: flushes on exit; on failure only this row is rolled back
        # and the exception propagates to the caller.
        with self._session.begin_nested():
            self._session.add(row)

    def count_matching(self, key: DuplicateKey) -> int:
        stmt = (
            select(func.count())
            .select_from(Expense)
            .where(
                Expense.timestamp == key.timestamp,
                Expense.amount == key.amount,
                Expense.description == key.description,
            )
        )
        return int(self._session.execute(stmt).scalar_one())

    def commit(self) -> None:
        self._session.commit()

    def rollback(self) -> None:
        self._session.rollback()


__all__ = [
    "ExpenseStore",
    "SqlAlchemyExpenseStore",
    "StoredExpense",
]
