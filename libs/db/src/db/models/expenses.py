from __future__ import annotations

from datetime import datetime
from decimal import Decimal

from sqlalchemy import (
    BigInteger,
    CheckConstraint,
    DateTime,
    Index,
    Integer,
    Numeric,
    String,
    Text,
    text,
)
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


# ---------------------------
# Core: expenses
# ---------------------------


class Expense(Base):
    __tablename__ = "expenses"

    # Store-assigned identity. Never copied from a migration source; the
    # source's own row id is carried separately in ``source_id``.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    # Unscaled: amounts are stored exactly as imported, never rounded.
    amount: Mapped[Decimal] = mapped_column(Numeric(), nullable=False)
    # Lower-case token (e.g. "groceries"). Not constrained to a fixed set;
    # unknown categories are accepted and rendered with a fallback downstream.
    category: Mapped[str] = mapped_column(String, nullable=False)
    description: Mapped[str] = mapped_column(Text, nullable=False)
    # Always written in UTC. SQLite drops the offset on storage, so readers
    # re-attach UTC (see ``expense_migration.persistence``).
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    source_id: Mapped[int | None] = mapped_column(BigInteger, nullable=True)
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), nullable=False, server_default=text("CURRENT_TIMESTAMP")
    )

    __table_args__ = (
        CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
        # Duplicate predicate lookups: (timestamp, amount, description).
        # Category is deliberately not part of the identity.
        Index("ix_expenses_identity", "timestamp", "amount", "description"),
    )


__all__ = [
    "Base",
    "Expense",
]
