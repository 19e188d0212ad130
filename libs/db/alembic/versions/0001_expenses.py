# ruff: noqa: I001
"""Expenses table (migration target store).

Revision ID: 0001_expenses
Revises: None
Create Date: 2026-10-18
"""

from __future__ import annotations  # ruff: noqa: I001

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op


# revision identifiers, used by Alembic.
revision: str = "0001_expenses"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def upgrade() -> None:
    op.create_table(
        "expenses",
        sa.Column("id", sa.Integer(), primary_key=True, autoincrement=True),
        sa.Column("amount", sa.Numeric(), nullable=False),
        sa.Column("category", sa.String(), nullable=False),
        sa.Column("description", sa.Text(), nullable=False),
        sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
        sa.Column("source_id", sa.BigInteger(), nullable=True),
        sa.Column(
            "created_at",
            sa.DateTime(timezone=True),
            nullable=False,
            server_default=sa.text("CURRENT_TIMESTAMP"),
        ),
        sa.CheckConstraint("amount > 0", name="ck_expenses_amount_positive"),
    )

    # Duplicate predicate lookups during migration: (timestamp, amount, description)
    op.create_index(
        "ix_expenses_identity",
        "expenses",
        ["timestamp", "amount", "description"],
    )


def downgrade() -> None:
    op.drop_index("ix_expenses_identity", table_name="expenses")
    op.drop_table("expenses")
