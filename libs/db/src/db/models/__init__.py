"""Shared SQLAlchemy models registry for the workspace database.

Currently includes the expense model used by ``expense_migration``.
"""

from .expenses import Base, Expense

__all__ = [
    "Base",
    "Expense",
]
