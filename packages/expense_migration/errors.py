"""Exceptions raised by the migration pipeline.

Readers raise ``InvalidFormat``/``FileNotFound``/``InvalidDatabase`` before any
write happens. ``ImportFailed`` is reserved for the batch commit: when it is
raised, none of the run's insertions are durable.
"""

from __future__ import annotations


class MigrationError(Exception):
    """Base exception for migration failures."""


class InvalidFormat(MigrationError):
    """Raised when a JSON export cannot be decoded or has the wrong shape."""


class FileNotFound(MigrationError):
    """Raised when a migration source cannot be opened for reading."""


class InvalidDatabase(MigrationError):
    """Raised when a legacy store has the wrong extension, signature or schema."""


class ImportFailed(MigrationError):
    """Raised when the batch commit fails; nothing from the run was persisted."""

    def __init__(self, detail: str) -> None:
        super().__init__(f"Import failed: {detail}")
        self.detail = detail


__all__ = [
    "MigrationError",
    "InvalidFormat",
    "FileNotFound",
    "InvalidDatabase",
    "ImportFailed",
]
