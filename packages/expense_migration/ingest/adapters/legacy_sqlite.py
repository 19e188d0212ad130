"""Adapter for SQLite files written by the previous version of the app.

Schema (read-only input contract)::

    CREATE TABLE expenses (
        id INTEGER PRIMARY KEY,
        amount REAL NOT NULL,
        category TEXT NOT NULL,
        description TEXT NOT NULL,
        timestamp TEXT NOT NULL
    );

Contract
--------
- Only ``.db``, ``.sqlite`` and ``.sqlite3`` files are accepted; anything else
  raises :class:`~expense_migration.errors.InvalidDatabase` before the file is
  touched.
- A missing or unreadable file raises
  :class:`~expense_migration.errors.FileNotFound`.
- A file without the SQLite header, or without a readable ``expenses`` table,
  raises :class:`~expense_migration.errors.InvalidDatabase`.
- The file is opened read-only through a private engine that is disposed on
  every exit path.
- Rows are returned ``ORDER BY timestamp DESC`` as the database yields them.

Rows with a NULL ``category``/``description``, a non-numeric ``amount``, or a
``timestamp`` that no strategy in
:data:`~expense_migration.timestamps.LEGACY_TIMESTAMP_STRATEGIES` can parse are
dropped with a warning and counted in :attr:`SourceScan.dropped`.
"""

from __future__ import annotations

import sqlite3
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from os import PathLike
from pathlib import Path
from typing import Any

from sqlalchemy import Column, Integer, MetaData, Table, Text, create_engine, select
from sqlalchemy.engine import Engine, Row
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import NullPool

from ...errors import FileNotFound, InvalidDatabase
from ...logging_setup import get_logger
from ...models import ExpenseRecord, SourceScan
from ...timestamps import format_timestamp, parse_legacy_timestamp

logger = get_logger("expense_migration.ingest.legacy_sqlite")

LEGACY_EXTENSIONS: frozenset[str] = frozenset({".db", ".sqlite", ".sqlite3"})
SQLITE_HEADER = b"SQLite format 3\x00"

LEGACY_SCHEMA_SQL = """
CREATE TABLE expenses (
    id INTEGER PRIMARY KEY,
    amount REAL NOT NULL,
    category TEXT NOT NULL,
    description TEXT NOT NULL,
    timestamp TEXT NOT NULL
)
"""

# Reader view of the legacy table. Columns are declared nullable because
# older writers did not always honor the NOT NULL constraints. ``amount`` is
# untyped so stray text values reach the row parser as-is.
legacy_metadata = MetaData()
legacy_expenses = Table(
    "expenses",
    legacy_metadata,
    Column("id", Integer, primary_key=True),
    Column("amount", nullable=True),
    Column("category", Text, nullable=True),
    Column("description", Text, nullable=True),
    Column("timestamp", Text, nullable=True),
)


def check_legacy_extension(path: Path) -> None:
    if path.suffix.lower() not in LEGACY_EXTENSIONS:
        raise InvalidDatabase(
            f"Invalid database format: expected one of {sorted(LEGACY_EXTENSIONS)}, "
            f"got {path.name!r}"
        )


def _check_signature(path: Path) -> None:
    try:
        with path.open("rb") as f:
            header = f.read(len(SQLITE_HEADER))
    except OSError as e:
        raise FileNotFound(f"File not found: {path}") from e
    if header != SQLITE_HEADER:
        raise InvalidDatabase(f"Invalid database format: {path.name} is not a SQLite file")


@contextmanager
def _sqlite_engine(path: Path, *, read_only: bool) -> Iterator[Engine]:
    """Yield a single-file engine and dispose it on exit.

    Connections go through a URI so the path is percent-encoded and read-only
    mode can be requested.
    """

    uri = path.resolve().as_uri() + ("?mode=ro" if read_only else "")
    engine = create_engine(
        "sqlite+pysqlite://",
        creator=lambda: sqlite3.connect(uri, uri=True),
        poolclass=NullPool,
    )
    try:
        yield engine
    finally:
        engine.dispose()


def _row_to_record(row: Row[Any]) -> ExpenseRecord | None:
    if row.category is None or row.description is None:
        logger.warning("Skipping legacy row id=%s: missing category/description", row.id)
        return None

    timestamp = parse_legacy_timestamp(row.timestamp)
    if timestamp is None:
        logger.warning(
            "Skipping legacy row id=%s: invalid timestamp %r", row.id, row.timestamp
        )
        return None

    try:
        return ExpenseRecord(
            amount=row.amount,
            category=row.category,
            description=row.description,
            timestamp=timestamp,
            source_id=int(row.id) if row.id is not None else None,
        )
    except ValueError as e:
        logger.warning("Skipping legacy row id=%s: %s", row.id, e)
        return None


def read_legacy_store(path: str | PathLike[str]) -> SourceScan:
    """Read every expense row from the legacy SQLite file at ``path``."""

    p = Path(path)
    check_legacy_extension(p)
    _check_signature(p)

    stmt = select(legacy_expenses).order_by(legacy_expenses.c.timestamp.desc())
    try:
        with _sqlite_engine(p, read_only=True) as engine, engine.connect() as conn:
            rows = conn.execute(stmt).all()
    except SQLAlchemyError as e:
        raise InvalidDatabase(f"Invalid database format: {e.__cause__ or e}") from e

    records: list[ExpenseRecord] = []
    dropped = 0
    for row in rows:
        record = _row_to_record(row)
        if record is None:
            dropped += 1
        else:
            records.append(record)

    logger.info(
        "Read %d legacy row(s) from %s (%d dropped)", len(rows), p.name, dropped
    )
    return SourceScan(records=records, dropped=dropped)


def write_legacy_store(
    rows: Iterable[tuple[int | None, ExpenseRecord]],
    path: str | PathLike[str],
) -> int:
    """Create a new legacy-format SQLite file at ``path`` from ``(id, record)`` pairs.

    Refuses to overwrite an existing file. A partially written file is removed
    when the write fails. Returns the number of rows written.
    """

    p = Path(path)
    check_legacy_extension(p)
    if p.exists():
        raise FileExistsError(f"Refusing to overwrite existing file: {p}")

    payload = [
        {
            "id": row_id,
            "amount": float(record.amount),
            "category": record.category,
            "description": record.description,
            "timestamp": format_timestamp(record.timestamp),
        }
        for row_id, record in rows
    ]

    try:
        with _sqlite_engine(p, read_only=False) as engine, engine.begin() as conn:
            conn.exec_driver_sql(LEGACY_SCHEMA_SQL)
            if payload:
                conn.execute(legacy_expenses.insert(), payload)
    except Exception:
        p.unlink(missing_ok=True)
        raise
    return len(payload)


__all__ = [
    "LEGACY_EXTENSIONS",
    "LEGACY_SCHEMA_SQL",
    "check_legacy_extension",
    "legacy_expenses",
    "read_legacy_store",
    "write_legacy_store",
]
