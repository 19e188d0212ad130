"""Public API for the ``expense_migration`` package.

Every entry point takes the target store explicitly (no process-wide
singleton), so callers and tests decide which database a run writes to.

Imports
-------
- :func:`import_from_json` / :func:`import_from_string` /
  :func:`import_from_file`: JSON export envelope → store.
- :func:`import_from_sqlite`: legacy SQLite file → store.
- :func:`import_from_path`: pick the reader by file extension.

Each returns an :class:`~expense_migration.models.ImportResult` or raises a
single :class:`~expense_migration.errors.MigrationError`; there is no partial
result alongside an error.

Exports and summaries are re-exported from :mod:`expense_migration.export`.
"""

from __future__ import annotations

from collections import defaultdict
from decimal import Decimal
from os import PathLike

from .export import (  # noqa: F401  (re-export)
    export_legacy_store,
    export_to_json,
    export_to_sqlite,
)
from .ingest.adapters.json_export import load_records_from_json, load_records_from_json_file
from .ingest.adapters.legacy_sqlite import read_legacy_store
from .ingest.utils import load_records_from_path
from .logging_setup import get_logger
from .merge import merge_records
from .models import ImportResult, SourceScan
from .persistence import ExpenseStore
from .report import build_import_result

logger = get_logger("expense_migration.api")


def _import_scan(scan: SourceScan, store: ExpenseStore) -> ImportResult:
    """Merge a scan and fold reader drops into ``skipped``/``total``."""

    logger.info(
        "Starting import: %d candidate(s), %d dropped by reader",
        len(scan.records),
        scan.dropped,
    )
    outcome = merge_records(scan.records, store)
    return build_import_result(
        imported=outcome.imported,
        skipped=outcome.skipped + scan.dropped,
        total=scan.raw_rows,
        dropped=scan.dropped,
    )


def import_from_json(data: bytes, store: ExpenseStore) -> ImportResult:
    """Import a JSON export envelope given as raw bytes."""

    return _import_scan(SourceScan(records=load_records_from_json(data)), store)


def import_from_string(text: str, store: ExpenseStore) -> ImportResult:
    """Import a JSON export envelope given as text."""

    return _import_scan(SourceScan(records=load_records_from_json(text)), store)


def import_from_file(path: str | PathLike[str], store: ExpenseStore) -> ImportResult:
    """Import the JSON export envelope stored at ``path``."""

    return _import_scan(SourceScan(records=load_records_from_json_file(path)), store)


def import_from_sqlite(path: str | PathLike[str], store: ExpenseStore) -> ImportResult:
    """Import a legacy SQLite file directly (no intermediate JSON)."""

    return _import_scan(read_legacy_store(path), store)


def import_from_path(path: str | PathLike[str], store: ExpenseStore) -> ImportResult:
    """Import ``path`` using the reader that matches its extension."""

    return _import_scan(load_records_from_path(path), store)


def summarize_by_category(store: ExpenseStore) -> dict[str, Decimal]:
    """Total amount per category across the whole store."""

    totals: dict[str, Decimal] = defaultdict(lambda: Decimal("0.00"))
    for stored in store.fetch_all():
        totals[stored.record.category] += stored.record.amount
    return dict(totals)


__all__ = [
    "export_legacy_store",
    "export_to_json",
    "export_to_sqlite",
    "import_from_file",
    "import_from_json",
    "import_from_path",
    "import_from_sqlite",
    "import_from_string",
    "summarize_by_category",
]
