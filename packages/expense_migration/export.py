"""Export paths: target store → JSON envelope / legacy SQLite file.

The JSON output is the same envelope the JSON adapter reads, so an export can
be imported into another store unchanged (and re-importing it into the same
store skips every record).
"""

from __future__ import annotations

from datetime import UTC, datetime
from os import PathLike

from .ingest.adapters.legacy_sqlite import read_legacy_store, write_legacy_store
from .logging_setup import get_logger
from .models import ExpenseRecord, ExportedExpense, ExportEnvelope, SourceScan
from .persistence import ExpenseStore

logger = get_logger("expense_migration.export")

EXPORT_VERSION = "1.0"


def build_envelope(
    rows: list[tuple[int | None, ExpenseRecord]],
    *,
    exported_at: datetime | None = None,
) -> ExportEnvelope:
    """Wrap ``(id, record)`` pairs in a versioned export envelope."""

    return ExportEnvelope(
        version=EXPORT_VERSION,
        exported_at=exported_at or datetime.now(UTC),
        expenses=[
            ExportedExpense(
                id=row_id,
                amount=record.amount,
                category=record.category,
                description=record.description,
                timestamp=record.timestamp,
            )
            for row_id, record in rows
        ],
    )


def dump_envelope(envelope: ExportEnvelope) -> bytes:
    """Serialize ``envelope`` as pretty-printed UTF-8 JSON."""

    return envelope.model_dump_json(indent=2).encode("utf-8")


def export_to_json(store: ExpenseStore, *, exported_at: datetime | None = None) -> bytes:
    """Export every expense in ``store`` (newest first) as a JSON envelope."""

    stored = store.fetch_all()
    logger.info("Exporting %d expense(s) to JSON", len(stored))
    envelope = build_envelope([(s.id, s.record) for s in stored], exported_at=exported_at)
    return dump_envelope(envelope)


def export_to_sqlite(store: ExpenseStore, path: str | PathLike[str]) -> int:
    """Write every expense in ``store`` to a new legacy-format SQLite file."""

    stored = store.fetch_all()
    written = write_legacy_store([(s.id, s.record) for s in stored], path)
    logger.info("Exported %d expense(s) to %s", written, path)
    return written


def export_legacy_store(
    source: str | PathLike[str],
    *,
    exported_at: datetime | None = None,
) -> tuple[ExportEnvelope, SourceScan]:
    """Convert a legacy SQLite file into a JSON export envelope.

    Legacy row ids are kept as the envelope ``id``. Rows the legacy reader
    cannot parse are left out; the returned scan reports how many.
    """

    scan = read_legacy_store(source)
    envelope = build_envelope(
        [(r.source_id, r) for r in scan.records], exported_at=exported_at
    )
    return envelope, scan


__all__ = [
    "EXPORT_VERSION",
    "build_envelope",
    "dump_envelope",
    "export_legacy_store",
    "export_to_json",
    "export_to_sqlite",
]
