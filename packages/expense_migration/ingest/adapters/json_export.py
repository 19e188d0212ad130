"""Adapter for the versioned JSON export envelope.

Envelope (exact keys expected)::

    {
      "version": "1.0",
      "exported_at": "<ISO-8601 timestamp>",
      "expenses": [
        {"id": 1, "amount": 45.99, "category": "groceries",
         "description": "Whole Foods", "timestamp": "<ISO-8601 timestamp>"}
      ]
    }

``id`` is optional and becomes ``source_id``; every other element field is
required. ``version`` is accepted as-is.

Failure mode
------------
Any decode or shape problem raises
:class:`~expense_migration.errors.InvalidFormat` before a single record is
produced, so callers never merge a partially parsed export.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from pydantic import ValidationError

from ...errors import FileNotFound, InvalidFormat
from ...models import ExpenseRecord, ExportEnvelope


def read_export_envelope(data: bytes | str) -> ExportEnvelope:
    """Decode and validate an export envelope from raw JSON."""

    if isinstance(data, bytes):
        try:
            data = data.decode("utf-8-sig")
        except UnicodeDecodeError as e:
            raise InvalidFormat("Invalid JSON format: not UTF-8 text") from e
    try:
        return ExportEnvelope.model_validate_json(data)
    except ValidationError as e:
        # Keep the message short: the first few problems are enough to act on.
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc']) or '<root>'}: {err['msg']}"
            for err in e.errors()[:3]
        )
        raise InvalidFormat(f"Invalid JSON format: {problems}") from e


def to_records(envelope: ExportEnvelope) -> list[ExpenseRecord]:
    """Convert envelope elements to :class:`ExpenseRecord` in source order."""

    records: list[ExpenseRecord] = []
    for idx, item in enumerate(envelope.expenses):
        try:
            records.append(
                ExpenseRecord(
                    amount=item.amount,
                    category=item.category,
                    description=item.description,
                    timestamp=item.timestamp,
                    source_id=item.id,
                )
            )
        except ValueError as e:
            raise InvalidFormat(f"Invalid JSON format: expenses.{idx}: {e}") from e
    return records


def load_records_from_json(data: bytes | str) -> list[ExpenseRecord]:
    return to_records(read_export_envelope(data))


def load_records_from_json_file(path: str | PathLike[str]) -> list[ExpenseRecord]:
    """Read ``path`` and parse it as an export envelope."""

    p = Path(path)
    try:
        data = p.read_bytes()
    except OSError as e:
        raise FileNotFound(f"File not found: {p}") from e
    return load_records_from_json(data)


__all__ = [
    "load_records_from_json",
    "load_records_from_json_file",
    "read_export_envelope",
    "to_records",
]
