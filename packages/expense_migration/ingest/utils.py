"""Ingest utilities shared by CLI commands and the public API.

Exposes a single helper that picks the right source reader for a path based
on its extension: ``.json`` goes to the export-envelope adapter, the legacy
SQLite suffixes go to the legacy-store adapter.
"""

from __future__ import annotations

from os import PathLike
from pathlib import Path

from ..errors import InvalidFormat
from ..models import SourceScan
from .adapters.json_export import load_records_from_json_file
from .adapters.legacy_sqlite import LEGACY_EXTENSIONS, read_legacy_store

JSON_EXTENSIONS: frozenset[str] = frozenset({".json"})


def load_records_from_path(path: str | PathLike[str]) -> SourceScan:
    """Read candidate records from ``path``, choosing the adapter by extension.

    JSON exports never drop rows (a bad element fails the whole read), so the
    returned scan always has ``dropped == 0`` for them.
    """

    p = Path(path)
    suffix = p.suffix.lower()
    if suffix in JSON_EXTENSIONS:
        return SourceScan(records=load_records_from_json_file(p), dropped=0)
    if suffix in LEGACY_EXTENSIONS:
        return read_legacy_store(p)
    raise InvalidFormat(
        f"Unsupported migration source {p.name!r}: expected .json or one of "
        f"{sorted(LEGACY_EXTENSIONS)}"
    )


__all__ = ["JSON_EXTENSIONS", "load_records_from_path"]
