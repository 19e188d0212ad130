"""Timestamp parsing for migration sources.

Legacy stores were written by several historical app versions, so their
``timestamp`` column mixes encodings. :func:`parse_legacy_timestamp` tries the
strategies in :data:`LEGACY_TIMESTAMP_STRATEGIES` in order and returns the
first success:

1. ISO-8601 with a zone designator (``2024-03-01T09:30:00Z``)
2. Unix epoch seconds as a decimal number (``1700000000`` / ``1700000000.25``)
3. ISO-8601 with fractional seconds (``2024-03-01T09:30:00.125Z``)

All parsed values are timezone-aware and normalized to UTC.
"""

from __future__ import annotations

import math
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

_ISO_FORMAT = "%Y-%m-%dT%H:%M:%S%z"
_ISO_FRACTIONAL_FORMAT = "%Y-%m-%dT%H:%M:%S.%f%z"


def _as_text(value: Any) -> str | None:
    if value is None or isinstance(value, bool):
        return None
    s = str(value).strip()
    return s if s else None


def parse_iso_timestamp(value: Any) -> datetime | None:
    """Parse ISO-8601 internet date-time with a zone designator (no fraction)."""

    s = _as_text(value)
    if s is None:
        return None
    try:
        return datetime.strptime(s, _ISO_FORMAT).astimezone(UTC)
    except ValueError:
        return None


def parse_epoch_seconds(value: Any) -> datetime | None:
    """Interpret ``value`` as seconds since 1970-01-01T00:00:00Z."""

    s = _as_text(value)
    if s is None:
        return None
    try:
        seconds = float(s)
    except ValueError:
        return None
    if not math.isfinite(seconds):
        return None
    try:
        return datetime.fromtimestamp(seconds, UTC)
    except (OverflowError, OSError, ValueError):
        return None


def parse_iso_fractional_timestamp(value: Any) -> datetime | None:
    """Parse ISO-8601 with explicit fractional seconds and a zone designator."""

    s = _as_text(value)
    if s is None:
        return None
    try:
        return datetime.strptime(s, _ISO_FRACTIONAL_FORMAT).astimezone(UTC)
    except ValueError:
        return None


LEGACY_TIMESTAMP_STRATEGIES: tuple[Callable[[Any], datetime | None], ...] = (
    parse_iso_timestamp,
    parse_epoch_seconds,
    parse_iso_fractional_timestamp,
)


def parse_legacy_timestamp(value: Any) -> datetime | None:
    """Return the first successful parse across the legacy strategy chain."""

    for strategy in LEGACY_TIMESTAMP_STRATEGIES:
        parsed = strategy(value)
        if parsed is not None:
            return parsed
    return None


def parse_export_timestamp(value: Any) -> datetime | None:
    """Parse a JSON export timestamp (ISO-8601 with zone, fraction optional)."""

    return parse_iso_timestamp(value) or parse_iso_fractional_timestamp(value)


def format_timestamp(value: datetime) -> str:
    """Render ``value`` as ISO-8601 UTC with a ``Z`` designator.

    Fractional seconds are only emitted when non-zero, so whole-second values
    stay readable by consumers that reject fractions.
    """

    if value.tzinfo is None:
        value = value.replace(tzinfo=UTC)
    return value.astimezone(UTC).isoformat().replace("+00:00", "Z")


__all__ = [
    "LEGACY_TIMESTAMP_STRATEGIES",
    "format_timestamp",
    "parse_epoch_seconds",
    "parse_export_timestamp",
    "parse_iso_fractional_timestamp",
    "parse_iso_timestamp",
    "parse_legacy_timestamp",
]
