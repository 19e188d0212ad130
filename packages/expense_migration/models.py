"""Data models for ``expense_migration``.

- :class:`ExpenseRecord`: the immutable unit of migration (a candidate record).
- :class:`DuplicateKey`: the ``(timestamp, amount, description)`` identity used
  to decide skip vs. insert. Category is not part of it.
- :class:`ImportResult`: counts for one migration run.
- :class:`ExportEnvelope` / :class:`ExportedExpense`: pydantic models of the
  versioned JSON export wire format.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime
from decimal import Decimal, InvalidOperation
from typing import Any, NamedTuple

from pydantic import BaseModel, ConfigDict, field_serializer, field_validator

from .timestamps import format_timestamp, parse_export_timestamp

# Sentinel stored when a source row carries an empty description.
NO_DESCRIPTION = "No description"


def to_amount(raw: Any) -> Decimal:
    """Convert ``raw`` to an exact ``Decimal``.

    Floats go through ``str`` first so ``45.99`` becomes ``Decimal("45.99")``
    rather than its binary expansion. No rounding is applied: ``45.991`` and
    ``45.994`` stay distinct amounts.
    """

    if raw is None or isinstance(raw, bool):
        raise ValueError(f"amount must be numeric, got {raw!r}")
    try:
        d = raw if isinstance(raw, Decimal) else Decimal(str(raw).strip())
    except (InvalidOperation, ValueError) as e:
        raise ValueError(f"amount must be numeric, got {raw!r}") from e
    if not d.is_finite():
        raise ValueError(f"amount must be finite, got {raw!r}")
    return d


class DuplicateKey(NamedTuple):
    """Identity of an expense for duplicate detection."""

    timestamp: datetime
    amount: Decimal
    description: str


@dataclass(frozen=True, slots=True)
class ExpenseRecord:
    """A candidate expense produced by a source reader.

    Values are normalized at construction and never change afterwards:

    - ``amount`` becomes an exact ``Decimal`` (never rounded);
    - ``category`` is stripped and lower-cased and must be non-empty;
    - ``description`` is kept as given; blank becomes :data:`NO_DESCRIPTION`;
    - ``timestamp`` becomes timezone-aware UTC (naive input is read as UTC).

    ``amount`` and ``description`` are part of the duplicate key, so they are
    never reshaped beyond the blank-description placeholder.

    ``source_id`` is the foreign store's row id. It is kept for traceability
    only and never used as an identity.
    """

    amount: Decimal
    category: str
    description: str
    timestamp: datetime
    source_id: int | None = None

    def __post_init__(self) -> None:
        category = str(self.category or "").strip().lower()
        if not category:
            raise ValueError("category must be a non-empty string")

        description = "" if self.description is None else str(self.description)
        if not description.strip():
            description = NO_DESCRIPTION

        ts = self.timestamp
        if not isinstance(ts, datetime):
            raise ValueError(f"timestamp must be a datetime, got {ts!r}")
        ts = ts.replace(tzinfo=UTC) if ts.tzinfo is None else ts.astimezone(UTC)

        # Frozen dataclass: normalized values are written once, here.
        object.__setattr__(self, "amount", to_amount(self.amount))
        object.__setattr__(self, "category", category)
        object.__setattr__(self, "description", description)
        object.__setattr__(self, "timestamp", ts)

    @property
    def duplicate_key(self) -> DuplicateKey:
        return DuplicateKey(self.timestamp, self.amount, self.description)


@dataclass(frozen=True, slots=True)
class SourceScan:
    """Candidate records read from one source, plus rows the reader dropped."""

    records: list[ExpenseRecord] = field(default_factory=list)
    dropped: int = 0

    @property
    def raw_rows(self) -> int:
        return len(self.records) + self.dropped


@dataclass(frozen=True, slots=True)
class ImportResult:
    """Summary of one migration run.

    ``imported + skipped == total`` holds for every successful run. ``total``
    counts every raw row the reader was offered; rows the reader had to drop
    (``dropped``) are included in ``skipped``.
    """

    imported: int
    skipped: int
    total: int
    dropped: int = 0

    @property
    def success_rate(self) -> float:
        if self.total <= 0:
            return 0.0
        return self.imported / self.total * 100

    @property
    def message(self) -> str:
        from .report import format_summary

        return format_summary(self)


# ---------------------------------------------------------------------------
# JSON export wire format
# ---------------------------------------------------------------------------


def _require_timestamp(v: Any) -> datetime:
    if isinstance(v, datetime):
        return v
    if not isinstance(v, str):
        raise ValueError("timestamp must be an ISO-8601 string")
    parsed = parse_export_timestamp(v)
    if parsed is None:
        raise ValueError(f"invalid ISO-8601 timestamp: {v!r}")
    return parsed


class ExportedExpense(BaseModel):
    """One element of the ``expenses`` array."""

    model_config = ConfigDict(strict=True, extra="ignore")

    id: int | None = None
    amount: Decimal
    category: str
    description: str
    timestamp: datetime

    @field_validator("amount", mode="before")
    @classmethod
    def _amount_is_number(cls, v: Any) -> Decimal:
        # JSON numbers only: strings and booleans are format errors.
        if isinstance(v, bool) or not isinstance(v, int | float | Decimal):
            raise ValueError("amount must be a number")
        return to_amount(v)

    @field_validator("timestamp", mode="before")
    @classmethod
    def _parse_timestamp(cls, v: Any) -> datetime:
        return _require_timestamp(v)

    @field_serializer("amount")
    def _amount_as_number(self, v: Decimal) -> float:
        return float(v)

    @field_serializer("timestamp")
    def _timestamp_as_iso(self, v: datetime) -> str:
        return format_timestamp(v)


class ExportEnvelope(BaseModel):
    """Top-level JSON export: ``{version, exported_at, expenses}``.

    ``version`` is carried as-is; no set of known versions is enforced.
    """

    model_config = ConfigDict(strict=True, extra="ignore")

    version: str
    exported_at: datetime
    expenses: list[ExportedExpense]

    @field_validator("exported_at", mode="before")
    @classmethod
    def _parse_exported_at(cls, v: Any) -> datetime:
        return _require_timestamp(v)

    @field_serializer("exported_at")
    def _exported_at_as_iso(self, v: datetime) -> str:
        return format_timestamp(v)


__all__ = [
    "NO_DESCRIPTION",
    "DuplicateKey",
    "ExpenseRecord",
    "ExportEnvelope",
    "ExportedExpense",
    "ImportResult",
    "SourceScan",
    "to_amount",
]
