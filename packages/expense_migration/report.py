"""Result reporting: counts → :class:`ImportResult` and human-readable text.

Everything here is pure (no I/O) and cannot fail for well-typed inputs.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Iterable
from decimal import Decimal

from .models import ExpenseRecord, ImportResult


def build_import_result(
    imported: int,
    skipped: int,
    total: int,
    *,
    dropped: int = 0,
) -> ImportResult:
    """Package merge counts into an :class:`ImportResult`."""

    return ImportResult(imported=imported, skipped=skipped, total=total, dropped=dropped)


def format_summary(result: ImportResult) -> str:
    """Return the multi-line summary shown to users after an import.

    Example::

        Import Complete
        Total: 2
        Imported: 2
        Skipped: 0
        Success Rate: 100.0%
    """

    lines = [
        "Import Complete",
        f"Total: {result.total}",
        f"Imported: {result.imported}",
        f"Skipped: {result.skipped}",
    ]
    if result.dropped:
        lines.append(f"Dropped: {result.dropped}")
    lines.append(f"Success Rate: {result.success_rate:.1f}%")
    return "\n".join(lines)


def category_breakdown(records: Iterable[ExpenseRecord]) -> list[tuple[str, int]]:
    """Count records per category, most frequent first (ties by name)."""

    counts = Counter(r.category for r in records)
    return sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))


def total_amount(records: Iterable[ExpenseRecord]) -> Decimal:
    return sum((r.amount for r in records), Decimal("0.00"))


__all__ = [
    "build_import_result",
    "category_breakdown",
    "format_summary",
    "total_amount",
]
