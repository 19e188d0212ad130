"""Merge candidate records into a target store with duplicate detection.

Per record, in source order:

1. build the duplicate key ``(timestamp, amount, description)``;
2. when the store already holds a match, count the record as skipped;
3. otherwise insert it and count it as imported;
4. when the check or the insert raises, log it and count the record as
   skipped. One bad record never aborts the run.

A single commit follows the loop. If it fails the store is rolled back and
:class:`~expense_migration.errors.ImportFailed` is raised, so a run is either
fully applied (minus per-record skips) or not applied at all.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from .errors import ImportFailed
from .logging_setup import get_logger
from .models import ExpenseRecord
from .persistence import ExpenseStore

logger = get_logger("expense_migration.merge")


@dataclass(frozen=True, slots=True)
class MergeOutcome:
    imported: int
    skipped: int

    @property
    def processed(self) -> int:
        return self.imported + self.skipped


def merge_records(records: Iterable[ExpenseRecord], store: ExpenseStore) -> MergeOutcome:
    """Insert non-duplicate ``records`` into ``store`` and commit once.

    Raises
    ------
    ImportFailed
        When the final commit fails. Nothing from this run is durable.
    """

    imported = 0
    skipped = 0

    for record in records:
        try:
            if store.count_matching(record.duplicate_key) > 0:
                skipped += 1
                continue
            store.insert(record)
        except Exception as e:
            logger.warning(
                "Skipping expense (%s, %s, %r): %s",
                record.timestamp.isoformat(),
                record.amount,
                record.description,
                e,
            )
            skipped += 1
            continue
        imported += 1

    try:
        store.commit()
    except Exception as e:
        logger.error("Commit failed; rolling back %d insertion(s): %s", imported, e)
        try:
            store.rollback()
        except Exception as rb_err:
            logger.error("Rollback after failed commit also failed: %s", rb_err)
        raise ImportFailed(str(e)) from e

    logger.info("Merge complete: %d imported, %d skipped", imported, skipped)
    return MergeOutcome(imported=imported, skipped=skipped)


__all__ = ["MergeOutcome", "merge_records"]
