from __future__ import annotations

import logging
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

from db.client import session_scope
from expense_migration.errors import ImportFailed
from expense_migration.merge import merge_records
from expense_migration.models import ExpenseRecord
from expense_migration.persistence import SqlAlchemyExpenseStore

from tests.helpers.db import bootstrap_sqlite_db, count_expenses, seed_expenses
from tests.helpers.stores import MemoryStore

T0 = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)


def _rec(
    amount: str = "45.99",
    category: str = "groceries",
    description: str = "Whole Foods",
    offset_min: int = 0,
) -> ExpenseRecord:
    return ExpenseRecord(
        amount=Decimal(amount),
        category=category,
        description=description,
        timestamp=T0 + timedelta(minutes=offset_min),
    )


# ---- In-memory store: counting and failure handling ---------------------------


def test_new_records_are_imported_and_committed_once() -> None:
    store = MemoryStore()
    outcome = merge_records([_rec(offset_min=1), _rec(offset_min=2)], store)

    assert (outcome.imported, outcome.skipped) == (2, 0)
    assert len(store.committed) == 2
    assert store.commits == 1


def test_existing_match_is_skipped() -> None:
    store = MemoryStore([_rec()])
    outcome = merge_records([_rec(), _rec(offset_min=5)], store)
    assert (outcome.imported, outcome.skipped) == (1, 1)


def test_category_is_not_part_of_identity() -> None:
    store = MemoryStore([_rec(category="groceries")])
    outcome = merge_records([_rec(category="dining")], store)
    assert (outcome.imported, outcome.skipped) == (0, 1)


def test_amounts_differing_below_a_cent_are_both_imported() -> None:
    store = MemoryStore()
    outcome = merge_records([_rec(amount="45.991"), _rec(amount="45.994")], store)
    assert (outcome.imported, outcome.skipped) == (2, 0)


def test_identical_records_within_one_run_collapse() -> None:
    store = MemoryStore()
    outcome = merge_records([_rec(), _rec(), _rec()], store)
    assert (outcome.imported, outcome.skipped) == (1, 2)
    assert outcome.processed == 3


def test_insert_failure_counts_as_skip_and_run_continues(caplog: pytest.LogCaptureFixture) -> None:
    store = MemoryStore(fail_insert=lambda r: r.description == "boom")
    with caplog.at_level(logging.WARNING, logger="expense_migration"):
        outcome = merge_records(
            [_rec(description="a"), _rec(description="boom"), _rec(description="c")], store
        )

    assert (outcome.imported, outcome.skipped) == (2, 1)
    assert [r.description for r in store.committed] == ["a", "c"]
    assert any("boom" in rec.getMessage() for rec in caplog.records)


def test_lookup_failure_counts_as_skip() -> None:
    store = MemoryStore(fail_count=lambda key: key.description == "flaky")
    outcome = merge_records([_rec(description="flaky"), _rec(description="fine")], store)
    assert (outcome.imported, outcome.skipped) == (1, 1)


def test_commit_failure_raises_and_rolls_back() -> None:
    store = MemoryStore(fail_commit=True)
    with pytest.raises(ImportFailed) as exc:
        merge_records([_rec(), _rec(offset_min=1)], store)

    assert exc.value.detail == "disk full"
    assert str(exc.value) == "Import failed: disk full"
    assert store.committed == []
    assert store.rollbacks == 1


def test_empty_input_still_commits() -> None:
    store = MemoryStore()
    outcome = merge_records([], store)
    assert (outcome.imported, outcome.skipped) == (0, 0)
    assert store.commits == 1


# ---- SQLAlchemy store on SQLite ----------------------------------------------


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    return bootstrap_sqlite_db(tmp_path / "target.db")


def test_sqlalchemy_store_merge_is_idempotent(db_url: str) -> None:
    batch = [_rec(offset_min=i, description=f"item {i}") for i in range(3)]

    with session_scope(database_url=db_url) as session:
        first = merge_records(batch, SqlAlchemyExpenseStore(session))
    with session_scope(database_url=db_url) as session:
        second = merge_records(batch, SqlAlchemyExpenseStore(session))

    assert (first.imported, first.skipped) == (3, 0)
    assert (second.imported, second.skipped) == (0, 3)
    assert count_expenses(db_url) == 3


def test_sqlalchemy_store_sees_inserts_from_same_run(db_url: str) -> None:
    with session_scope(database_url=db_url) as session:
        outcome = merge_records([_rec(), _rec(category="other")], SqlAlchemyExpenseStore(session))

    assert (outcome.imported, outcome.skipped) == (1, 1)
    assert count_expenses(db_url) == 1


def test_sqlalchemy_store_matches_previously_seeded_rows(db_url: str) -> None:
    seed_expenses(database_url=db_url, records=[_rec()])

    with session_scope(database_url=db_url) as session:
        outcome = merge_records(
            [_rec(category="Shopping"), _rec(amount="46.00")], SqlAlchemyExpenseStore(session)
        )

    assert (outcome.imported, outcome.skipped) == (1, 1)
    assert count_expenses(db_url) == 2


def test_constraint_violation_skips_only_that_record(db_url: str) -> None:
    batch = [
        _rec(description="before", offset_min=1),
        _rec(description="refund", amount="-5.00", offset_min=2),
        _rec(description="after", offset_min=3),
    ]

    with session_scope(database_url=db_url) as session:
        store = SqlAlchemyExpenseStore(session)
        outcome = merge_records(batch, store)
        stored = [s.record.description for s in store.fetch_all()]

    assert (outcome.imported, outcome.skipped) == (2, 1)
    assert stored == ["after", "before"]


def test_fetch_all_returns_utc_records_newest_first(db_url: str) -> None:
    seed_expenses(
        database_url=db_url,
        records=[_rec(description="old", offset_min=0), _rec(description="new", offset_min=60)],
    )

    with session_scope(database_url=db_url) as session:
        stored = SqlAlchemyExpenseStore(session).fetch_all()

    assert [s.record.description for s in stored] == ["new", "old"]
    assert stored[0].record.timestamp == T0 + timedelta(minutes=60)
    assert stored[0].record.timestamp.tzinfo is not None
    assert stored[0].record.amount == Decimal("45.99")


def test_sub_cent_amounts_are_distinct_records(db_url: str) -> None:
    batch = [_rec(amount="45.991"), _rec(amount="45.994"), _rec(amount="45.991")]

    with session_scope(database_url=db_url) as session:
        store = SqlAlchemyExpenseStore(session)
        outcome = merge_records(batch, store)
        amounts = sorted(s.record.amount for s in store.fetch_all())

    assert (outcome.imported, outcome.skipped) == (2, 1)
    assert amounts == [Decimal("45.991"), Decimal("45.994")]


def test_tiny_positive_amount_is_stored(db_url: str) -> None:
    with session_scope(database_url=db_url) as session:
        outcome = merge_records([_rec(amount="0.004")], SqlAlchemyExpenseStore(session))

    assert (outcome.imported, outcome.skipped) == (1, 0)
    assert count_expenses(db_url) == 1


def test_description_whitespace_distinguishes_stored_rows(db_url: str) -> None:
    seed_expenses(database_url=db_url, records=[_rec(description="Coffee ")])

    with session_scope(database_url=db_url) as session:
        outcome = merge_records(
            [_rec(description="Coffee "), _rec(description="Coffee")],
            SqlAlchemyExpenseStore(session),
        )

    assert (outcome.imported, outcome.skipped) == (1, 1)
    assert count_expenses(db_url) == 2
