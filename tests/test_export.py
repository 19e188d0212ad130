from __future__ import annotations

import json
from datetime import UTC, datetime, timedelta
from decimal import Decimal
from pathlib import Path

import pytest

from db.client import session_scope
from expense_migration import (
    SqlAlchemyExpenseStore,
    export_legacy_store,
    export_to_json,
    export_to_sqlite,
    import_from_json,
    import_from_sqlite,
)
from expense_migration.export import EXPORT_VERSION, dump_envelope
from expense_migration.models import ExpenseRecord

from tests.helpers.db import bootstrap_sqlite_db, seed_expenses
from tests.helpers.legacy import make_legacy_db, read_legacy_rows
from tests.helpers.stores import MemoryStore

T0 = datetime(2024, 1, 15, 10, 30, tzinfo=UTC)
EXPORTED_AT = datetime(2024, 2, 1, 12, 0, tzinfo=UTC)

RECORDS = [
    ExpenseRecord(Decimal("45.99"), "groceries", "Whole Foods", T0),
    ExpenseRecord(Decimal("12.00"), "transport", "Metro card", T0 + timedelta(days=1)),
]


@pytest.fixture()
def db_url(tmp_path: Path) -> str:
    url = bootstrap_sqlite_db(tmp_path / "target.db")
    seed_expenses(database_url=url, records=RECORDS)
    return url


def test_json_export_shape(db_url: str) -> None:
    with session_scope(database_url=db_url) as session:
        data = export_to_json(SqlAlchemyExpenseStore(session), exported_at=EXPORTED_AT)

    doc = json.loads(data)
    assert doc["version"] == EXPORT_VERSION
    assert doc["exported_at"] == "2024-02-01T12:00:00Z"
    assert [e["description"] for e in doc["expenses"]] == ["Metro card", "Whole Foods"]
    assert doc["expenses"][1] == {
        "id": doc["expenses"][1]["id"],
        "amount": 45.99,
        "category": "groceries",
        "description": "Whole Foods",
        "timestamp": "2024-01-15T10:30:00Z",
    }
    assert isinstance(doc["expenses"][0]["id"], int)


def test_json_export_imports_into_fresh_store_and_back_as_duplicates(db_url: str) -> None:
    with session_scope(database_url=db_url) as session:
        store = SqlAlchemyExpenseStore(session)
        data = export_to_json(store)
        again = import_from_json(data, store)

    assert (again.imported, again.skipped) == (0, 2)

    fresh = MemoryStore()
    result = import_from_json(data, fresh)
    assert result.imported == 2
    assert {r.duplicate_key for r in fresh.committed} == {r.duplicate_key for r in RECORDS}


def test_sqlite_export_is_readable_by_legacy_importer(db_url: str, tmp_path: Path) -> None:
    out = tmp_path / "exported.sqlite"
    with session_scope(database_url=db_url) as session:
        written = export_to_sqlite(SqlAlchemyExpenseStore(session), out)

    assert written == 2
    rows = read_legacy_rows(out)
    assert sorted(r[4] for r in rows) == ["2024-01-15T10:30:00Z", "2024-01-16T10:30:00Z"]

    fresh = MemoryStore()
    result = import_from_sqlite(out, fresh)
    assert (result.imported, result.dropped) == (2, 0)


def test_sqlite_export_refuses_existing_file(db_url: str, tmp_path: Path) -> None:
    out = tmp_path / "exists.db"
    out.write_bytes(b"")
    with pytest.raises(FileExistsError):
        with session_scope(database_url=db_url) as session:
            export_to_sqlite(SqlAlchemyExpenseStore(session), out)


def test_legacy_store_to_envelope_keeps_source_ids(tmp_path: Path) -> None:
    legacy = make_legacy_db(
        tmp_path / "expenses.db",
        [
            (41, 45.99, "Groceries", "Whole Foods", "2024-01-15T10:30:00Z"),
            (42, 5.25, "coffee", "", "1705401000"),
            (43, 1.0, "coffee", "bad", "not a time"),
        ],
    )

    envelope, scan = export_legacy_store(legacy, exported_at=EXPORTED_AT)

    assert scan.dropped == 1
    # Ordered by the raw column text, as the legacy database sorts it.
    assert [e.id for e in envelope.expenses] == [41, 42]
    doc = json.loads(dump_envelope(envelope))
    assert doc["expenses"][0]["category"] == "groceries"
    assert doc["expenses"][1]["description"] == "No description"
    assert doc["expenses"][1]["timestamp"] == "2024-01-16T10:30:00Z"
