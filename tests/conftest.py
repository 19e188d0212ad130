"""Pytest configuration for test isolation.

The CLI and the database client read ``DATABASE_URL``, ``DB_PATH`` and
``EXPENSE_MIGRATION_LOG_LEVEL`` from the environment, and ``db.client`` caches
one engine per URL for the life of the process. Left alone, a value exported
in the developer's shell (or an engine created by an earlier test) would leak
into later tests.

To keep tests hermetic, an autouse fixture clears those variables, runs each
test from its own temporary directory (so a stray ``./.env`` or
``./expenses.db`` is never picked up), and disposes cached engines afterwards.
"""

from __future__ import annotations

import sys
from collections.abc import Iterator
from pathlib import Path

import pytest

# Make sure the workspace packages are importable without an editable install
_ROOT = Path(__file__).resolve().parents[1]
_PATHS = [_ROOT / "packages", _ROOT / "libs" / "db" / "src", _ROOT]
sys.path[:0] = [str(p) for p in _PATHS if str(p) not in sys.path]

from db.client import dispose_engines  # noqa: E402

_ENV_VARS = ("DATABASE_URL", "DB_PATH", "EXPENSE_MIGRATION_LOG_LEVEL")


@pytest.fixture(autouse=True)
def _isolate_environment(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Iterator[None]:
    """Clear migration env vars and chdir into a per-test working directory."""

    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    workdir = tmp_path / "cwd"
    # Ensure the directory exists to make behavior explicit and help debugging.
    workdir.mkdir(parents=True, exist_ok=True)
    monkeypatch.chdir(workdir)

    yield

    dispose_engines()
