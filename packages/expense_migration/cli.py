# ruff: noqa: I001
"""CLI for the ``expense_migration`` package.

This module exposes callable command handlers (``cmd_import``,
``cmd_export_json``, ``cmd_export_sqlite``, ``cmd_export_legacy``,
``cmd_summary``) and a Typer-based console interface. Environment variables
(``DATABASE_URL``, ``DB_PATH``, ``EXPENSE_MIGRATION_LOG_LEVEL``) are loaded
from a local ``.env`` using ``python-dotenv`` before delegating to command
logic. Business logic lives in ``expense_migration.api`` and related modules.

Handlers print results to stdout, errors to stderr (``Error: ...``), and
return a process exit code (``0`` on success, ``1`` on any failure).
"""

from __future__ import annotations

import os
import sys
from collections.abc import Iterable
from pathlib import Path
from typing import Annotated

import typer
from dotenv import load_dotenv

from .errors import FileNotFound, MigrationError
from .logging_setup import configure_logging
from .models import ExpenseRecord

DEFAULT_EXPORT_FILE = "expenses_export.json"
DEFAULT_LEGACY_DB = "expenses.db"
LEGACY_DB_ENV = "DB_PATH"


# ---- Small module-level helpers used by CLI commands -------------------------


def _err(msg: str) -> None:
    print(f"Error: {msg}", file=sys.stderr)


def _resolve_legacy_db_path() -> Path:
    """Legacy source location: ``$DB_PATH`` when set, else ``./expenses.db``."""

    env_val = os.getenv(LEGACY_DB_ENV)
    if env_val and env_val.strip():
        return Path(env_val.strip()).expanduser()
    return Path.cwd() / DEFAULT_LEGACY_DB


def _print_export_statistics(records: Iterable[ExpenseRecord]) -> None:
    from .report import category_breakdown, total_amount

    items = list(records)
    print("Statistics:")
    print(f"   - Total expenses: {len(items)}")
    print("   - By category:")
    for category, count in category_breakdown(items):
        print(f"     • {category}: {count}")
    print(f"   - Total amount: ${total_amount(items):.2f}")


# ---- Command handlers ---------------------------------------------------------


def cmd_import(
    source: str,
    *,
    kind: str = "auto",
    database_url: str | None = None,
) -> int:
    """Import a migration source into the target store and print the summary.

    ``kind`` selects the reader: ``"json"``, ``"sqlite"``, or ``"auto"`` (by
    file extension).
    """

    from db.client import session_scope

    from .api import import_from_file, import_from_path, import_from_sqlite
    from .persistence import SqlAlchemyExpenseStore

    readers = {
        "json": import_from_file,
        "sqlite": import_from_sqlite,
        "auto": import_from_path,
    }
    if kind not in readers:
        _err(f"unknown source kind {kind!r}; expected one of {sorted(readers)}")
        return 1

    print(f"Starting import from {source}...")
    try:
        with session_scope(database_url=database_url) as session:
            result = readers[kind](source, SqlAlchemyExpenseStore(session))
    except FileNotFound:
        _err(f"File not found: {source}")
        return 1
    except MigrationError as e:
        # InvalidFormat / InvalidDatabase / ImportFailed carry their own prefix.
        _err(str(e))
        return 1
    except Exception as e:
        _err(f"Unexpected failure importing '{source}': {e}")
        return 1

    print(result.message)
    return 0


def cmd_export_json(output: str | None, *, database_url: str | None = None) -> int:
    """Export the target store as a JSON envelope to ``output`` (stdout when ``None``)."""

    from db.client import session_scope

    from .api import export_to_json
    from .persistence import SqlAlchemyExpenseStore

    try:
        with session_scope(database_url=database_url) as session:
            data = export_to_json(SqlAlchemyExpenseStore(session))
    except Exception as e:
        _err(f"export failed: {e}")
        return 1

    if output is None:
        sys.stdout.write(data.decode("utf-8") + "\n")
        return 0

    try:
        Path(output).write_bytes(data)
    except OSError as e:
        _err(f"failed to write '{output}': {e}")
        return 1
    print(f"File saved to: {output}")
    return 0


def cmd_export_sqlite(output: str, *, database_url: str | None = None) -> int:
    """Export the target store into a new legacy-format SQLite file."""

    from db.client import session_scope

    from .api import export_to_sqlite
    from .persistence import SqlAlchemyExpenseStore

    try:
        with session_scope(database_url=database_url) as session:
            written = export_to_sqlite(SqlAlchemyExpenseStore(session), output)
    except (FileExistsError, MigrationError) as e:
        _err(str(e))
        return 1
    except Exception as e:
        _err(f"export failed: {e}")
        return 1

    print(f"Exported {written} expense(s) to {output}")
    return 0


def cmd_export_legacy(output_file: str | None = None) -> int:
    """Convert the legacy SQLite store at ``$DB_PATH`` into a JSON export file.

    Prints progress, the number of exported expenses, a per-category
    breakdown, and the total amount.
    """

    from .export import dump_envelope, export_legacy_store

    print("Starting expense export...")
    db_path = _resolve_legacy_db_path()
    output_path = Path(output_file or DEFAULT_EXPORT_FILE)

    if not db_path.exists():
        _err(f"Database file not found at: {db_path}")
        print(
            f"Set {LEGACY_DB_ENV}=/path/to/expenses.db to point at the legacy database.",
            file=sys.stderr,
        )
        return 1

    print(f"Opening database: {db_path}")
    try:
        envelope, scan = export_legacy_store(db_path)
    except FileNotFound:
        _err(f"Database file not found at: {db_path}")
        return 1
    except MigrationError as e:
        _err(f"Export failed: {e}")
        return 1

    print(f"Found {scan.raw_rows} expenses")
    if scan.dropped:
        print(f"Skipped {scan.dropped} row(s) with unreadable data")

    try:
        output_path.write_bytes(dump_envelope(envelope))
    except OSError as e:
        _err(f"Export failed: could not write '{output_path}': {e}")
        return 1

    print("Export complete!")
    print(f"File saved to: {output_path}")
    _print_export_statistics(scan.records)
    return 0


def cmd_summary(*, database_url: str | None = None) -> int:
    """Print the total amount per category in the target store."""

    from db.client import session_scope

    from .api import summarize_by_category
    from .persistence import SqlAlchemyExpenseStore

    try:
        with session_scope(database_url=database_url) as session:
            totals = summarize_by_category(SqlAlchemyExpenseStore(session))
    except Exception as e:
        _err(f"summary failed: {e}")
        return 1

    if not totals:
        print("No expenses.")
        return 0
    for category, amount in sorted(totals.items(), key=lambda kv: (-kv[1], kv[0])):
        print(f"{category}\t{amount:.2f}")
    return 0


# ---- Typer-based console interface -------------------------------------------


app = typer.Typer(
    no_args_is_help=True,
    add_completion=False,
    help=(
        "Import expense exports (JSON envelope or legacy SQLite) into the "
        "expenses database, and export them back out."
    ),
)

DATABASE_URL_HELP = "Override DATABASE_URL (falls back to env var)."


@app.command("import-json")
def import_json_cmd(
    file: Annotated[Path, typer.Option("--file", help="Path to a JSON export envelope.")],
    *,
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    """Import a JSON export envelope into the expenses database."""

    raise typer.Exit(cmd_import(str(file), kind="json", database_url=database_url))


@app.command("import-sqlite")
def import_sqlite_cmd(
    file: Annotated[
        Path, typer.Option("--file", help="Path to a legacy .db/.sqlite/.sqlite3 file.")
    ],
    *,
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    """Import a legacy SQLite database directly."""

    raise typer.Exit(cmd_import(str(file), kind="sqlite", database_url=database_url))


@app.command("export-json")
def export_json_cmd(
    output: str | None = typer.Option(
        None, "--output", help="Destination file; prints to stdout when omitted."
    ),
    *,
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    """Export the expenses database as a JSON envelope."""

    raise typer.Exit(cmd_export_json(output, database_url=database_url))


@app.command("export-sqlite")
def export_sqlite_cmd(
    output: str = typer.Option(..., "--output", help="New .db/.sqlite/.sqlite3 file."),
    *,
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    """Export the expenses database into a legacy-format SQLite file."""

    raise typer.Exit(cmd_export_sqlite(output, database_url=database_url))


@app.command("export-legacy")
def export_legacy_cmd(
    output_file: Annotated[
        str | None,
        typer.Argument(help=f"Output JSON file (default: {DEFAULT_EXPORT_FILE})."),
    ] = None,
) -> None:
    """Convert the legacy database at $DB_PATH into a JSON export file."""

    raise typer.Exit(cmd_export_legacy(output_file))


@app.command("summary")
def summary_cmd(
    *,
    database_url: str | None = typer.Option(None, help=DATABASE_URL_HELP),
) -> None:
    """Show the total amount per category."""

    raise typer.Exit(cmd_summary(database_url=database_url))


@app.callback()
def _root(
    log_level: str | None = typer.Option(
        None, help="Log level (falls back to EXPENSE_MIGRATION_LOG_LEVEL, then INFO)."
    ),
) -> None:
    """Root command.

    Loads ``.env`` from the current working directory (without overriding any
    already-set environment variables) and configures logging before any
    subcommand runs.
    """

    load_dotenv(dotenv_path=Path.cwd() / ".env", override=False)

    # Central logging setup so child loggers inherit configuration
    configure_logging(log_level)


def main() -> None:
    app()


if __name__ == "__main__":  # pragma: no cover - exercised via console script
    # Running as a module: `python -m expense_migration.cli`
    main()
