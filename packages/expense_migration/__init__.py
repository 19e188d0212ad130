"""Public interface for the ``expense_migration`` package.

This module exposes the package's API functions and public models/types as the
stable import surface. There is no runtime logic here, only symbol re-exports.
"""

from .api import (
    export_legacy_store,
    export_to_json,
    export_to_sqlite,
    import_from_file,
    import_from_json,
    import_from_path,
    import_from_sqlite,
    import_from_string,
    summarize_by_category,
)
from .errors import (
    FileNotFound,
    ImportFailed,
    InvalidDatabase,
    InvalidFormat,
    MigrationError,
)
from .models import (
    DuplicateKey,
    ExpenseRecord,
    ExportEnvelope,
    ExportedExpense,
    ImportResult,
    SourceScan,
)
from .persistence import ExpenseStore, SqlAlchemyExpenseStore, StoredExpense

__all__ = [
    # API
    "export_legacy_store",
    "export_to_json",
    "export_to_sqlite",
    "import_from_file",
    "import_from_json",
    "import_from_path",
    "import_from_sqlite",
    "import_from_string",
    "summarize_by_category",
    # Errors
    "MigrationError",
    "InvalidFormat",
    "FileNotFound",
    "InvalidDatabase",
    "ImportFailed",
    # Models / types
    "DuplicateKey",
    "ExpenseRecord",
    "ExportEnvelope",
    "ExportedExpense",
    "ImportResult",
    "SourceScan",
    # Store
    "ExpenseStore",
    "SqlAlchemyExpenseStore",
    "StoredExpense",
]
