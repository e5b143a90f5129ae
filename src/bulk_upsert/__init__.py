"""
Bulk insert-or-update of in-memory records into a SQL table.

Candidate records are rendered as an inline virtual table and reconciled
against the target table in one statement per step, with per-dialect
strategies for generic SQL, MySQL, PostgreSQL and SQLite.

Usage:
    from bulk_upsert import CursorExecutor, Upserter, SQLiteIntrospector

    executor = CursorExecutor(connection.cursor())
    upserter = Upserter.from_store(executor, "readings", SQLiteIntrospector(connection.cursor()))
    upserter.reconcile(records, keys=["station_id", "date"], if_exists="update")
    connection.commit()
"""

from .config import UpsertConfig
from .dialects import create_strategy, get_strategy_class, register_strategy
from .engine import UpsertResult, Upserter, create_or_update
from .errors import DuplicateKeyError, UnsupportedDialectError, UpsertError
from .executor import CursorExecutor
from .model import Column, ConflictPolicy, Dialect, TableSchema, normalize_keys
from .quoting import LiteralQuoter, PsycopgQuoter
from .schema import InformationSchemaIntrospector, SQLiteIntrospector, introspect_table

__version__ = "1.0.0"
__all__ = [
    "Column",
    "ConflictPolicy",
    "CursorExecutor",
    "Dialect",
    "DuplicateKeyError",
    "InformationSchemaIntrospector",
    "LiteralQuoter",
    "PsycopgQuoter",
    "SQLiteIntrospector",
    "TableSchema",
    "UnsupportedDialectError",
    "UpsertConfig",
    "UpsertError",
    "UpsertResult",
    "Upserter",
    "create_or_update",
    "create_strategy",
    "get_strategy_class",
    "introspect_table",
    "normalize_keys",
    "register_strategy",
]
