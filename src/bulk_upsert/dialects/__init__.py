"""
Dialect strategies.

- generic: per-record fallback, correct on any SQL store
- mysql: UPDATE ... JOIN
- postgresql: UPDATE ... FROM with typed literals
- sqlite: shared INSERT/COUNT, per-record UPDATE
"""

from collections.abc import Callable
from datetime import datetime

from ..interfaces import Quoter
from ..model import Dialect, TableSchema
from ..virtual_table import utc_now
from .base import CANDIDATES, INCUMBENTS, DialectStrategy
from .generic import GenericStrategy, RecordByRecordUpdateMixin
from .mysql import MySQLStrategy
from .postgresql import PostgreSQLStrategy
from .registry import get_strategy_class, register_strategy, registered_dialects
from .sqlite import SQLiteStrategy


def create_strategy(
    dialect: Dialect | str,
    table: TableSchema,
    quoter: Quoter | None = None,
    clock: Callable[[], datetime] = utc_now,
) -> DialectStrategy:
    """Instantiate the registered strategy for a dialect and table."""
    return get_strategy_class(dialect)(table, quoter=quoter, clock=clock)


__all__ = [
    "CANDIDATES",
    "INCUMBENTS",
    "DialectStrategy",
    "GenericStrategy",
    "MySQLStrategy",
    "PostgreSQLStrategy",
    "SQLiteStrategy",
    "RecordByRecordUpdateMixin",
    "create_strategy",
    "get_strategy_class",
    "register_strategy",
    "registered_dialects",
]
