"""
Store executor over a DB-API 2.0 cursor.

Statements run exactly once; driver errors propagate unchanged. Transaction
boundaries stay with the caller: wrap the whole reconciliation in one
transaction if the update/check and the insert must be atomic.
"""

import logging
from typing import Any

from upsert_utils.tracing import trace_database_query

from .model import Dialect

logger = logging.getLogger(__name__)


def _operation(sql: str) -> str:
    words = sql.split(None, 1)
    return words[0].upper() if words else "UNKNOWN"


class CursorExecutor:
    """
    Executor backed by a DB-API cursor (sqlite3, psycopg2, PyMySQL, ...).

    Args:
        cursor: Open cursor on the target store
        dialect: Dialect of the store; detected from the cursor's driver if omitted
        table_hint: Table name recorded on spans
    """

    def __init__(self, cursor: Any, dialect: Dialect | str | None = None, table_hint: str = ""):
        self.cursor = cursor
        self.dialect = Dialect.parse(dialect) if dialect is not None else Dialect.from_cursor(cursor)
        self.table_hint = table_hint

    def execute(self, sql: str) -> int:
        operation = _operation(sql)
        logger.debug(f"Executing {operation} statement:\n{sql}")

        with trace_database_query(operation, self.table_hint, self.dialect.value):
            self.cursor.execute(sql)
            rowcount = getattr(self.cursor, "rowcount", -1)

        return rowcount if rowcount is not None else -1

    def query_scalar(self, sql: str) -> Any:
        logger.debug(f"Executing scalar query:\n{sql}")

        with trace_database_query("SELECT", self.table_hint, self.dialect.value):
            self.cursor.execute(sql)
            row = self.cursor.fetchone()

        if row is None:
            return None
        return row[0]
