"""
Exceptions raised by the upsert engine.

Errors coming from the store (constraint violations, connectivity, malformed
SQL) are never wrapped: they reach the caller as the driver raised them.
"""


class UpsertError(Exception):
    """Base class for errors raised by bulk_upsert itself."""


class UnsupportedDialectError(UpsertError, ValueError):
    """No dialect strategy is registered for the requested dialect."""

    def __init__(self, dialect):
        self.dialect = dialect
        super().__init__(f"Unsupported SQL dialect: {dialect!r}")


class DuplicateKeyError(UpsertError):
    """
    Raised under the 'error' policy when candidates match incumbent rows.

    Nothing has been written when this is raised.
    """

    def __init__(self, count: int, table: str | None = None):
        self.count = count
        self.table = table
        where = f" in {table}" if table else ""
        super().__init__(f"found {count} duplicate records{where}")
