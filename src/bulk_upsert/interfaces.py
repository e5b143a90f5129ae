"""
Collaborators the engine consumes but does not own.

Any object with the right methods will do; the library ships adapters for
DB-API cursors (executor.CursorExecutor), schema introspection
(schema.SQLiteIntrospector, schema.InformationSchemaIntrospector) and literal
quoting (quoting.LiteralQuoter, quoting.PsycopgQuoter).
"""

from typing import Any, Protocol, runtime_checkable

from .model import Column


@runtime_checkable
class Executor(Protocol):
    """Runs rendered SQL against the store."""

    def execute(self, sql: str) -> int:
        """Run a mutating statement and return the number of affected rows."""
        ...

    def query_scalar(self, sql: str) -> Any:
        """Run a query and return the first column of its first row."""
        ...


@runtime_checkable
class SchemaIntrospector(Protocol):
    def columns(self, table_name: str) -> list[Column]:
        """Ordered columns of a table, primary key columns flagged."""
        ...


@runtime_checkable
class Quoter(Protocol):
    def literal(self, value: Any, column: Column) -> str:
        """SQL literal text for a value bound for the given column."""
        ...
