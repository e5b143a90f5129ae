"""
PostgreSQL strategy.

    UPDATE table
       SET (column1, column2, ...) = ROW(candidates.column1, candidates.column2, ...)
      FROM (candidates) AS candidates
     WHERE table.key1 = candidates.key1
       AND table.key2 = candidates.key2

ROW() keeps the multi-column SET valid when the table has a single mutable
column.
"""

import re
from collections.abc import Sequence
from typing import Any

from ..model import Column, Dialect
from ..statements import Statement, column_list, key_equality
from .base import CANDIDATES, DialectStrategy
from .registry import register_strategy

TIMESTAMP_TYPE = re.compile(r"timestamp", re.IGNORECASE)
CHARACTER_TYPE = re.compile(r"char|text", re.IGNORECASE)
# Type names as they appear in DDL: "character varying(255)", "numeric(9, 6)", "text[]",
# and schema-qualified user-defined or array types: "public.mood", "pg_catalog._int4"
VALID_SQL_TYPE = re.compile(r"^([A-Za-z_][A-Za-z0-9_]*\.)?[A-Za-z_][A-Za-z0-9_ ]*(\(\s*\d+(\s*,\s*\d+)?\s*\))?[A-Za-z ]*(\[\])?$")


def needs_cast(value: Any, column: Column) -> bool:
    """
    PostgreSQL cannot always infer literal types inside a UNION SELECT, so
    NULLs, timestamps and strings carry an explicit type. Schema-qualified
    types (enums, arrays) always do: a bare literal would resolve to text.
    """
    if not column.sql_type:
        return False
    return (
        value is None
        or "." in column.sql_type
        or bool(TIMESTAMP_TYPE.search(column.sql_type))
        or bool(CHARACTER_TYPE.search(column.sql_type))
    )


@register_strategy(Dialect.POSTGRESQL)
class PostgreSQLStrategy(DialectStrategy):
    dialect = Dialect.POSTGRESQL

    def render_literal(self, value: Any, column: Column) -> str:
        literal = super().render_literal(value, column)
        if not needs_cast(value, column):
            return literal
        if not VALID_SQL_TYPE.match(column.sql_type):
            raise ValueError(f"Invalid SQL type for column {column.name!r}: {column.sql_type!r}")
        return f"CAST ({literal} AS {column.sql_type})"

    def build_update(self, records: Sequence[Any], keys: Sequence[str]) -> str | None:
        names = self.table.mutable_column_names
        return (
            Statement()
            .update(self.table_ref)
            .set(
                f"({column_list(names, self.quote)}) = "
                f"ROW({column_list(names, self.quote, qualifier=CANDIDATES)})"
            )
            .from_(self.virtual_table(records))
            .where(key_equality(self.table_ref, CANDIDATES, keys, self.quote))
            .render()
        )
