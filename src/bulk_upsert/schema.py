"""
Schema introspection: discover a table's ordered columns from the store.
"""

import logging
from typing import Any

from upsert_utils.sql_safety import quote_identifier, validate_identifier, validate_schema_table

from .interfaces import SchemaIntrospector
from .model import Column, Dialect, TableSchema

logger = logging.getLogger(__name__)


class SQLiteIntrospector:
    """Columns via ``PRAGMA table_info``."""

    def __init__(self, cursor: Any):
        self.cursor = cursor

    def columns(self, table_name: str) -> list[Column]:
        validate_schema_table(table_name)
        if "." in table_name:
            schema, table = table_name.split(".", 1)
            pragma = f"PRAGMA {quote_identifier(schema, 'sqlite')}.table_info({quote_identifier(table, 'sqlite')})"
        else:
            pragma = f"PRAGMA table_info({quote_identifier(table_name, 'sqlite')})"

        self.cursor.execute(pragma)
        # (cid, name, type, notnull, dflt_value, pk)
        return [
            Column(name=row[1], sql_type=row[2] or "", primary_key=bool(row[5]))
            for row in self.cursor.fetchall()
        ]


class InformationSchemaIntrospector:
    """
    Columns via ``information_schema`` (PostgreSQL, MySQL).

    Args:
        cursor: DB-API cursor using the ``%s`` placeholder style
        dialect: POSTGRESQL or MYSQL; decides the default schema
        schema: Schema to look in; defaults to the connection's current schema
    """

    QUERY = """
        SELECT c.column_name,
               {data_type},
               CASE WHEN k.column_name IS NULL THEN 0 ELSE 1 END AS is_primary
          FROM information_schema.columns c
     LEFT JOIN information_schema.table_constraints t
            ON t.table_schema = c.table_schema
           AND t.table_name = c.table_name
           AND t.constraint_type = 'PRIMARY KEY'
     LEFT JOIN information_schema.key_column_usage k
            ON k.constraint_name = t.constraint_name
           AND k.table_schema = t.table_schema
           AND k.table_name = t.table_name
           AND k.column_name = c.column_name
         WHERE c.table_name = %s
           AND c.table_schema = {schema}
      ORDER BY c.ordinal_position
    """

    # PostgreSQL reports enums as USER-DEFINED and arrays as ARRAY; the
    # underlying type is udt_name (arrays: element name prefixed with "_")
    DATA_TYPE = {
        Dialect.POSTGRESQL: (
            "CASE WHEN c.data_type IN ('USER-DEFINED', 'ARRAY') "
            "THEN c.udt_schema || '.' || c.udt_name ELSE c.data_type END"
        ),
        Dialect.MYSQL: "c.data_type",
    }

    CURRENT_SCHEMA = {
        Dialect.POSTGRESQL: "current_schema()",
        Dialect.MYSQL: "DATABASE()",
    }

    def __init__(self, cursor: Any, dialect: Dialect | str = Dialect.POSTGRESQL, schema: str | None = None):
        self.cursor = cursor
        self.dialect = Dialect.parse(dialect)
        if self.dialect not in self.CURRENT_SCHEMA:
            raise ValueError(f"information_schema introspection does not support {self.dialect.value}")
        if schema is not None:
            validate_identifier(schema)
        self.schema = schema

    def columns(self, table_name: str) -> list[Column]:
        validate_schema_table(table_name)
        schema = self.schema
        if "." in table_name:
            schema, table_name = table_name.split(".", 1)

        if schema is None:
            query = self.QUERY.format(
                data_type=self.DATA_TYPE[self.dialect],
                schema=self.CURRENT_SCHEMA[self.dialect],
            )
            params = (table_name,)
        else:
            query = self.QUERY.format(data_type=self.DATA_TYPE[self.dialect], schema="%s")
            params = (table_name, schema)

        self.cursor.execute(query, params)
        return [
            Column(name=row[0], sql_type=row[1], primary_key=bool(row[2]))
            for row in self.cursor.fetchall()
        ]


def introspect_table(introspector: SchemaIntrospector, table_name: str, **kwargs) -> TableSchema:
    """
    Build a TableSchema from the store.

    Keyword arguments are passed to TableSchema (created_column, updated_column).

    Raises:
        LookupError: If the table has no columns (usually: it does not exist)
    """
    columns = introspector.columns(table_name)
    if not columns:
        raise LookupError(f"Table not found or has no columns: {table_name}")

    logger.debug(
        f"Introspected {table_name}: "
        + ", ".join(f"{c.name} {c.sql_type}{' PK' if c.primary_key else ''}" for c in columns)
    )
    return TableSchema(table_name, tuple(columns), **kwargs)
