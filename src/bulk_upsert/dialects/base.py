"""
Shared dialect strategy: set-based INSERT and duplicate COUNT.

The three statement shapes all read from the same virtual table of
candidates. The default statements are portable ANSI SQL:

    INSERT INTO table (column1, column2, ...)
         SELECT candidates.*
           FROM (candidates) AS candidates
      LEFT JOIN table AS incumbents
             ON incumbents.key1 = candidates.key1
            AND incumbents.key2 = candidates.key2
          WHERE incumbents.id IS NULL

        SELECT COUNT(*) AS count
          FROM table
    INNER JOIN (candidates) AS candidates
            ON table.key1 = candidates.key1
           AND table.key2 = candidates.key2

There is no portable set-based UPDATE ... JOIN, so build_update() is left to
the variants.
"""

import logging
from collections.abc import Sequence
from typing import Any

from upsert_utils.sql_safety import quote_identifier, quote_schema_table

from ..interfaces import Executor, Quoter
from ..model import Column, Dialect, TableSchema
from ..quoting import LiteralQuoter
from ..statements import Statement, column_list, key_equality, subquery
from ..virtual_table import Clock, VirtualTableBuilder, utc_now

logger = logging.getLogger(__name__)

CANDIDATES = "candidates"
INCUMBENTS = "incumbents"


class DialectStrategy:
    """
    Builds and runs the reconciliation steps for one table in one dialect.

    build_* methods are pure and return SQL text. update_existing(),
    count_existing() and insert_new() run them through an executor; the
    per-record fallback overrides those three instead of the builders.
    """

    dialect: Dialect = Dialect.GENERIC

    def __init__(
        self,
        table: TableSchema,
        quoter: Quoter | None = None,
        clock: Clock = utc_now,
    ):
        self.table = table
        self.quoter = quoter if quoter is not None else LiteralQuoter(self.dialect)
        self.clock = clock
        self.builder = VirtualTableBuilder(
            table, self.render_literal, self.quote, clock
        )
        self._columns_by_name = {c.name: c for c in table.columns}

    # ================================================================
    # naming and literals

    def quote(self, identifier: str) -> str:
        return quote_identifier(identifier, self.dialect)

    @property
    def table_ref(self) -> str:
        return quote_schema_table(self.table.name, self.dialect)

    def column_named(self, name: str) -> Column:
        # Unknown key columns are left for the store to reject
        return self._columns_by_name.get(name) or Column(name, "")

    def render_literal(self, value: Any, column: Column) -> str:
        return self.quoter.literal(value, column)

    def update_column_names(self, keys: Sequence[str]) -> list[str]:
        """Mutable columns that are not part of the key."""
        return [name for name in self.table.mutable_column_names if name not in keys]

    def absence_column(self, keys: Sequence[str]) -> str:
        """Incumbent column that is NULL exactly when the LEFT JOIN found no match."""
        return self.table.primary_key or keys[0]

    def virtual_table(self, records: Sequence[Any]) -> str:
        return subquery(self.builder.render(records), CANDIDATES)

    # ================================================================
    # statement builders

    def build_insert(self, records: Sequence[Any], keys: Sequence[str]) -> str:
        statement = (
            Statement()
            .insert_into(self.table_ref, column_list(self.table.mutable_column_names, self.quote))
            .select(f"{CANDIDATES}.*")
            .from_(self.virtual_table(records))
        )
        if keys:
            statement.join(
                f"{self.table_ref} AS {INCUMBENTS}",
                on=key_equality(INCUMBENTS, CANDIDATES, keys, self.quote),
                kind="LEFT JOIN",
            )
            statement.where(f"{INCUMBENTS}.{self.quote(self.absence_column(keys))} IS NULL")
        return statement.render()

    def build_duplicate_count(self, records: Sequence[Any], keys: Sequence[str]) -> str:
        return (
            Statement()
            .select("COUNT(*) AS count")
            .from_(self.table_ref)
            .join(
                self.virtual_table(records),
                on=key_equality(self.table_ref, CANDIDATES, keys, self.quote),
                kind="INNER JOIN",
            )
            .render()
        )

    def build_update(self, records: Sequence[Any], keys: Sequence[str]) -> str | None:
        """
        Statement updating every incumbent that matches a candidate.

        Returns None when there is nothing to set.
        """
        raise NotImplementedError(
            f"{type(self).__name__} has no set-based UPDATE for {self.dialect.value}"
        )

    # ================================================================
    # reconciliation steps

    def update_existing(self, executor: Executor, records: Sequence[Any], keys: Sequence[str]) -> int:
        sql = self.build_update(records, keys)
        if sql is None:
            logger.debug(f"Every mutable column of {self.table.name} is a key, nothing to update")
            return 0
        return executor.execute(sql)

    def count_existing(self, executor: Executor, records: Sequence[Any], keys: Sequence[str]) -> int:
        count = executor.query_scalar(self.build_duplicate_count(records, keys))
        return int(count or 0)

    def insert_new(self, executor: Executor, records: Sequence[Any], keys: Sequence[str]) -> int:
        return executor.execute(self.build_insert(records, keys))
