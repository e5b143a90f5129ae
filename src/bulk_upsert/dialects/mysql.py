"""
MySQL strategy.

    UPDATE table
      JOIN (candidates) AS candidates
       SET table.column1 = candidates.column1, table.column2 = candidates.column2, ...
     WHERE table.key1 = candidates.key1
       AND table.key2 = candidates.key2
"""

from collections.abc import Sequence
from typing import Any

from ..model import Dialect
from ..statements import Statement, assignments, key_equality
from .base import CANDIDATES, DialectStrategy
from .registry import register_strategy


@register_strategy(Dialect.MYSQL)
class MySQLStrategy(DialectStrategy):
    dialect = Dialect.MYSQL

    def build_update(self, records: Sequence[Any], keys: Sequence[str]) -> str | None:
        # Key columns already match, only the rest need setting
        names = self.update_column_names(keys)
        if not names:
            return None

        return (
            Statement()
            .update(self.table_ref)
            .join(self.virtual_table(records))
            .set(assignments(self.table_ref, CANDIDATES, names, self.quote))
            .where(key_equality(self.table_ref, CANDIDATES, keys, self.quote))
            .render()
        )
