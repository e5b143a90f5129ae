"""
Per-record fallback strategy.

Portable but slow: one statement per candidate instead of one per batch.
Useful when the store's dialect has no native strategy.

Records are written as-is. Reconciliation never validates candidates; any
validation belongs to whoever built them.
"""

import logging
from collections.abc import Sequence
from datetime import datetime
from typing import Any

from ..interfaces import Executor
from ..model import Dialect
from ..statements import Statement, column_list
from .base import DialectStrategy
from .registry import register_strategy

logger = logging.getLogger(__name__)


class RecordByRecordUpdateMixin:
    """
    UPDATE each incumbent matching a candidate, one candidate at a time.

    Shared by every strategy whose dialect lacks a set-based UPDATE with a
    join.
    """

    def distinct_records(self, records: Sequence[Any], now: datetime) -> list[Any]:
        """
        Drop candidates whose rendered rows are identical, keeping the first.

        The set-based strategies get the same collapse from UNION.
        """
        rows = {}
        for record in records:
            rows.setdefault(tuple(self.builder.literals(record, now)), record)
        return list(rows.values())

    def match_predicate(self, record: Any, keys: Sequence[str], now: datetime) -> str:
        terms = []
        for key in keys:
            column = self.column_named(key)
            value = self.builder.value_for(record, column, now)
            terms.append(f"{self.quote(key)} = {self.render_literal(value, column)}")
        return " AND ".join(terms)

    def build_record_update(self, record: Any, keys: Sequence[str], now: datetime) -> str | None:
        names = self.update_column_names(keys)
        if not names:
            return None

        settings = []
        for name in names:
            column = self.column_named(name)
            value = self.builder.value_for(record, column, now)
            settings.append(f"{self.quote(name)} = {self.render_literal(value, column)}")

        return (
            Statement()
            .update(self.table_ref)
            .set(", ".join(settings))
            .where(self.match_predicate(record, keys, now))
            .render()
        )

    def update_existing(self, executor: Executor, records: Sequence[Any], keys: Sequence[str]) -> int:
        logger.debug(f"Updating {len(records)} candidates one by one in {self.table.name}")
        now = self.clock()
        updated = 0
        for record in self.distinct_records(records, now):
            sql = self.build_record_update(record, keys, now)
            if sql is None:
                return 0
            updated += max(executor.execute(sql), 0)
        return updated


@register_strategy(Dialect.GENERIC)
class GenericStrategy(RecordByRecordUpdateMixin, DialectStrategy):
    """
    Reference strategy: every step runs per record.

    Existence of every candidate is decided before anything is written, so
    the outcome matches the single-statement strategies: duplicates are
    counted over the whole batch, identical candidates collapse to one row as
    in a UNION, and a candidate is never skipped because an earlier candidate
    of the same call was just inserted.
    """

    dialect = Dialect.GENERIC

    def build_record_count(self, record: Any, keys: Sequence[str], now: datetime) -> str:
        return (
            Statement()
            .select("COUNT(*) AS count")
            .from_(self.table_ref)
            .where(self.match_predicate(record, keys, now))
            .render()
        )

    def build_record_insert(self, record: Any, now: datetime) -> str:
        return (
            Statement()
            .insert_into(self.table_ref, column_list(self.table.mutable_column_names, self.quote))
            .values(self.builder.literals(record, now))
            .render()
        )

    def _matches(self, executor: Executor, record: Any, keys: Sequence[str], now: datetime) -> int:
        return int(executor.query_scalar(self.build_record_count(record, keys, now)) or 0)

    def count_existing(self, executor: Executor, records: Sequence[Any], keys: Sequence[str]) -> int:
        now = self.clock()
        return sum(
            self._matches(executor, record, keys, now)
            for record in self.distinct_records(records, now)
        )

    def insert_new(self, executor: Executor, records: Sequence[Any], keys: Sequence[str]) -> int:
        now = self.clock()
        records = self.distinct_records(records, now)
        if keys:
            pending = [r for r in records if self._matches(executor, r, keys, now) == 0]
        else:
            pending = list(records)

        inserted = 0
        for record in pending:
            inserted += max(executor.execute(self.build_record_insert(record, now)), 0)
        return inserted
