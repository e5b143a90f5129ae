"""
Reconciliation engine.

Inserts candidate records that have no counterpart in the target table and,
depending on the conflict policy, updates, rejects or ignores the ones that
do. Each step is a single statement wherever the dialect allows it:

1. policy 'update' (with keys): update matching incumbents in place
2. policy 'error' (with keys): count matches, raise DuplicateKeyError if any
3. always: insert candidates with no matching incumbent

An empty key set means no candidate ever matches, so every candidate is
inserted, nothing is updated and 'error' never raises.
"""

import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from opentelemetry import trace

from upsert_utils.metrics import UpsertMetrics, default_metrics
from upsert_utils.tracing import add_span_attributes, add_span_event, trace_operation

from .config import UpsertConfig
from .dialects import create_strategy
from .errors import DuplicateKeyError
from .interfaces import Executor, Quoter, SchemaIntrospector
from .model import ConflictPolicy, Dialect, TableSchema, normalize_keys
from .schema import introspect_table
from .virtual_table import Clock, utc_now

logger = logging.getLogger(__name__)


@dataclass
class UpsertResult:
    """Outcome of one reconciliation call."""

    table: str
    dialect: Dialect
    policy: ConflictPolicy
    keys: tuple[str, ...]
    candidates: int = 0
    rows_updated: int = 0
    rows_inserted: int = 0
    duration_seconds: float = 0.0
    timestamp: datetime = field(default_factory=lambda: datetime.now(UTC))

    def to_dict(self) -> dict[str, Any]:
        return {
            "table": self.table,
            "dialect": self.dialect.value,
            "policy": self.policy.value,
            "keys": list(self.keys),
            "candidates": self.candidates,
            "rows_updated": self.rows_updated,
            "rows_inserted": self.rows_inserted,
            "duration_seconds": self.duration_seconds,
            "timestamp": self.timestamp.isoformat(),
        }


class Upserter:
    """
    Reconciles candidate records against one table.

    The dialect strategy is chosen once, here: from config.dialect if set,
    else from the executor's own ``dialect`` attribute, else the generic
    per-record fallback.

    Args:
        executor: Runs SQL against the store
        table: Target table
        config: Dialect and default policy
        quoter: Quoting service (default: LiteralQuoter for the dialect)
        metrics: Prometheus metrics (default: shared instance on the global registry)
        clock: Source of "now" for timestamp columns
    """

    def __init__(
        self,
        executor: Executor,
        table: TableSchema,
        config: UpsertConfig | None = None,
        quoter: Quoter | None = None,
        metrics: UpsertMetrics | None = None,
        clock: Clock = utc_now,
    ):
        self.executor = executor
        self.table = table
        self.config = config or UpsertConfig()
        self.dialect = self._resolve_dialect()
        self.strategy = create_strategy(self.dialect, table, quoter=quoter, clock=clock)
        self.metrics = metrics if metrics is not None else default_metrics()

    @classmethod
    def from_store(
        cls,
        executor: Executor,
        table_name: str,
        introspector: SchemaIntrospector,
        config: UpsertConfig | None = None,
        **kwargs,
    ) -> "Upserter":
        """Build an Upserter for a table whose columns are read from the store."""
        table_kwargs = {
            name: kwargs.pop(name) for name in ("created_column", "updated_column") if name in kwargs
        }
        table = introspect_table(introspector, table_name, **table_kwargs)
        return cls(executor, table, config=config, **kwargs)

    def _resolve_dialect(self) -> Dialect:
        if self.config.dialect is not None:
            return self.config.dialect
        native = getattr(self.executor, "dialect", None)
        if native is not None:
            return Dialect.parse(native)
        return Dialect.GENERIC

    def reconcile(
        self,
        records: Iterable[Any],
        keys: str | Sequence[str] | None = None,
        if_exists: ConflictPolicy | str | None = None,
    ) -> UpsertResult:
        """
        Insert new records and handle existing ones according to policy.

        Args:
            records: Candidate records (mappings or attribute-bearing objects)
            keys: Column name(s) deciding whether a candidate matches an incumbent
            if_exists: 'ignore', 'update' or 'error' (default: config.if_exists)

        Returns:
            UpsertResult with the row counts reported by the executor

        Raises:
            DuplicateKeyError: Policy 'error' and some candidate matches an
                incumbent; nothing was written
        """
        records = list(records)
        keys = normalize_keys(keys)
        policy = ConflictPolicy.parse(if_exists) if if_exists is not None else self.config.if_exists

        result = UpsertResult(
            table=self.table.name,
            dialect=self.dialect,
            policy=policy,
            keys=keys,
            candidates=len(records),
        )
        if not records:
            logger.debug(f"No candidates for {self.table.name}, nothing to do")
            return result

        logger.info(
            f"Reconciling {len(records)} candidates into {self.table.name} "
            f"(dialect={self.dialect.value}, policy={policy.value}, keys={list(keys)})"
        )

        start_time = time.perf_counter()
        success = False

        try:
            with trace_operation(
                "upsert.reconcile",
                kind=trace.SpanKind.INTERNAL,
                table=self.table.name,
                dialect=self.dialect.value,
                policy=policy.value,
                keys=",".join(keys),
                candidates=len(records),
            ):
                self._run_steps(result, records, keys, policy)
                add_span_attributes(
                    rows_updated=result.rows_updated,
                    rows_inserted=result.rows_inserted,
                )
            success = True
        finally:
            result.duration_seconds = time.perf_counter() - start_time
            self.metrics.record_run(
                table_name=self.table.name,
                dialect=self.dialect.value,
                policy=policy.value,
                success=success,
                duration=result.duration_seconds,
                candidates=len(records),
            )

        logger.info(
            f"Reconciled {self.table.name}: updated={result.rows_updated}, "
            f"inserted={result.rows_inserted}, duration={result.duration_seconds:.3f}s"
        )
        return result

    def _run_steps(
        self,
        result: UpsertResult,
        records: list[Any],
        keys: tuple[str, ...],
        policy: ConflictPolicy,
    ) -> None:
        if keys and policy is ConflictPolicy.UPDATE:
            result.rows_updated = self.strategy.update_existing(self.executor, records, keys)
            self.metrics.record_rows(self.table.name, "update", result.rows_updated)
            add_span_event("incumbents_updated", rows=result.rows_updated)

        elif keys and policy is ConflictPolicy.ERROR:
            count = self.strategy.count_existing(self.executor, records, keys)
            if count > 0:
                self.metrics.record_duplicates(self.table.name, count)
                raise DuplicateKeyError(count, self.table.name)

        result.rows_inserted = self.strategy.insert_new(self.executor, records, keys)
        self.metrics.record_rows(self.table.name, "insert", result.rows_inserted)
        add_span_event("candidates_inserted", rows=result.rows_inserted)


def create_or_update(
    executor: Executor,
    table: TableSchema,
    records: Iterable[Any],
    keys: str | Sequence[str] | None = None,
    if_exists: ConflictPolicy | str = ConflictPolicy.IGNORE,
    dialect: Dialect | str | None = None,
    **kwargs,
) -> UpsertResult:
    """
    One-shot reconciliation of records into table.

    Example:
        >>> create_or_update(executor, readings, records, keys=["station_id", "date"],
        ...                  if_exists="update")

    Raises:
        UnsupportedDialectError: If dialect is not recognized
        DuplicateKeyError: See Upserter.reconcile
    """
    config = UpsertConfig(dialect=dialect, if_exists=if_exists)
    return Upserter(executor, table, config=config, **kwargs).reconcile(records, keys)
