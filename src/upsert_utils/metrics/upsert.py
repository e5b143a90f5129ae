"""
Prometheus metrics for bulk upsert runs.
"""

import logging
from typing import Optional

from prometheus_client import (
    Counter,
    Histogram,
    CollectorRegistry,
    REGISTRY,
)

logger = logging.getLogger(__name__)


class UpsertMetrics:
    """
    Counters and timings for reconciliation runs, per target table.
    """

    def __init__(self, registry: Optional[CollectorRegistry] = None):
        """
        Args:
            registry: Custom Prometheus registry (default: global REGISTRY)
        """
        self.registry = registry or REGISTRY

        self.runs_total = Counter(
            "upsert_runs_total",
            "Total number of upsert runs",
            ["table_name", "dialect", "policy", "status"],
            registry=self.registry,
        )

        self.duration_seconds = Histogram(
            "upsert_duration_seconds",
            "Duration of upsert runs in seconds",
            ["table_name", "dialect"],
            buckets=(0.005, 0.01, 0.05, 0.1, 0.5, 1, 5, 10, 30, 60, 300),
            registry=self.registry,
        )

        self.candidates_total = Counter(
            "upsert_candidates_total",
            "Total number of candidate records submitted",
            ["table_name"],
            registry=self.registry,
        )

        self.rows_total = Counter(
            "upsert_rows_total",
            "Total number of rows written, by operation",
            ["table_name", "operation"],
            registry=self.registry,
        )

        self.duplicate_conflicts_total = Counter(
            "upsert_duplicate_conflicts_total",
            "Total number of candidate/incumbent conflicts that aborted a run",
            ["table_name"],
            registry=self.registry,
        )

    def record_run(
        self,
        table_name: str,
        dialect: str,
        policy: str,
        success: bool,
        duration: float,
        candidates: int,
    ) -> None:
        status = "success" if success else "failed"

        self.runs_total.labels(
            table_name=table_name,
            dialect=dialect,
            policy=policy,
            status=status,
        ).inc()

        self.duration_seconds.labels(
            table_name=table_name,
            dialect=dialect,
        ).observe(duration)

        self.candidates_total.labels(table_name=table_name).inc(candidates)

    def record_rows(self, table_name: str, operation: str, count: int) -> None:
        """
        Record rows written by one statement

        Drivers that cannot report a row count return -1; those are skipped.
        """
        if count is None or count < 0:
            return
        self.rows_total.labels(table_name=table_name, operation=operation).inc(count)

    def record_duplicates(self, table_name: str, count: int) -> None:
        self.duplicate_conflicts_total.labels(table_name=table_name).inc(count)
        logger.warning(
            f"Duplicate keys rejected: table={table_name}, count={count}"
        )
