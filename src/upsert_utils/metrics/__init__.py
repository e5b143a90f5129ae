"""
Prometheus metrics for bulk-upsert

Usage:
    from upsert_utils.metrics import default_metrics

    metrics = default_metrics()
    metrics.record_run("readings", "postgresql", "update", success=True,
                       duration=0.42, candidates=1000)
"""

import threading

from prometheus_client import CollectorRegistry, start_http_server

from .upsert import UpsertMetrics

_default: UpsertMetrics | None = None
_lock = threading.Lock()


def default_metrics() -> UpsertMetrics:
    """
    Return the process-wide UpsertMetrics bound to the global registry.

    Collectors can only be registered once per registry, so every Upserter
    without an explicit metrics object shares this instance.
    """
    global _default

    with _lock:
        if _default is None:
            _default = UpsertMetrics()
        return _default


def start_metrics_server(port: int = 9091, registry: CollectorRegistry | None = None) -> None:
    """Expose /metrics over HTTP for applications that do not already do so."""
    if registry is None:
        start_http_server(port)
    else:
        start_http_server(port, registry=registry)


__all__ = [
    "UpsertMetrics",
    "default_metrics",
    "start_metrics_server",
]
