"""
Distributed tracing using OpenTelemetry.

Instruments reconciliation runs and the statements they send to the store.
"""

from .context import (
    add_span_attributes,
    add_span_event,
    trace_database_query,
    trace_operation,
)
from .tracer import get_tracer, initialize_tracing, shutdown_tracing

__all__ = [
    "initialize_tracing",
    "get_tracer",
    "shutdown_tracing",
    "trace_operation",
    "trace_database_query",
    "add_span_attributes",
    "add_span_event",
]
