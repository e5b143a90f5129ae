"""
Span context managers.
"""

from contextlib import contextmanager

from opentelemetry import trace

from .tracer import get_tracer


@contextmanager
def trace_operation(
    operation_name: str,
    kind: trace.SpanKind = trace.SpanKind.INTERNAL,
    **attributes
):
    """
    Run the enclosed block inside a new span.

    Attribute values are stringified. Exceptions are recorded on the span
    and re-raised unchanged.

    Example:
        >>> with trace_operation("upsert.reconcile", table="readings") as span:
        ...     result = upserter.reconcile(records, keys=["station_id"])
        ...     span.set_attribute("rows_inserted", result.rows_inserted)
    """
    tracer = get_tracer()

    with tracer.start_as_current_span(
        operation_name,
        kind=kind,
        record_exception=False,
        set_status_on_exception=False,
    ) as span:
        for key, value in attributes.items():
            span.set_attribute(key, str(value))

        try:
            yield span
        except Exception as e:
            span.set_attribute("error", True)
            span.set_attribute("error.type", type(e).__name__)
            span.set_attribute("error.message", str(e))
            span.record_exception(e)
            span.set_status(trace.Status(trace.StatusCode.ERROR, str(e)))
            raise


def trace_database_query(operation: str, table: str, system: str = "unknown"):
    """
    Client span for a single statement sent to the store.

    Example:
        >>> with trace_database_query("INSERT", "readings", "sqlite"):
        ...     cursor.execute(sql)
    """
    return trace_operation(
        f"db.{operation.lower()}",
        kind=trace.SpanKind.CLIENT,
        **{
            "db.operation": operation,
            "db.sql.table": table,
            "db.system": system,
        }
    )


def add_span_attributes(**attributes) -> None:
    """Add attributes to the current span, if one is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        for key, value in attributes.items():
            current_span.set_attribute(key, str(value))


def add_span_event(name: str, **attributes) -> None:
    """Add an event to the current span, if one is recording."""
    current_span = trace.get_current_span()
    if current_span.is_recording():
        current_span.add_event(name, attributes={k: str(v) for k, v in attributes.items()})
