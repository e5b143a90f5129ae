"""
Utility modules for bulk-upsert

Provides:
- logging: structured logging setup
- tracing: OpenTelemetry spans
- metrics: Prometheus metrics
- sql_safety: identifier validation and quoting
"""

__version__ = "1.0.0"
__all__ = ["logging", "tracing", "metrics", "sql_safety"]
