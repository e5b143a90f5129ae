"""
Structured logging for bulk-upsert

Usage:
    from upsert_utils.logging import setup_logging, get_logger

    # Once, at application startup
    setup_logging(level="INFO", json_format=True)

    logger = get_logger(__name__)
    logger.info("Upsert finished", extra={"table_name": "readings", "rows_inserted": 12})
"""

from .config import configure_from_env, get_logger, setup_logging
from .formatters import ConsoleFormatter, JSONFormatter
from .handlers import ContextLogger

__all__ = [
    "setup_logging",
    "get_logger",
    "configure_from_env",
    "JSONFormatter",
    "ConsoleFormatter",
    "ContextLogger",
]
