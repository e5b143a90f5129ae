"""
Logger wrapper that binds contextual fields to every message.
"""

import logging
from typing import Any


class ContextLogger:
    """
    Logger wrapper that adds the same context to all log messages

    Usage:
        logger = ContextLogger(__name__, table_name="readings", dialect="sqlite")
        logger.info("Inserted candidates", rows=42)
        # Output includes table_name, dialect and rows
    """

    def __init__(self, name: str, **context: Any):
        self.logger = logging.getLogger(name)
        self.context = context

    def bind(self, **context: Any) -> "ContextLogger":
        """Return a new ContextLogger with additional context."""
        return ContextLogger(self.logger.name, **{**self.context, **context})

    def _log(self, level: int, msg: str, *args, exc_info=None, **kwargs) -> None:
        if not self.logger.isEnabledFor(level):
            return
        extra = {**self.context, **kwargs}
        self.logger.log(level, msg, *args, exc_info=exc_info, extra=extra)

    def debug(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs) -> None:
        self._log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, exc_info=None, **kwargs) -> None:
        self._log(logging.ERROR, msg, *args, exc_info=exc_info, **kwargs)
