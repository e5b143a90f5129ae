"""
Dialect → strategy registry.

Strategies register themselves with @register_strategy; the engine looks one
up once, when it is configured for a table.
"""

from typing import TYPE_CHECKING

from ..errors import UnsupportedDialectError
from ..model import Dialect

if TYPE_CHECKING:
    from .base import DialectStrategy

_STRATEGIES: dict[Dialect, type["DialectStrategy"]] = {}


def register_strategy(dialect: Dialect):
    """Class decorator registering a strategy for a dialect."""
    def decorator(cls):
        _STRATEGIES[Dialect.parse(dialect)] = cls
        return cls
    return decorator


def get_strategy_class(dialect: "Dialect | str") -> type["DialectStrategy"]:
    """
    Raises:
        UnsupportedDialectError: If no strategy is registered for the dialect
    """
    resolved = Dialect.parse(dialect)
    try:
        return _STRATEGIES[resolved]
    except KeyError:
        raise UnsupportedDialectError(dialect) from None


def registered_dialects() -> list[Dialect]:
    return sorted(_STRATEGIES, key=lambda d: d.value)
