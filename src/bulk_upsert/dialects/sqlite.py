"""
SQLite strategy.

Set-based INSERT and duplicate COUNT from the shared strategy; updates fall
back to one UPDATE per candidate. This is slow compared to the native
strategies.
"""

from ..model import Dialect
from .base import DialectStrategy
from .generic import RecordByRecordUpdateMixin
from .registry import register_strategy


@register_strategy(Dialect.SQLITE)
class SQLiteStrategy(RecordByRecordUpdateMixin, DialectStrategy):
    # TODO: SQLite >= 3.33 supports UPDATE ... FROM; switch to a set-based
    # update once older runtimes are no longer supported.
    dialect = Dialect.SQLITE
