"""
Quoting service: renders Python values as SQL literal text.

Candidate records are inlined into statements as literals (there are no bound
parameters in a virtual table), so every value goes through one of these
quoters. Strategies may wrap the result further, e.g. with a CAST.
"""

import math
from datetime import UTC, date, datetime, time
from decimal import Decimal
from typing import Any

from psycopg2.extensions import adapt

from .model import Column, Dialect

# Dialects with a native boolean literal
BOOLEAN_LITERAL_DIALECTS = frozenset({Dialect.POSTGRESQL, Dialect.MYSQL})


def _quote_string(text: str, dialect: Dialect) -> str:
    escaped = text.replace("'", "''")
    if dialect == Dialect.MYSQL:
        # MySQL treats backslash as an escape character inside strings
        escaped = escaped.replace("\\", "\\\\")
    return f"'{escaped}'"


def _format_datetime(value: datetime) -> str:
    if value.tzinfo is not None:
        value = value.astimezone(UTC).replace(tzinfo=None)
    return value.isoformat(sep=" ")


class LiteralQuoter:
    """
    Default quoting service for a dialect.

    Timezone-aware datetimes are stored as naive UTC, matching how the
    timestamp columns are defaulted.
    """

    def __init__(self, dialect: Dialect | str = Dialect.GENERIC):
        self.dialect = Dialect.parse(dialect)

    def literal(self, value: Any, column: Column | None = None) -> str:
        if value is None:
            return "NULL"

        if isinstance(value, bool):
            if self.dialect in BOOLEAN_LITERAL_DIALECTS:
                return "TRUE" if value else "FALSE"
            return "1" if value else "0"

        if isinstance(value, int):
            return str(value)

        if isinstance(value, float):
            if not math.isfinite(value):
                raise ValueError(f"Cannot render non-finite float {value!r} as SQL")
            return repr(value)

        if isinstance(value, Decimal):
            if not value.is_finite():
                raise ValueError(f"Cannot render non-finite decimal {value!r} as SQL")
            return format(value, "f")

        if isinstance(value, str):
            return _quote_string(value, self.dialect)

        if isinstance(value, datetime):
            return f"'{_format_datetime(value)}'"

        if isinstance(value, (date, time)):
            return f"'{value.isoformat()}'"

        if isinstance(value, (bytes, bytearray, memoryview)):
            hex_digits = bytes(value).hex()
            if self.dialect == Dialect.POSTGRESQL:
                return f"decode('{hex_digits}', 'hex')"
            return f"X'{hex_digits}'"

        # UUIDs, enums and the like go in as their text form
        return _quote_string(str(value), self.dialect)


class PsycopgQuoter:
    """
    Quoting service backed by psycopg2's own adapters.

    Pass the live connection so string literals are encoded with the
    connection's client encoding.
    """

    def __init__(self, connection: Any = None, encoding: str = "utf-8"):
        self.connection = connection
        self.encoding = encoding

    def literal(self, value: Any, column: Column | None = None) -> str:
        adapted = adapt(value)
        if self.connection is not None and hasattr(adapted, "prepare"):
            adapted.prepare(self.connection)
        return adapted.getquoted().decode(self.encoding)
