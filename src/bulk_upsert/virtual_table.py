"""
Virtual table builder.

Renders in-memory records as an ANSI ``SELECT ... UNION SELECT ...``
expression that behaves like a table for the duration of one statement:

          SELECT 2257 AS "station_id", '2001-01-01' AS "date", 22.5 AS "temperature"
    UNION SELECT 2257, '2001-01-02', 25.3
    UNION SELECT 2257, '2001-01-03', 25.5
"""

from collections.abc import Callable, Sequence
from datetime import UTC, datetime
from typing import Any

from .model import Column, TableSchema, read_field

RenderLiteral = Callable[[Any, Column], str]
Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(UTC)


class VirtualTableBuilder:
    """
    Builds the candidate relation for one table.

    Columns are the table's mutable columns in declared order. Two columns
    get implicit values before quoting: the creation timestamp when the
    candidate leaves it unset, and the modification timestamp always.
    """

    def __init__(
        self,
        table: TableSchema,
        render_literal: RenderLiteral,
        quote_identifier: Callable[[str], str],
        clock: Clock = utc_now,
    ):
        self.table = table
        self.render_literal = render_literal
        self.quote_identifier = quote_identifier
        self.clock = clock

    def value_for(self, record: Any, column: Column, now: datetime) -> Any:
        if column.name == self.table.updated_column:
            return now
        value = read_field(record, column.name)
        if value is None and column.name == self.table.created_column:
            return now
        return value

    def literals(self, record: Any, now: datetime | None = None) -> list[str]:
        """Literal text for each mutable column of one record."""
        if now is None:
            now = self.clock()
        return [
            self.render_literal(self.value_for(record, column, now), column)
            for column in self.table.mutable_columns
        ]

    def render(self, records: Sequence[Any]) -> str:
        if not records:
            raise ValueError("Cannot build a virtual table from an empty record list")

        now = self.clock()
        names = [self.quote_identifier(c.name) for c in self.table.mutable_columns]

        rows = []
        for index, record in enumerate(records):
            literals = self.literals(record, now)
            if index == 0:
                projection = ", ".join(
                    f"{literal} AS {name}" for literal, name in zip(literals, names)
                )
                rows.append(f"SELECT {projection}")
            else:
                rows.append(f"UNION SELECT {', '.join(literals)}")
        return "\n".join(rows)
