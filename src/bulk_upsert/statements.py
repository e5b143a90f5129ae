"""
Clause-based SQL statement assembly.

Strategies describe a statement as an ordered list of clauses (keyword plus
body) and render it to text once, at the end. Identifiers are always passed
through a quoting function, which validates them.
"""

from collections.abc import Callable, Sequence
from dataclasses import dataclass, field

QuoteFn = Callable[[str], str]


@dataclass(frozen=True)
class Clause:
    keyword: str
    body: str = ""

    def render(self) -> str:
        return f"{self.keyword} {self.body}" if self.body else self.keyword


@dataclass
class Statement:
    """
    An SQL statement under construction.

    >>> Statement().select("COUNT(*)").from_("readings").render()
    'SELECT COUNT(*)\\nFROM readings'
    """

    clauses: list[Clause] = field(default_factory=list)

    def add(self, keyword: str, body: str = "") -> "Statement":
        self.clauses.append(Clause(keyword, body))
        return self

    def insert_into(self, table: str, columns: str) -> "Statement":
        return self.add("INSERT INTO", f"{table} ({columns})")

    def update(self, table: str) -> "Statement":
        return self.add("UPDATE", table)

    def select(self, projection: str) -> "Statement":
        return self.add("SELECT", projection)

    def from_(self, source: str) -> "Statement":
        return self.add("FROM", source)

    def join(self, source: str, on: str | None = None, kind: str = "JOIN") -> "Statement":
        body = f"{source} ON {on}" if on else source
        return self.add(kind, body)

    def set(self, assignments: str) -> "Statement":
        return self.add("SET", assignments)

    def values(self, literals: Sequence[str]) -> "Statement":
        return self.add("VALUES", f"({', '.join(literals)})")

    def where(self, predicate: str) -> "Statement":
        return self.add("WHERE", predicate)

    def render(self) -> str:
        return "\n".join(clause.render() for clause in self.clauses)

    def __str__(self) -> str:
        return self.render()


def subquery(sql: str, alias: str) -> str:
    """Wrap a SELECT so it can stand where a table name is expected."""
    return f"(\n{sql}\n) AS {alias}"


def column_list(names: Sequence[str], quote: QuoteFn, qualifier: str | None = None) -> str:
    """Comma-separated, quoted column names, optionally qualified."""
    prefix = f"{qualifier}." if qualifier else ""
    return ", ".join(f"{prefix}{quote(name)}" for name in names)


def key_equality(left: str, right: str, keys: Sequence[str], quote: QuoteFn) -> str:
    """
    Join predicate matching rows of two relations on every key column.

    >>> key_equality("incumbents", "candidates", ["a", "b"], lambda n: n)
    'incumbents.a = candidates.a AND incumbents.b = candidates.b'
    """
    return " AND ".join(
        f"{left}.{quote(key)} = {right}.{quote(key)}" for key in keys
    )


def assignments(target: str | None, source: str, names: Sequence[str], quote: QuoteFn) -> str:
    """``target.c = source.c, ...`` for an UPDATE's SET clause."""
    prefix = f"{target}." if target else ""
    return ", ".join(
        f"{prefix}{quote(name)} = {source}.{quote(name)}" for name in names
    )
