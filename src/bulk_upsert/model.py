"""
Data model shared by the engine, the dialect strategies and the builders.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from upsert_utils.sql_safety import validate_identifier, validate_schema_table

from .errors import UnsupportedDialectError


class ConflictPolicy(str, Enum):
    """What to do with a candidate that matches an incumbent row."""

    IGNORE = "ignore"
    UPDATE = "update"
    ERROR = "error"

    @classmethod
    def parse(cls, value: "ConflictPolicy | str") -> "ConflictPolicy":
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            choices = ", ".join(p.value for p in cls)
            raise ValueError(
                f"Unknown conflict policy: {value!r} (expected one of: {choices})"
            ) from None


class Dialect(str, Enum):
    """
    SQL dialects with a registered strategy.

    Inherits from str so values compare equal to their plain names and
    serialize cleanly into logs and span attributes.
    """

    GENERIC = "generic"
    MYSQL = "mysql"
    POSTGRESQL = "postgresql"
    SQLITE = "sqlite"

    @classmethod
    def parse(cls, value: "Dialect | str") -> "Dialect":
        """
        Resolve a dialect from its name or a common adapter/driver name.

        Raises:
            UnsupportedDialectError: If the name is not recognized
        """
        if isinstance(value, cls):
            return value
        if not isinstance(value, str):
            raise UnsupportedDialectError(value)

        dialect = _ALIASES.get(value.strip().lower())
        if dialect is None:
            raise UnsupportedDialectError(value)
        return dialect

    @classmethod
    def from_cursor(cls, cursor: Any) -> "Dialect":
        """
        Detect the store's native dialect from a DB-API cursor's driver.

        Unknown drivers map to GENERIC, the per-record fallback.
        """
        module = type(cursor).__module__.lower()
        root = module.split(".")[0]

        if root in ("psycopg2", "psycopg", "pg8000", "asyncpg"):
            return cls.POSTGRESQL
        elif root in ("pymysql", "mysqldb", "mysql", "_mysql", "mariadb"):
            return cls.MYSQL
        elif root in ("sqlite3", "_sqlite3", "pysqlite2", "apsw"):
            return cls.SQLITE
        else:
            return cls.GENERIC


_ALIASES = {
    "generic": Dialect.GENERIC,
    "activerecord": Dialect.GENERIC,
    "ansi": Dialect.GENERIC,
    "mysql": Dialect.MYSQL,
    "mysql2": Dialect.MYSQL,
    "mariadb": Dialect.MYSQL,
    "pymysql": Dialect.MYSQL,
    "postgresql": Dialect.POSTGRESQL,
    "postgres": Dialect.POSTGRESQL,
    "postgis": Dialect.POSTGRESQL,
    "psycopg2": Dialect.POSTGRESQL,
    "psycopg": Dialect.POSTGRESQL,
    "sqlite": Dialect.SQLITE,
    "sqlite3": Dialect.SQLITE,
}


@dataclass(frozen=True)
class Column:
    """A table column as reported by schema introspection."""

    name: str
    sql_type: str
    primary_key: bool = False


@dataclass(frozen=True)
class TableSchema:
    """
    Target table of a reconciliation.

    Mutable columns are every non-primary-key column, in declared order; they
    are the columns written by inserts and updates. The creation and
    modification timestamp column names drive the implicit defaulting done
    by the virtual table builder; set either to None to disable it.
    """

    name: str
    columns: tuple[Column, ...]
    created_column: str | None = "created_at"
    updated_column: str | None = "updated_at"
    mutable_columns: tuple[Column, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self):
        validate_schema_table(self.name)
        columns = tuple(self.columns)
        for column in columns:
            validate_identifier(column.name)

        mutable = tuple(c for c in columns if not c.primary_key)
        if not mutable:
            raise ValueError(f"Table {self.name!r} has no mutable columns")

        object.__setattr__(self, "columns", columns)
        object.__setattr__(self, "mutable_columns", mutable)

    @property
    def primary_key(self) -> str | None:
        for column in self.columns:
            if column.primary_key:
                return column.name
        return None

    @property
    def mutable_column_names(self) -> list[str]:
        return [c.name for c in self.mutable_columns]


def normalize_keys(keys: str | Iterable[str] | None) -> tuple[str, ...]:
    """
    Coerce the caller's key argument to an ordered KeySet.

    None means "no keys"; a bare column name becomes a one-element KeySet;
    repeated names are dropped, keeping first occurrence order.

    >>> normalize_keys("station_id")
    ('station_id',)
    >>> normalize_keys(None)
    ()
    """
    if keys is None:
        return ()
    if isinstance(keys, str):
        keys = [keys]

    normalized = []
    for key in keys:
        if key is None:
            continue
        key = str(key)
        if key not in normalized:
            normalized.append(key)
    return tuple(normalized)


def read_field(record: Any, name: str) -> Any:
    """Read a field from a mapping or an attribute-bearing record; missing is None."""
    if isinstance(record, Mapping):
        return record.get(name)
    return getattr(record, name, None)
