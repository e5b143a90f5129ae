"""
SQL identifier validation and quoting.

Every table and column name that ends up in a generated statement passes
through quote_identifier(), so only plain ASCII identifiers can reach the store.
"""

import re


# Strict ASCII-only patterns for SQL identifiers
VALID_IDENTIFIER = re.compile(r"^[a-zA-Z_][a-zA-Z0-9_]*$")
VALID_SCHEMA_TABLE = re.compile(
    r"^[a-zA-Z_][a-zA-Z0-9_]*(\.[a-zA-Z_][a-zA-Z0-9_]*)?$"
)

# Dialects that quote identifiers with backticks; everything else uses
# ANSI double quotes.
BACKTICK_DIALECTS = frozenset({"mysql"})


def validate_identifier(identifier: str) -> None:
    """
    Validate a SQL identifier (table name, column name, alias).

    Args:
        identifier: The identifier to validate

    Raises:
        ValueError: If the identifier contains invalid characters
    """
    if not identifier:
        raise ValueError("SQL identifier cannot be empty")

    if not isinstance(identifier, str) or not VALID_IDENTIFIER.match(identifier):
        raise ValueError(
            f"Invalid SQL identifier: {identifier!r}. "
            "Only ASCII letters, digits, and underscores are allowed, "
            "and must start with a letter or underscore."
        )


def validate_schema_table(schema_table: str) -> None:
    """
    Validate a table name that may carry a schema prefix.

    Raises:
        ValueError: If the identifier format is invalid
    """
    if not schema_table:
        raise ValueError("Schema.table identifier cannot be empty")

    if not isinstance(schema_table, str) or not VALID_SCHEMA_TABLE.match(schema_table):
        raise ValueError(
            f"Invalid schema.table identifier: {schema_table!r}. "
            "Only ASCII letters, digits, and underscores are allowed."
        )


def _wrap(identifier: str, dialect: str) -> str:
    if dialect in BACKTICK_DIALECTS:
        return f"`{identifier}`"
    return f'"{identifier}"'


def quote_identifier(identifier: str, dialect: str) -> str:
    """
    Safely quote a SQL identifier after validation.

    Args:
        identifier: Column name or alias
        dialect: Dialect name ('generic', 'mysql', 'postgresql', 'sqlite')

    Returns:
        Quoted identifier safe for use in SQL

    Raises:
        ValueError: If the identifier is invalid
    """
    validate_identifier(identifier)
    return _wrap(identifier, dialect)


def quote_schema_table(schema_table: str, dialect: str) -> str:
    """
    Safely quote a table name, quoting schema and table separately.

    Example:
        >>> quote_schema_table("public.readings", "postgresql")
        '"public"."readings"'
        >>> quote_schema_table("readings", "mysql")
        '`readings`'
    """
    validate_schema_table(schema_table)
    return ".".join(_wrap(part, dialect) for part in schema_table.split("."))
