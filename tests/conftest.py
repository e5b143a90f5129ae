"""
Pytest configuration and shared fixtures.

Integration fixtures use an in-memory SQLite database with a table shaped
like a typical model: integer primary key, a mix of column types and the two
timestamp columns.
"""

import sqlite3
from datetime import UTC, datetime

import pytest
from prometheus_client import CollectorRegistry

from bulk_upsert import Column, CursorExecutor, SQLiteIntrospector, TableSchema, introspect_table
from upsert_utils.metrics import UpsertMetrics

FIXED_NOW = datetime(2024, 6, 1, 12, 30, 0, tzinfo=UTC)

CREATE_TEST_RECORDS = """
    CREATE TABLE test_records (
        id INTEGER PRIMARY KEY AUTOINCREMENT,
        f_integer INTEGER,
        f_string VARCHAR(255),
        f_float FLOAT,
        f_decimal DECIMAL(9, 6),
        f_datetime DATETIME,
        created_at DATETIME,
        updated_at DATETIME
    )
"""


@pytest.fixture
def fixed_clock():
    return lambda: FIXED_NOW


@pytest.fixture
def metrics() -> UpsertMetrics:
    """Metrics on a private registry so tests never collide."""
    return UpsertMetrics(registry=CollectorRegistry())


@pytest.fixture
def readings_table() -> TableSchema:
    return TableSchema(
        "readings",
        (
            Column("id", "integer", primary_key=True),
            Column("station_id", "integer"),
            Column("name", "character varying(255)"),
            Column("temperature", "double precision"),
            Column("created_at", "timestamp without time zone"),
            Column("updated_at", "timestamp without time zone"),
        ),
    )


@pytest.fixture
def connection():
    conn = sqlite3.connect(":memory:")
    conn.execute(CREATE_TEST_RECORDS)
    conn.commit()
    yield conn
    conn.close()


@pytest.fixture
def executor(connection) -> CursorExecutor:
    return CursorExecutor(connection.cursor(), table_hint="test_records")


@pytest.fixture
def test_records_table(connection) -> TableSchema:
    return introspect_table(SQLiteIntrospector(connection.cursor()), "test_records")
