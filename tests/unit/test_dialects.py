"""
Unit tests for the dialect strategies: rendered SQL per dialect, the
per-record fallback and the registry.
"""

from datetime import UTC, datetime
from unittest.mock import MagicMock, call

import pytest

from bulk_upsert import Column, Dialect, TableSchema, UnsupportedDialectError, create_strategy
from bulk_upsert.dialects import (
    DialectStrategy,
    GenericStrategy,
    MySQLStrategy,
    PostgreSQLStrategy,
    SQLiteStrategy,
    get_strategy_class,
    register_strategy,
    registered_dialects,
)
from bulk_upsert.dialects import registry
from bulk_upsert.dialects.postgresql import needs_cast

FIXED_NOW = datetime(2024, 6, 1, 12, 30, 0, tzinfo=UTC)
NOW = "'2024-06-01 12:30:00'"

RECORDS = [{"k": 1, "v": 1.0}, {"k": 100, "v": 100.0}]


def squash(sql: str) -> str:
    return " ".join(sql.split())


@pytest.fixture
def kv_table():
    return TableSchema(
        "kv",
        (Column("id", "integer", primary_key=True), Column("k", "integer"), Column("v", "real")),
    )


def strategy_for(dialect, table):
    return create_strategy(dialect, table, clock=lambda: FIXED_NOW)


class TestRegistry:
    @pytest.mark.parametrize("dialect, cls", [
        (Dialect.GENERIC, GenericStrategy),
        (Dialect.MYSQL, MySQLStrategy),
        (Dialect.POSTGRESQL, PostgreSQLStrategy),
        (Dialect.SQLITE, SQLiteStrategy),
        ("PostgreSQL", PostgreSQLStrategy),
        ("ActiveRecord", GenericStrategy),
    ])
    def test_lookup(self, dialect, cls):
        assert get_strategy_class(dialect) is cls

    def test_every_dialect_is_registered(self):
        assert set(registered_dialects()) == set(Dialect)

    def test_unknown_dialect(self):
        with pytest.raises(UnsupportedDialectError):
            get_strategy_class("oracle")

    def test_dialect_without_strategy(self, monkeypatch):
        monkeypatch.setattr(registry, "_STRATEGIES", {})

        with pytest.raises(UnsupportedDialectError, match="mysql"):
            get_strategy_class("mysql")

    def test_register_strategy_replaces_entry(self, monkeypatch):
        monkeypatch.setattr(registry, "_STRATEGIES", dict(registry._STRATEGIES))

        @register_strategy(Dialect.MYSQL)
        class CustomMySQL(MySQLStrategy):
            pass

        assert get_strategy_class("mysql") is CustomMySQL

    def test_create_strategy_uses_dialect_quoter(self, kv_table):
        strategy = create_strategy("mysql", kv_table)

        assert strategy.quoter.dialect is Dialect.MYSQL
        assert strategy.table is kv_table

    def test_create_strategy_accepts_custom_quoter(self, kv_table):
        quoter = MagicMock()

        strategy = create_strategy("sqlite", kv_table, quoter=quoter)

        assert strategy.quoter is quoter


class TestSharedStatements:
    def test_insert_without_keys_inserts_everything(self, kv_table):
        sql = strategy_for("sqlite", kv_table).build_insert(RECORDS, ())

        assert squash(sql) == squash('''
            INSERT INTO "kv" ("k", "v")
            SELECT candidates.*
            FROM ( SELECT 1 AS "k", 1.0 AS "v" UNION SELECT 100, 100.0 ) AS candidates
        ''')

    def test_insert_with_keys_anti_joins_incumbents(self, kv_table):
        sql = strategy_for("sqlite", kv_table).build_insert(RECORDS, ("k",))

        assert squash(sql) == squash('''
            INSERT INTO "kv" ("k", "v")
            SELECT candidates.*
            FROM ( SELECT 1 AS "k", 1.0 AS "v" UNION SELECT 100, 100.0 ) AS candidates
            LEFT JOIN "kv" AS incumbents ON incumbents."k" = candidates."k"
            WHERE incumbents."id" IS NULL
        ''')

    def test_insert_without_primary_key_tests_first_key(self):
        table = TableSchema("kv", (Column("k", "integer"), Column("v", "real")))

        sql = strategy_for("sqlite", table).build_insert(RECORDS, ("v", "k"))

        assert 'ON incumbents."v" = candidates."v" AND incumbents."k" = candidates."k"' in sql
        assert sql.endswith('WHERE incumbents."v" IS NULL')

    def test_duplicate_count(self, kv_table):
        sql = strategy_for("mysql", kv_table).build_duplicate_count(RECORDS, ("k", "v"))

        assert squash(sql) == squash('''
            SELECT COUNT(*) AS count
            FROM `kv`
            INNER JOIN ( SELECT 1 AS `k`, 1.0 AS `v` UNION SELECT 100, 100.0 ) AS candidates
            ON `kv`.`k` = candidates.`k` AND `kv`.`v` = candidates.`v`
        ''')

    def test_schema_qualified_table(self):
        table = TableSchema("weather.kv", (Column("k", "integer"), Column("v", "real")))

        sql = strategy_for("postgresql", table).build_duplicate_count(RECORDS, ("k",))

        assert 'FROM "weather"."kv"' in sql
        assert 'ON "weather"."kv"."k" = candidates."k"' in sql

    def test_invalid_key_name_is_rejected(self, kv_table):
        with pytest.raises(ValueError, match="Invalid SQL identifier"):
            strategy_for("sqlite", kv_table).build_insert(RECORDS, ("k; DROP TABLE kv",))

    def test_base_strategy_has_no_set_based_update(self, kv_table):
        with pytest.raises(NotImplementedError):
            DialectStrategy(kv_table).build_update(RECORDS, ("k",))

    @pytest.mark.parametrize("dialect", ["generic", "sqlite"])
    def test_record_by_record_dialects_have_no_set_based_update(self, kv_table, dialect):
        with pytest.raises(NotImplementedError):
            strategy_for(dialect, kv_table).build_update(RECORDS, ("k",))


class TestMySQLStrategy:
    def test_update_joins_candidates_and_sets_non_key_columns(self, kv_table):
        sql = strategy_for("mysql", kv_table).build_update(RECORDS, ("k",))

        assert squash(sql) == squash('''
            UPDATE `kv`
            JOIN ( SELECT 1 AS `k`, 1.0 AS `v` UNION SELECT 100, 100.0 ) AS candidates
            SET `kv`.`v` = candidates.`v`
            WHERE `kv`.`k` = candidates.`k`
        ''')

    def test_update_with_every_column_as_key_is_skipped(self, kv_table):
        strategy = strategy_for("mysql", kv_table)
        executor = MagicMock()

        assert strategy.build_update(RECORDS, ("k", "v")) is None
        assert strategy.update_existing(executor, RECORDS, ("k", "v")) == 0
        executor.execute.assert_not_called()

    def test_update_existing_executes_statement(self, kv_table):
        strategy = strategy_for("mysql", kv_table)
        executor = MagicMock()
        executor.execute.return_value = 3

        assert strategy.update_existing(executor, RECORDS, ("k",)) == 3
        executor.execute.assert_called_once_with(strategy.build_update(RECORDS, ("k",)))


class TestPostgreSQLStrategy:
    def test_update_sets_every_mutable_column_from_candidates(self, kv_table):
        sql = strategy_for("postgresql", kv_table).build_update(RECORDS, ("k",))

        assert squash(sql) == squash('''
            UPDATE "kv"
            SET ("k", "v") = ROW(candidates."k", candidates."v")
            FROM ( SELECT 1 AS "k", 1.0 AS "v" UNION SELECT 100, 100.0 ) AS candidates
            WHERE "kv"."k" = candidates."k"
        ''')

    def test_strings_timestamps_and_nulls_are_cast(self, readings_table):
        strategy = create_strategy("postgresql", readings_table, clock=lambda: FIXED_NOW)

        literals = strategy.builder.literals({"station_id": 7, "name": "O'Hare", "temperature": None})

        assert literals == [
            "7",
            "CAST ('O''Hare' AS character varying(255))",
            "CAST (NULL AS double precision)",
            f"CAST ({NOW} AS timestamp without time zone)",
            f"CAST ({NOW} AS timestamp without time zone)",
        ]

    def test_plain_numbers_are_not_cast(self, readings_table):
        strategy = create_strategy("postgresql", readings_table)

        assert strategy.render_literal(2.5, readings_table.columns[3]) == "2.5"

    @pytest.mark.parametrize("sql_type", ["public.mood", "pg_catalog._int4"])
    def test_schema_qualified_types_are_cast(self, sql_type):
        column = Column("mood", sql_type)
        strategy = create_strategy("postgresql", TableSchema("kv", (column,)))

        assert strategy.render_literal(None, column) == f"CAST (NULL AS {sql_type})"
        assert strategy.render_literal("happy", column) == f"CAST ('happy' AS {sql_type})"

    @pytest.mark.parametrize("sql_type", ["text); DROP TABLE kv; --", "public.mood; DROP TABLE kv", "a.b.mood"])
    def test_rejects_suspicious_sql_type(self, sql_type):
        column = Column("name", sql_type)
        strategy = create_strategy("postgresql", TableSchema("kv", (column,)))

        with pytest.raises(ValueError, match="Invalid SQL type"):
            strategy.render_literal("x", column)

    @pytest.mark.parametrize("value, sql_type, expected", [
        (None, "integer", True),
        (1, "integer", False),
        ("x", "text", True),
        ("x", "character varying", True),
        ("x", "varchar(20)", True),
        (FIXED_NOW, "timestamp with time zone", True),
        (1.5, "numeric(9, 6)", False),
        (None, "", False),
        ("happy", "public.mood", True),
        (None, "pg_catalog._int4", True),
    ])
    def test_needs_cast(self, value, sql_type, expected):
        assert needs_cast(value, Column("c", sql_type)) is expected


class TestGenericStrategy:
    @pytest.fixture
    def strategy(self, kv_table):
        return strategy_for("generic", kv_table)

    def test_record_statements(self, strategy):
        record = {"k": 1, "v": 1.0}

        assert strategy.build_record_update(record, ("k",), FIXED_NOW) == 'UPDATE "kv"\nSET "v" = 1.0\nWHERE "k" = 1'
        assert strategy.build_record_count(record, ("k",), FIXED_NOW) == 'SELECT COUNT(*) AS count\nFROM "kv"\nWHERE "k" = 1'
        assert strategy.build_record_insert(record, FIXED_NOW) == 'INSERT INTO "kv" ("k", "v")\nVALUES (1, 1.0)'

    def test_match_predicate_with_several_keys(self, strategy):
        predicate = strategy.match_predicate({"k": 1, "v": None}, ("k", "v"), FIXED_NOW)

        assert predicate == '"k" = 1 AND "v" = NULL'

    def test_update_runs_one_statement_per_candidate(self, strategy):
        executor = MagicMock()
        executor.execute.side_effect = [1, 0]

        updated = strategy.update_existing(executor, RECORDS, ("k",))

        assert updated == 1
        assert executor.execute.call_args_list == [
            call('UPDATE "kv"\nSET "v" = 1.0\nWHERE "k" = 1'),
            call('UPDATE "kv"\nSET "v" = 100.0\nWHERE "k" = 100'),
        ]

    def test_update_with_every_column_as_key_is_skipped(self, strategy):
        executor = MagicMock()

        assert strategy.update_existing(executor, RECORDS, ("k", "v")) == 0
        executor.execute.assert_not_called()

    def test_count_sums_over_the_whole_batch(self, strategy):
        executor = MagicMock()
        executor.query_scalar.side_effect = [2, None, 1]

        count = strategy.count_existing(executor, RECORDS + [{"k": 5, "v": 5.0}], ("k",))

        assert count == 3
        assert executor.query_scalar.call_count == 3

    def test_insert_checks_every_candidate_before_writing(self, strategy):
        executor = MagicMock()
        events = []
        executor.query_scalar.side_effect = lambda sql: events.append("check") or (1 if sql.endswith('"k" = 1') else 0)
        executor.execute.side_effect = lambda sql: events.append("insert") or 1

        inserted = strategy.insert_new(executor, RECORDS, ("k",))

        assert inserted == 1
        assert events == ["check", "check", "insert"]
        executor.execute.assert_called_once_with('INSERT INTO "kv" ("k", "v")\nVALUES (100, 100.0)')

    def test_insert_without_keys_skips_existence_checks(self, strategy):
        executor = MagicMock()
        executor.execute.return_value = 1

        assert strategy.insert_new(executor, RECORDS, ()) == 2
        executor.query_scalar.assert_not_called()

    def test_identical_candidates_are_written_once(self, strategy):
        executor = MagicMock()
        executor.execute.return_value = 1
        executor.query_scalar.return_value = 1

        assert strategy.insert_new(executor, [RECORDS[0]] * 2, ()) == 1
        executor.execute.assert_called_once_with('INSERT INTO "kv" ("k", "v")\nVALUES (1, 1.0)')
        assert strategy.count_existing(executor, [RECORDS[0]] * 2, ("k",)) == 1

    def test_unreported_rowcounts_count_as_zero(self, strategy):
        executor = MagicMock()
        executor.execute.return_value = -1

        assert strategy.insert_new(executor, RECORDS, ()) == 0


class TestSQLiteStrategy:
    def test_update_is_per_record(self, kv_table):
        strategy = strategy_for("sqlite", kv_table)
        executor = MagicMock()
        executor.execute.return_value = 1

        assert strategy.update_existing(executor, RECORDS, ("k",)) == 2
        assert executor.execute.call_count == 2

    def test_insert_and_count_are_set_based(self, kv_table):
        strategy = strategy_for("sqlite", kv_table)
        executor = MagicMock()
        executor.query_scalar.return_value = 4
        executor.execute.return_value = 2

        assert strategy.count_existing(executor, RECORDS, ("k",)) == 4
        assert strategy.insert_new(executor, RECORDS, ("k",)) == 2
        executor.query_scalar.assert_called_once()
        executor.execute.assert_called_once()
        assert "INNER JOIN" in executor.query_scalar.call_args[0][0]
