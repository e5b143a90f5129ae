"""
Property-based tests for reconciliation using Hypothesis.

Each example builds a fresh in-memory SQLite table, seeds incumbents, runs
one reconciliation and checks the invariants of the chosen policy:
- empty keys insert every candidate under any policy
- 'ignore' never touches matching incumbents
- 'update' converges matching incumbents to the candidates
- 'error' either raises without writing or inserts everything
"""

import sqlite3

import pytest
from hypothesis import given, settings, strategies as st
from prometheus_client import CollectorRegistry

from bulk_upsert import (
    CursorExecutor,
    DuplicateKeyError,
    SQLiteIntrospector,
    Upserter,
    UpsertConfig,
)
from upsert_utils.metrics import UpsertMetrics

dialects = st.sampled_from(["sqlite", "generic"])
policies = st.sampled_from(["ignore", "update", "error"])
values = st.floats(min_value=-1e6, max_value=1e6, allow_nan=False).map(lambda v: round(v, 3))
key_sets = st.sets(st.integers(min_value=0, max_value=50), max_size=12)


def build(dialect: str, incumbents: dict[int, float]):
    conn = sqlite3.connect(":memory:")
    conn.execute("CREATE TABLE kv (id INTEGER PRIMARY KEY, k INTEGER, v REAL)")
    conn.executemany("INSERT INTO kv (k, v) VALUES (?, ?)", list(incumbents.items()))
    upserter = Upserter.from_store(
        CursorExecutor(conn.cursor()),
        "kv",
        SQLiteIntrospector(conn.cursor()),
        config=UpsertConfig(dialect=dialect),
        metrics=UpsertMetrics(registry=CollectorRegistry()),
    )
    return conn, upserter


def snapshot(conn) -> dict[int, tuple[int, float]]:
    return {row[0]: (row[1], row[2]) for row in conn.execute("SELECT id, k, v FROM kv")}


def as_records(mapping: dict[int, float]) -> list[dict]:
    return [{"k": k, "v": v} for k, v in sorted(mapping.items())]


@st.composite
def tables(draw):
    incumbent_keys = draw(key_sets)
    candidate_keys = draw(key_sets.filter(bool))
    incumbents = {k: draw(values) for k in incumbent_keys}
    candidates = {k: draw(values) for k in candidate_keys}
    return incumbents, candidates


@settings(max_examples=40, deadline=None)
@given(data=tables(), dialect=dialects, policy=policies)
def test_empty_keys_insert_every_candidate(data, dialect, policy):
    incumbents, candidates = data
    conn, upserter = build(dialect, incumbents)
    try:
        upserter.reconcile(as_records(candidates), keys=[], if_exists=policy)

        count = conn.execute("SELECT COUNT(*) FROM kv").fetchone()[0]
        assert count == len(incumbents) + len(candidates)
    finally:
        conn.close()


@settings(max_examples=40, deadline=None)
@given(data=tables(), dialect=dialects)
def test_ignore_leaves_matching_incumbents_untouched(data, dialect):
    incumbents, candidates = data
    conn, upserter = build(dialect, incumbents)
    try:
        before = snapshot(conn)

        upserter.reconcile(as_records(candidates), keys="k", if_exists="ignore")

        after = snapshot(conn)
        for row_id, row in before.items():
            assert after[row_id] == row
        inserted = {after[i][0]: after[i][1] for i in after.keys() - before.keys()}
        assert inserted == {k: v for k, v in candidates.items() if k not in incumbents}
    finally:
        conn.close()


@settings(max_examples=40, deadline=None)
@given(data=tables(), dialect=dialects)
def test_update_converges_to_candidates(data, dialect):
    incumbents, candidates = data
    conn, upserter = build(dialect, incumbents)
    try:
        upserter.reconcile(as_records(candidates), keys=["k"], if_exists="update")

        rows = dict(conn.execute("SELECT k, v FROM kv").fetchall())
        assert rows == {**incumbents, **candidates}
        count = conn.execute("SELECT COUNT(*) FROM kv").fetchone()[0]
        assert count == len(incumbents.keys() | candidates.keys())
    finally:
        conn.close()


@settings(max_examples=40, deadline=None)
@given(data=tables(), dialect=dialects)
def test_error_policy_is_all_or_nothing(data, dialect):
    incumbents, candidates = data
    conn, upserter = build(dialect, incumbents)
    try:
        before = snapshot(conn)
        overlap = incumbents.keys() & candidates.keys()

        if overlap:
            with pytest.raises(DuplicateKeyError) as exc_info:
                upserter.reconcile(as_records(candidates), keys=["k"], if_exists="error")
            assert exc_info.value.count == len(overlap)
            assert snapshot(conn) == before
        else:
            upserter.reconcile(as_records(candidates), keys=["k"], if_exists="error")
            count = conn.execute("SELECT COUNT(*) FROM kv").fetchone()[0]
            assert count == len(incumbents) + len(candidates)
    finally:
        conn.close()
