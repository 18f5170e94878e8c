"""Tests for live schema inspection, run against SQLite."""

from __future__ import annotations

import pytest
from sqlalchemy import BigInteger, Integer, String, Text
from sqlalchemy.dialects.postgresql import TSVECTOR

from bibstore.db.inspection import (
    find_schema_problems,
    index_name_taken,
    index_names,
    shape_problems,
    type_family,
)
from bibstore.migrations import MigrationRunner


class TestTypeFamily:
    """Tests for grouping reflected types."""

    @pytest.mark.parametrize(
        "type_,family",
        [
            (Text, String),
            (String, String),
            (BigInteger, Integer),
            (Integer, Integer),
            (TSVECTOR, TSVECTOR),  # No family, returned as is
        ],
    )
    def test_families(self, type_, family):
        assert type_family(type_) is family


class TestShapeProblems:
    """Tests for comparing tables against an expected shape."""

    def test_missing_table(self, connection):
        with connection.begin():
            assert shape_problems(connection, "widgets", {"id": Integer}, ["id"]) is None

    def test_compatible_table(self, connection):
        with connection.begin():
            connection.exec_driver_sql(
                "CREATE TABLE widgets (id BIGINT NOT NULL PRIMARY KEY, "
                "label VARCHAR(40) NOT NULL, note TEXT)"
            )
            problems = shape_problems(
                connection, "widgets", {"id": Integer, "label": Text}, ["id"]
            )

        assert problems == []

    def test_reports_every_problem(self, connection):
        with connection.begin():
            connection.exec_driver_sql(
                "CREATE TABLE widgets (id TEXT NOT NULL, label TEXT, PRIMARY KEY (id))"
            )
            problems = shape_problems(
                connection,
                "widgets",
                {"id": Integer, "label": Text, "size": Integer},
                ["label"],
            )

        assert problems == [
            "column id has type TEXT, expected integer",
            "column label allows NULL",
            "missing column size",
            "primary key is (id), expected (label)",
        ]


class TestFindSchemaProblems:
    """Tests for verifying the declared schema."""

    def test_empty_database(self, connection):
        with connection.begin():
            assert find_schema_problems(connection) == ["table doi_entries does not exist"]

    def test_base_table_only(self, connection, doi_entry_migration):
        MigrationRunner([doi_entry_migration]).apply_pending(connection)

        with connection.begin():
            problems = find_schema_problems(connection)

        assert problems == ["missing column search", "missing index idx_search"]

    def test_search_not_generated(self, connection, doi_entry_migration):
        MigrationRunner([doi_entry_migration]).apply_pending(connection)
        with connection.begin():
            connection.exec_driver_sql("ALTER TABLE doi_entries ADD COLUMN search TEXT")
            connection.exec_driver_sql("CREATE INDEX idx_search ON doi_entries (search)")

        with connection.begin():
            problems = find_schema_problems(connection)

        assert problems == ["column search is not a generated column"]

    def test_index_names_span_tables(self, connection):
        with connection.begin():
            connection.exec_driver_sql("CREATE TABLE a (x INTEGER)")
            connection.exec_driver_sql("CREATE TABLE b (y INTEGER)")
            connection.exec_driver_sql("CREATE INDEX ix_a ON a (x)")
            connection.exec_driver_sql("CREATE INDEX ix_b ON b (y)")

            assert index_names(connection) == {"ix_a", "ix_b"}

    def test_index_name_taken(self, connection):
        with connection.begin():
            connection.exec_driver_sql("CREATE TABLE a (x INTEGER)")
            connection.exec_driver_sql("CREATE INDEX ix_a ON a (x)")

            assert index_name_taken(connection, "ix_a")
            assert index_name_taken(connection, "a")
            assert not index_name_taken(connection, "idx_search")
