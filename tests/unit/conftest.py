"""Unit test fixtures backed by a temporary SQLite database."""

from __future__ import annotations

from collections.abc import Callable, Iterator
from pathlib import Path

import pytest
from sqlalchemy import Engine, create_engine, event, inspect, text
from sqlalchemy.engine import Connection

# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
def sqlite_engine(tmp_path: Path) -> Iterator[Engine]:
    """
    Create a file-backed SQLite engine with transactional DDL.

    pysqlite commits implicitly around DDL by default; taking over BEGIN
    makes CREATE/ALTER roll back with the surrounding transaction, which
    is what the migration harness relies on.
    """
    engine = create_engine(f"sqlite:///{tmp_path / 'bibstore.sqlite3'}")

    @event.listens_for(engine, "connect")
    def _disable_pysqlite_transactions(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    yield engine
    engine.dispose()


@pytest.fixture
def connection(sqlite_engine: Engine) -> Iterator[Connection]:
    """An idle connection, as the migration harness expects."""
    with sqlite_engine.connect() as conn:
        yield conn


@pytest.fixture
def table_names(sqlite_engine: Engine) -> Callable[[], set[str]]:
    """Return committed table names, read through a separate connection."""

    def _table_names() -> set[str]:
        with sqlite_engine.connect() as conn:
            return set(inspect(conn).get_table_names())

    return _table_names


@pytest.fixture
def ledger_versions(sqlite_engine: Engine) -> Callable[[], list[int]]:
    """Return committed ledger versions, read through a separate connection."""

    def _ledger_versions() -> list[int]:
        with sqlite_engine.connect() as conn:
            if not inspect(conn).has_table("schema_migrations"):
                return []
            rows = conn.execute(text("SELECT version FROM schema_migrations ORDER BY version"))
            return [row.version for row in rows]

    return _ledger_versions
