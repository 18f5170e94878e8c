"""Live schema inspection shared by migrations and schema verification."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from sqlalchemy import Boolean, DateTime, Integer, Numeric, String, inspect, text
from sqlalchemy.engine import Connection
from sqlalchemy.types import TypeEngine

from bibstore.db.tables import (
    DOI_ENTRIES,
    SEARCH_COLUMN,
    SEARCH_INDEX,
    doi_entries,
)

# Reflected types are compared by family, so TEXT matches VARCHAR and INT matches BIGINT
TYPE_FAMILIES: tuple[type[TypeEngine], ...] = (String, Integer, Numeric, DateTime, Boolean)


def type_family(type_: type[TypeEngine]) -> type[TypeEngine]:
    """Return the generic family a SQLAlchemy type class belongs to."""
    for family in TYPE_FAMILIES:
        if issubclass(type_, family):
            return family
    return type_


def reflect_columns(connection: Connection, table: str) -> dict[str, dict[str, Any]] | None:
    """Reflect a table's columns by name, or None if the table does not exist."""
    inspector = inspect(connection)
    if not inspector.has_table(table):
        return None
    return {column["name"]: column for column in inspector.get_columns(table)}


def index_names(connection: Connection) -> set[str]:
    """Collect every named index in the current schema."""
    inspector = inspect(connection)
    names: set[str] = set()
    for table in inspector.get_table_names():
        names.update(index["name"] for index in inspector.get_indexes(table) if index["name"])
    return names


def index_name_taken(connection: Connection, name: str) -> bool:
    """
    Check whether creating an index called ``name`` would collide.

    PostgreSQL indexes share one namespace with tables, views, sequences
    and constraint-backed indexes, none of which ``get_indexes`` reports,
    so the catalog is asked directly there.
    """
    if connection.dialect.name == "postgresql":
        found = connection.execute(
            text(
                "SELECT 1 FROM pg_class c "
                "JOIN pg_namespace n ON n.oid = c.relnamespace "
                "WHERE c.relname = :name AND n.nspname = current_schema()"
            ),
            {"name": name},
        ).scalar()
        return found is not None
    return name in index_names(connection) or name in inspect(connection).get_table_names()


def shape_problems(
    connection: Connection,
    table: str,
    expected: Mapping[str, type[TypeEngine]],
    primary_key: Sequence[str],
) -> list[str] | None:
    """
    Compare an existing table against an expected column set.

    Every expected column must exist, belong to the expected type family
    and be NOT NULL. Extra columns are tolerated only when an insert that
    names just the expected columns still succeeds, i.e. they are
    generated, nullable or server defaulted.

    Returns:
        None if the table does not exist, otherwise a list of problems
        (empty when the table is compatible).
    """
    columns = reflect_columns(connection, table)
    if columns is None:
        return None

    problems: list[str] = []
    for name, type_ in expected.items():
        column = columns.get(name)
        if column is None:
            problems.append(f"missing column {name}")
            continue
        family = type_family(type_)
        if not isinstance(column["type"], family):
            problems.append(
                f"column {name} has type {column['type']}, expected {family.__name__.lower()}"
            )
        if column["nullable"]:
            problems.append(f"column {name} allows NULL")

    for name, column in columns.items():
        if name in expected:
            continue
        if column.get("computed") or column["nullable"] or column.get("default") is not None:
            continue
        problems.append(f"unexpected mandatory column {name}")

    pk = inspect(connection).get_pk_constraint(table)["constrained_columns"]
    if list(pk) != list(primary_key):
        problems.append(f"primary key is ({', '.join(pk)}), expected ({', '.join(primary_key)})")

    return problems


def find_schema_problems(connection: Connection) -> list[str]:
    """
    Verify the live database against the declared current schema.

    Returns:
        Human readable problems; an empty list means the schema is current.
    """
    base = {
        column.name: type(column.type)
        for column in doi_entries.columns
        if column.computed is None
    }
    problems = shape_problems(connection, DOI_ENTRIES, base, ["cite_key"])
    if problems is None:
        return [f"table {DOI_ENTRIES} does not exist"]

    columns = reflect_columns(connection, DOI_ENTRIES) or {}
    search = columns.get(SEARCH_COLUMN)
    if search is None:
        problems.append(f"missing column {SEARCH_COLUMN}")
    elif not search.get("computed"):
        problems.append(f"column {SEARCH_COLUMN} is not a generated column")

    if SEARCH_INDEX not in index_names(connection):
        problems.append(f"missing index {SEARCH_INDEX}")

    return problems
