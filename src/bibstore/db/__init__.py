"""Database layer."""

from .base import create_engine, metadata
from .inspection import (
    find_schema_problems,
    index_name_taken,
    index_names,
    reflect_columns,
    shape_problems,
)
from .session import DatabaseManager
from .tables import (
    BASE_COLUMNS,
    DOI_ENTRIES,
    SEARCH_COLUMN,
    SEARCH_INDEX,
    SEARCH_SOURCE_COLUMNS,
    doi_entries,
    ledger_table,
    search_vector_sql,
)

__all__ = [
    # Base
    "create_engine",
    "metadata",
    # Tables
    "BASE_COLUMNS",
    "DOI_ENTRIES",
    "SEARCH_COLUMN",
    "SEARCH_INDEX",
    "SEARCH_SOURCE_COLUMNS",
    "doi_entries",
    "ledger_table",
    "search_vector_sql",
    # Inspection
    "find_schema_problems",
    "index_name_taken",
    "index_names",
    "reflect_columns",
    "shape_problems",
    # Session
    "DatabaseManager",
]
