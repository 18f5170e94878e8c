"""Table definitions for the current schema.

These describe the schema the bundled migrations produce. They are used
to read and write rows with SQLAlchemy Core and to verify a live
database; the migrations themselves never call ``create_all``.
"""

from sqlalchemy import (
    BigInteger,
    Column,
    Computed,
    DateTime,
    Index,
    Integer,
    MetaData,
    Table,
    Text,
    func,
)
from sqlalchemy.dialects.postgresql import TSVECTOR

from bibstore.db.base import metadata

DOI_ENTRIES = "doi_entries"
SEARCH_COLUMN = "search"
SEARCH_INDEX = "idx_search"
SEARCH_CONFIG = "simple"

# Fields folded into the search vector, in concatenation order
SEARCH_SOURCE_COLUMNS = ("title", "author", "journal", "publisher")

BASE_COLUMNS = (
    "cite_key",
    "bib_type",
    "doi",
    "url",
    "author",
    "title",
    "journal",
    "publisher",
    "volume",
    "number",
    "month",
    "year",
)

DEFAULT_LEDGER_TABLE = "schema_migrations"


def search_vector_sql(config: str = SEARCH_CONFIG) -> str:
    """Return the generation expression of the ``search`` column."""
    return " || ' ' || ".join(
        f"to_tsvector('{config}', {column})" for column in SEARCH_SOURCE_COLUMNS
    )


doi_entries = Table(
    DOI_ENTRIES,
    metadata,
    Column("cite_key", Text, primary_key=True, nullable=False),
    Column("bib_type", Text, nullable=False),
    Column("doi", Text, nullable=False),
    Column("url", Text, nullable=False),
    Column("author", Text, nullable=False),
    Column("title", Text, nullable=False),
    Column("journal", Text, nullable=False),
    Column("publisher", Text, nullable=False),
    Column("volume", Integer, nullable=False),
    Column("number", Integer, nullable=False),
    Column("month", Text, nullable=False),
    Column("year", Integer, nullable=False),
    Column(SEARCH_COLUMN, TSVECTOR, Computed(search_vector_sql(), persisted=True)),
    Index(SEARCH_INDEX, SEARCH_COLUMN, postgresql_using="gin"),
)


def ledger_table(name: str = DEFAULT_LEDGER_TABLE) -> Table:
    """Build the append-only migration ledger table under ``name``."""
    return Table(
        name,
        MetaData(),
        Column("version", BigInteger, primary_key=True, autoincrement=False),
        Column("description", Text, nullable=False),
        Column("checksum", Text, nullable=False),
        Column(
            "applied_at",
            DateTime(timezone=True),
            nullable=False,
            server_default=func.now(),
        ),
        Column("execution_time_ms", Integer, nullable=False),
    )
