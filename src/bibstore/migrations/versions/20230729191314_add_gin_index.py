"""Add a generated full-text search column and its GIN index.

Version: 20230729191314
Create Date: 2023-07-29

Depends on 20230723133255_doi_entry. Name collisions are reported, not
skipped, so a half-migrated database never passes for a migrated one.
"""

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

from bibstore.core.exceptions import (
    ColumnExists,
    IndexExists,
    SchemaDependencyError,
    UnsupportedDialect,
)
from bibstore.db.inspection import index_name_taken, reflect_columns

TABLE = "doi_entries"
COLUMN = "search"
INDEX = "idx_search"
SOURCE_COLUMNS = ("title", "author", "journal", "publisher")

# 'simple' lowercases and splits on non-word characters, no stemming or stop words
SEARCH_EXPRESSION = " || ' ' || ".join(
    f"to_tsvector('simple', {column})" for column in SOURCE_COLUMNS
)


def upgrade() -> None:
    bind = op.get_bind()

    columns = reflect_columns(bind, TABLE)
    if columns is None:
        raise SchemaDependencyError(TABLE, [f"table {TABLE}"])
    missing = [f"column {name}" for name in SOURCE_COLUMNS if name not in columns]
    if missing:
        raise SchemaDependencyError(TABLE, missing)

    if COLUMN in columns:
        raise ColumnExists(TABLE, COLUMN)
    if index_name_taken(bind, INDEX):
        raise IndexExists(INDEX)

    if bind.dialect.name != "postgresql":
        raise UnsupportedDialect(bind.dialect.name, "tsvector generated column with GIN index")

    op.add_column(
        TABLE,
        sa.Column(
            COLUMN,
            postgresql.TSVECTOR(),
            sa.Computed(SEARCH_EXPRESSION, persisted=True),
        ),
    )
    op.create_index(INDEX, TABLE, [COLUMN], postgresql_using="gin")
