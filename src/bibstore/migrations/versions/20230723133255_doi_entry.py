"""Create the doi_entries table.

Version: 20230723133255
Create Date: 2023-07-23

Idempotent: an existing compatible table is left untouched, an
incompatible one raises SchemaConflict.
"""

import logging

import sqlalchemy as sa
from alembic import op

from bibstore.core.exceptions import SchemaConflict
from bibstore.db.inspection import shape_problems

logger = logging.getLogger(__name__)

TABLE = "doi_entries"

COLUMNS = (
    ("cite_key", sa.Text),
    ("bib_type", sa.Text),
    ("doi", sa.Text),
    ("url", sa.Text),
    ("author", sa.Text),
    ("title", sa.Text),
    ("journal", sa.Text),
    ("publisher", sa.Text),
    ("volume", sa.Integer),
    ("number", sa.Integer),
    ("month", sa.Text),
    ("year", sa.Integer),
)


def upgrade() -> None:
    problems = shape_problems(op.get_bind(), TABLE, dict(COLUMNS), ["cite_key"])
    if problems:
        raise SchemaConflict(TABLE, problems)
    if problems is not None:
        logger.info(f"Table {TABLE} already exists, nothing to do")
        return

    op.create_table(
        TABLE,
        *(
            sa.Column(name, type_, primary_key=name == "cite_key", nullable=False)
            for name, type_ in COLUMNS
        ),
    )
