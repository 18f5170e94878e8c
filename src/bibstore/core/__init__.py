"""Core types, models, and exceptions."""

from .exceptions import (
    ApplyFailure,
    BibstoreError,
    ChecksumMismatch,
    ColumnExists,
    IndexExists,
    MigrationDiscoveryError,
    MigrationError,
    MissingMigration,
    SchemaConflict,
    SchemaDependencyError,
    UnsupportedDialect,
)
from .models import DOIEntry
from .types import MigrationKind, MigrationState

__all__ = [
    # Types
    "MigrationKind",
    "MigrationState",
    # Models
    "DOIEntry",
    # Exceptions
    "ApplyFailure",
    "BibstoreError",
    "ChecksumMismatch",
    "ColumnExists",
    "IndexExists",
    "MigrationDiscoveryError",
    "MigrationError",
    "MissingMigration",
    "SchemaConflict",
    "SchemaDependencyError",
    "UnsupportedDialect",
]
