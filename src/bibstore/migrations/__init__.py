"""Versioned schema migrations and the harness that applies them."""

from .base import Migration, compute_checksum
from .loader import default_migrations_dir, load_migrations, split_statements
from .runner import (
    ADVISORY_LOCK_KEY,
    AppliedMigration,
    MigrationRunner,
    MigrationStatus,
    run_upgrade,
)

__all__ = [
    # Definitions
    "Migration",
    "compute_checksum",
    # Discovery
    "default_migrations_dir",
    "load_migrations",
    "split_statements",
    # Harness
    "ADVISORY_LOCK_KEY",
    "AppliedMigration",
    "MigrationRunner",
    "MigrationStatus",
    "run_upgrade",
]
