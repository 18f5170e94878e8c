"""Bibstore - PostgreSQL storage schema and migrations for DOI bibliography entries."""

from bibstore.config import BibstoreSettings
from bibstore.core.exceptions import ApplyFailure, BibstoreError, MigrationError
from bibstore.core.models import DOIEntry
from bibstore.core.types import MigrationState
from bibstore.db.session import DatabaseManager
from bibstore.migrations import Migration, MigrationRunner, load_migrations

__version__ = "0.1.0"
__all__ = [
    # Config
    "BibstoreSettings",
    # Models
    "DOIEntry",
    "MigrationState",
    # Database
    "DatabaseManager",
    # Migrations
    "Migration",
    "MigrationRunner",
    "load_migrations",
    # Errors
    "ApplyFailure",
    "BibstoreError",
    "MigrationError",
    # Version
    "__version__",
]
