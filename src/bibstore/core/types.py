"""Core enums and type definitions."""

from enum import StrEnum


class MigrationState(StrEnum):
    """Lifecycle state of a single migration."""

    PENDING = "pending"
    APPLIED = "applied"


class MigrationKind(StrEnum):
    """Source format of a migration."""

    PYTHON = "py"
    SQL = "sql"
    # Built in code rather than loaded from a file
    INLINE = "inline"
