"""Custom exception hierarchy for bibstore."""

from typing import Any


class BibstoreError(Exception):
    """Base exception for all bibstore errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}


class MigrationError(BibstoreError):
    """A schema migration could not be applied."""

    pass


class SchemaConflict(MigrationError):
    """Target object exists with an incompatible definition."""

    def __init__(
        self,
        table: str,
        problems: list[str],
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Table {table!r} exists with an incompatible shape: " + "; ".join(problems),
            details,
        )
        self.table = table
        self.problems = problems


class SchemaDependencyError(MigrationError):
    """A migration assumes structure that is not present yet."""

    def __init__(
        self,
        table: str,
        missing: list[str],
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            f"Table {table!r} is missing required structure: {', '.join(missing)}",
            details,
        )
        self.table = table
        self.missing = missing


class ColumnExists(MigrationError):
    """Column name is already taken on the target table."""

    def __init__(self, table: str, column: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Column {column!r} already exists on {table!r}", details)
        self.table = table
        self.column = column


class IndexExists(MigrationError):
    """Index name collides with an existing index."""

    def __init__(self, index: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"Index {index!r} already exists", details)
        self.index = index


class UnsupportedDialect(MigrationError):
    """The target database lacks a feature the migration needs."""

    def __init__(self, dialect: str, feature: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(f"{feature} is not supported on {dialect!r}", details)
        self.dialect = dialect
        self.feature = feature


class MigrationDiscoveryError(MigrationError):
    """Migration sources could not be loaded."""

    pass


class ChecksumMismatch(MigrationError):
    """An applied migration was modified after it ran."""

    def __init__(self, version: int, name: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            f"Migration {version}_{name} was previously applied but has been modified",
            details,
        )
        self.version = version
        self.name = name


class MissingMigration(MigrationError):
    """The ledger records a migration with no matching source."""

    def __init__(self, version: int, details: dict[str, Any] | None = None) -> None:
        super().__init__(
            f"Migration {version} was previously applied but is missing from the sources",
            details,
        )
        self.version = version


class ApplyFailure(MigrationError):
    """A migration failed while being applied; the run was halted."""

    def __init__(
        self,
        version: int,
        name: str,
        cause: BaseException,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(f"Migration {version}_{name} failed: {cause}", details)
        self.version = version
        self.name = name
        self.cause = cause
