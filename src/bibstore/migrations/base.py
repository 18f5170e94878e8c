"""Migration definition shared by the loader and the runner."""

from __future__ import annotations

import hashlib
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from pathlib import Path

from bibstore.core.exceptions import MigrationDiscoveryError
from bibstore.core.types import MigrationKind


@dataclass(frozen=True)
class Migration:
    """
    A named, ordered, one-way schema change.

    ``upgrade`` is called with Alembic's ``op`` proxy installed for the
    target connection, so migration bodies read like Alembic revisions.
    """

    version: int
    name: str
    checksum: str
    upgrade: Callable[[], None] = field(repr=False, compare=False)
    kind: MigrationKind = MigrationKind.INLINE
    path: Path | None = None

    @property
    def identifier(self) -> str:
        """Sortable identity used in logs and error messages."""
        return f"{self.version}_{self.name}"

    @property
    def description(self) -> str:
        return self.name.replace("_", " ")

    @classmethod
    def from_callable(
        cls,
        version: int,
        name: str,
        upgrade: Callable[[], None],
        *,
        checksum: str | None = None,
    ) -> Migration:
        """Build a migration from a function defined in code."""
        if checksum is None:
            checksum = compute_checksum(f"{version}_{name}".encode())
        return cls(version=version, name=name, checksum=checksum, upgrade=upgrade)


def compute_checksum(source: bytes) -> str:
    """Return the sha256 hex digest recorded in the ledger."""
    return hashlib.sha256(source).hexdigest()


def check_unique_versions(migrations: Iterable[Migration]) -> None:
    """Raise if two migrations share a version."""
    seen: dict[int, Migration] = {}
    for migration in migrations:
        other = seen.get(migration.version)
        if other is not None:
            raise MigrationDiscoveryError(
                f"Duplicate migration version {migration.version}: "
                f"{other.identifier} and {migration.identifier}",
                {"version": migration.version},
            )
        seen[migration.version] = migration
