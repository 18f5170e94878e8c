"""Sequential migration harness backed by an append-only ledger."""

from __future__ import annotations

import logging
import time
import zlib
from collections.abc import Iterable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING

from alembic.migration import MigrationContext
from alembic.operations import Operations
from sqlalchemy import inspect, select, text
from sqlalchemy.engine import Connection

from bibstore.core.exceptions import ApplyFailure, ChecksumMismatch, MissingMigration
from bibstore.core.types import MigrationState
from bibstore.db.tables import DEFAULT_LEDGER_TABLE, ledger_table
from bibstore.migrations.base import Migration, check_unique_versions
from bibstore.migrations.loader import load_migrations

if TYPE_CHECKING:
    from bibstore.config import BibstoreSettings

logger = logging.getLogger(__name__)

# Shared by every harness run so concurrent runs against one database serialize
ADVISORY_LOCK_KEY = zlib.crc32(b"bibstore.migrations")


@dataclass(frozen=True)
class AppliedMigration:
    """A row of the migration ledger."""

    version: int
    description: str
    checksum: str
    applied_at: datetime
    execution_time_ms: int


@dataclass(frozen=True)
class MigrationStatus:
    """State of one known migration against a database."""

    migration: Migration
    state: MigrationState
    applied_at: datetime | None = None


def run_upgrade(connection: Connection, migration: Migration) -> None:
    """Run a migration body with Alembic's ``op`` bound to ``connection``."""
    context = MigrationContext.configure(connection=connection)
    with Operations.context(context):
        migration.upgrade()


class MigrationRunner:
    """
    Applies migrations exactly once each, in version order.

    Each migration runs in its own transaction together with the insert of
    its ledger row, so a migration is either fully applied and recorded or
    not applied at all. The first failure stops the run; later migrations
    may depend on the failed one and are never attempted.

    The runner works on a synchronous SQLAlchemy connection that has no
    transaction in progress. Async callers go through
    ``AsyncConnection.run_sync`` (see ``DatabaseManager``).

    Usage:
        runner = MigrationRunner.from_directory()
        with engine.connect() as connection:
            applied = runner.apply_pending(connection)
    """

    def __init__(
        self,
        migrations: Iterable[Migration],
        *,
        ledger_table_name: str = DEFAULT_LEDGER_TABLE,
        ignore_missing: bool = False,
        use_lock: bool = True,
    ) -> None:
        ordered = sorted(migrations, key=lambda m: m.version)
        check_unique_versions(ordered)
        self._migrations = tuple(ordered)
        self._ledger = ledger_table(ledger_table_name)
        self._ignore_missing = ignore_missing
        self._use_lock = use_lock

    @classmethod
    def from_directory(
        cls,
        directory: Path | str | None = None,
        **kwargs,
    ) -> MigrationRunner:
        """Create a runner for the migration files in ``directory``."""
        return cls(load_migrations(directory), **kwargs)

    @classmethod
    def from_settings(cls, settings: BibstoreSettings) -> MigrationRunner:
        """Create a runner configured from application settings."""
        return cls.from_directory(
            settings.migrations_dir,
            ledger_table_name=settings.ledger_table,
            ignore_missing=settings.ignore_missing,
            use_lock=settings.advisory_lock,
        )

    @property
    def migrations(self) -> tuple[Migration, ...]:
        return self._migrations

    @property
    def ledger_table_name(self) -> str:
        return self._ledger.name

    def applied(self, connection: Connection) -> dict[int, AppliedMigration]:
        """Read the ledger; an absent ledger means nothing is applied."""
        with connection.begin():
            return self._read_ledger(connection)

    def status(self, connection: Connection) -> list[MigrationStatus]:
        """Report every known migration as pending or applied."""
        applied = self.applied(connection)
        statuses = []
        for migration in self._migrations:
            record = applied.get(migration.version)
            if record is None:
                statuses.append(MigrationStatus(migration, MigrationState.PENDING))
            else:
                statuses.append(
                    MigrationStatus(migration, MigrationState.APPLIED, record.applied_at)
                )
        return statuses

    def apply_pending(self, connection: Connection) -> list[Migration]:
        """
        Apply every pending migration in ascending version order.

        Returns:
            The migrations applied by this call, empty if none were pending.

        Raises:
            ChecksumMismatch: An applied migration's source changed.
            MissingMigration: The ledger records an unknown version.
            ApplyFailure: A migration failed; it was rolled back and the
                run stopped.
        """
        with self._run_lock(connection):
            with connection.begin():
                self._ledger.create(connection, checkfirst=True)
                applied = self._read_ledger(connection)

            self._validate(applied)

            pending = []
            for migration in self._migrations:
                if migration.version in applied:
                    logger.debug(f"Skipping applied migration {migration.identifier}")
                    continue
                pending.append(migration)

            if not pending:
                logger.info("No pending migrations")
                return []

            for migration in pending:
                self._apply(connection, migration)

            logger.info(f"Applied {len(pending)} migration(s)")
            return pending

    def _apply(self, connection: Connection, migration: Migration) -> None:
        logger.info(f"Applying migration {migration.identifier}")
        started = time.perf_counter()
        try:
            with connection.begin():
                run_upgrade(connection, migration)
                elapsed_ms = int((time.perf_counter() - started) * 1000)
                connection.execute(
                    self._ledger.insert().values(
                        version=migration.version,
                        description=migration.description,
                        checksum=migration.checksum,
                        execution_time_ms=elapsed_ms,
                    )
                )
        except Exception as e:
            logger.error(f"Migration {migration.identifier} failed: {e}")
            raise ApplyFailure(
                migration.version,
                migration.name,
                e,
                details={"migration": migration.identifier},
            ) from e
        logger.info(f"Applied migration {migration.identifier} in {elapsed_ms}ms")

    def _read_ledger(self, connection: Connection) -> dict[int, AppliedMigration]:
        if not inspect(connection).has_table(self._ledger.name):
            return {}
        rows = connection.execute(select(self._ledger).order_by(self._ledger.c.version))
        return {row.version: AppliedMigration(**row._mapping) for row in rows}

    def _validate(self, applied: dict[int, AppliedMigration]) -> None:
        known = {migration.version: migration for migration in self._migrations}
        for version, record in applied.items():
            migration = known.get(version)
            if migration is None:
                if self._ignore_missing:
                    logger.warning(f"Applied migration {version} has no source, ignoring")
                    continue
                raise MissingMigration(version)
            if migration.checksum != record.checksum:
                raise ChecksumMismatch(
                    version,
                    migration.name,
                    details={"recorded": record.checksum, "current": migration.checksum},
                )

    @contextmanager
    def _run_lock(self, connection: Connection) -> Iterator[None]:
        if not self._use_lock or connection.dialect.name != "postgresql":
            yield
            return

        with connection.begin():
            connection.execute(text("SELECT pg_advisory_lock(:key)"), {"key": ADVISORY_LOCK_KEY})
        try:
            yield
        finally:
            with connection.begin():
                connection.execute(
                    text("SELECT pg_advisory_unlock(:key)"), {"key": ADVISORY_LOCK_KEY}
                )
