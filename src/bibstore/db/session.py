"""Database connection management."""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy.ext.asyncio import AsyncEngine

from bibstore.db.base import create_engine
from bibstore.db.inspection import find_schema_problems

if TYPE_CHECKING:
    from bibstore.migrations.base import Migration
    from bibstore.migrations.runner import MigrationRunner, MigrationStatus


class DatabaseManager:
    """
    Manages the async engine and runs the synchronous migration harness on it.

    Usage:
        async with DatabaseManager(url) as db:
            applied = await db.migrate(MigrationRunner.from_directory())
    """

    def __init__(self, database_url: str, echo: bool = False) -> None:
        self._database_url = database_url
        self._echo = echo
        self._engine: AsyncEngine | None = None

    @property
    def engine(self) -> AsyncEngine:
        """Get the database engine, creating it if necessary."""
        if self._engine is None:
            self._engine = create_engine(self._database_url, self._echo)
        return self._engine

    async def migrate(self, runner: MigrationRunner) -> list[Migration]:
        """Apply all pending migrations."""
        async with self.engine.connect() as conn:
            return await conn.run_sync(runner.apply_pending)

    async def migration_status(self, runner: MigrationRunner) -> list[MigrationStatus]:
        """Report pending and applied migrations."""
        async with self.engine.connect() as conn:
            return await conn.run_sync(runner.status)

    async def verify_schema(self) -> list[str]:
        """Compare the live schema with the declared one."""
        async with self.engine.connect() as conn:
            return await conn.run_sync(find_schema_problems)

    async def close(self) -> None:
        """Close the database engine."""
        if self._engine is not None:
            await self._engine.dispose()
            self._engine = None

    async def __aenter__(self) -> DatabaseManager:
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
