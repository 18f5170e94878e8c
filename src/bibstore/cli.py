"""Command-line interface for running and inspecting schema migrations."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from pathlib import Path
from typing import NoReturn, Optional, TypeVar

import typer
from pydantic import ValidationError
from rich.console import Console
from rich.table import Table
from sqlalchemy.exc import SQLAlchemyError

from bibstore.config import BibstoreSettings
from bibstore.core.exceptions import ApplyFailure, MigrationError
from bibstore.db.session import DatabaseManager
from bibstore.migrations.loader import load_migrations
from bibstore.migrations.runner import MigrationRunner

T = TypeVar("T")

console = Console()
app = typer.Typer(help="Bibstore: DOI entry schema migrations")
logger = logging.getLogger(__name__)

DATABASE_URL_OPTION = typer.Option(
    None, "--database-url", help="PostgreSQL URL (defaults to BIBSTORE_DATABASE_URL)"
)
MIGRATIONS_DIR_OPTION = typer.Option(
    None,
    "--migrations-dir",
    help="Directory of migration files (defaults to the bundled migrations)",
)


@app.callback()
def main(
    log_level: Optional[str] = typer.Option(None, "--log-level", help="Logging level"),
) -> None:
    """Configure logging for every command."""
    if log_level is None:
        try:
            log_level = BibstoreSettings().log_level
        except ValidationError:
            # Commands that need the settings report the error themselves
            log_level = "INFO"
    level = log_level.upper()
    if level not in logging.getLevelNamesMapping():
        _fail(f"Invalid log level: {log_level}")
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc'])}: {item['msg']}"
        for item in error.errors()
    )


def _load_settings(
    database_url: Optional[str] = None,
    migrations_dir: Optional[Path] = None,
) -> BibstoreSettings:
    overrides: dict[str, object] = {}
    if database_url is not None:
        overrides["database_url"] = database_url
    if migrations_dir is not None:
        overrides["migrations_dir"] = migrations_dir
    try:
        return BibstoreSettings(**overrides)
    except ValidationError as e:
        _fail(f"Invalid configuration: {_describe(e)}")


def _fail(message: str) -> NoReturn:
    console.print(message, style="red", markup=False, soft_wrap=True)
    raise typer.Exit(code=1)


def _runner(settings: BibstoreSettings) -> MigrationRunner:
    try:
        return MigrationRunner.from_settings(settings)
    except MigrationError as e:
        _fail(e.message)


def _run(
    settings: BibstoreSettings,
    action: Callable[[DatabaseManager], Awaitable[T]],
) -> T:
    async def _main() -> T:
        async with DatabaseManager(str(settings.database_url), echo=settings.debug) as db:
            return await action(db)

    try:
        return asyncio.run(_main())
    except ApplyFailure as e:
        logger.debug("Migration run halted", exc_info=e)
        _fail(f"{e.message} ({type(e.cause).__name__})")
    except MigrationError as e:
        _fail(e.message)
    except (SQLAlchemyError, OSError) as e:
        _fail(f"Database error: {e}")


@app.command()
def migrate(
    database_url: Optional[str] = DATABASE_URL_OPTION,
    migrations_dir: Optional[Path] = MIGRATIONS_DIR_OPTION,
) -> None:
    """Apply all pending migrations in version order."""
    settings = _load_settings(database_url, migrations_dir)
    runner = _runner(settings)

    applied = _run(settings, lambda db: db.migrate(runner))
    if not applied:
        console.print("[green]Database is up to date.[/green]")
        return
    for migration in applied:
        console.print(f"[green]Applied[/green] {migration.identifier}")


@app.command()
def status(
    database_url: Optional[str] = DATABASE_URL_OPTION,
    migrations_dir: Optional[Path] = MIGRATIONS_DIR_OPTION,
) -> None:
    """Show which migrations are applied and which are pending."""
    settings = _load_settings(database_url, migrations_dir)
    runner = _runner(settings)

    statuses = _run(settings, lambda db: db.migration_status(runner))

    table = Table(title="Migrations")
    table.add_column("Version")
    table.add_column("Name")
    table.add_column("State")
    table.add_column("Applied at")
    for item in statuses:
        applied_at = item.applied_at.isoformat(timespec="seconds") if item.applied_at else "-"
        table.add_row(
            str(item.migration.version),
            item.migration.name,
            item.state.value,
            applied_at,
        )
    console.print(table)


@app.command("migrations")
def list_migrations(
    migrations_dir: Optional[Path] = MIGRATIONS_DIR_OPTION,
) -> None:
    """List migration files without connecting to the database."""
    try:
        migrations = load_migrations(migrations_dir)
    except MigrationError as e:
        _fail(e.message)

    if not migrations:
        console.print("No migrations found.")
        return

    table = Table(title="Migration files")
    table.add_column("Version")
    table.add_column("Name")
    table.add_column("Kind")
    table.add_column("Checksum")
    for migration in migrations:
        table.add_row(
            str(migration.version),
            migration.name,
            migration.kind.value,
            migration.checksum[:12],
        )
    console.print(table)


@app.command()
def check(
    database_url: Optional[str] = DATABASE_URL_OPTION,
) -> None:
    """Verify the live schema matches the declared doi_entries schema."""
    settings = _load_settings(database_url)
    problems = _run(settings, lambda db: db.verify_schema())
    if problems:
        for problem in problems:
            console.print(f"- {problem}", style="red", markup=False)
        raise typer.Exit(code=1)
    console.print("[green]Schema is current.[/green]")


if __name__ == "__main__":
    app()
