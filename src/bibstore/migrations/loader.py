"""Discovery of migration files on disk."""

from __future__ import annotations

import importlib.util
import logging
import re
from pathlib import Path

from alembic import op

from bibstore.core.exceptions import MigrationDiscoveryError
from bibstore.core.types import MigrationKind
from bibstore.migrations.base import Migration, check_unique_versions, compute_checksum

logger = logging.getLogger(__name__)

# <version>_<name>.py or <version>_<name>.sql, e.g. 20230723133255_doi_entry.sql
MIGRATION_FILENAME = re.compile(r"^(?P<version>\d+)_(?P<name>\w+)\.(?P<ext>py|sql)$")


def default_migrations_dir() -> Path:
    """Directory holding the bundled migrations."""
    return Path(__file__).parent / "versions"


def split_statements(sql: str) -> list[str]:
    """
    Split a SQL script into statements on ``;``.

    Chunks holding only comments or whitespace are dropped. Semicolons
    inside string literals or function bodies are not supported.
    """
    statements = []
    for chunk in sql.split(";"):
        code = [
            line
            for line in chunk.splitlines()
            if line.strip() and not line.strip().startswith("--")
        ]
        if code:
            statements.append(chunk.strip())
    return statements


def load_migrations(directory: Path | str | None = None) -> list[Migration]:
    """
    Load every migration file in a directory, ordered by version.

    Args:
        directory: Directory to scan. Defaults to the bundled migrations.

    Returns:
        Migrations sorted by ascending version.

    Raises:
        MigrationDiscoveryError: Missing directory, unloadable file or
            duplicate version.
    """
    directory = Path(directory) if directory is not None else default_migrations_dir()
    if not directory.is_dir():
        raise MigrationDiscoveryError(
            f"Migrations directory not found: {directory}", {"path": str(directory)}
        )

    migrations = []
    for path in sorted(directory.iterdir()):
        match = MIGRATION_FILENAME.match(path.name)
        if match is None or not path.is_file():
            continue
        version = int(match["version"])
        name = match["name"]
        if match["ext"] == MigrationKind.SQL:
            migrations.append(_load_sql(path, version, name))
        else:
            migrations.append(_load_python(path, version, name))

    migrations.sort(key=lambda m: m.version)
    check_unique_versions(migrations)
    logger.debug(f"Discovered {len(migrations)} migrations in {directory}")
    return migrations


def _load_sql(path: Path, version: int, name: str) -> Migration:
    source = path.read_bytes()
    statements = split_statements(source.decode("utf-8"))

    def upgrade() -> None:
        for statement in statements:
            op.get_bind().exec_driver_sql(statement)

    return Migration(
        version=version,
        name=name,
        checksum=compute_checksum(source),
        upgrade=upgrade,
        kind=MigrationKind.SQL,
        path=path,
    )


def _load_python(path: Path, version: int, name: str) -> Migration:
    source = path.read_bytes()
    spec = importlib.util.spec_from_file_location(f"bibstore_migration_{version}_{name}", path)
    if spec is None or spec.loader is None:
        raise MigrationDiscoveryError(f"Cannot load migration {path.name}", {"path": str(path)})

    module = importlib.util.module_from_spec(spec)
    try:
        spec.loader.exec_module(module)
    except Exception as e:
        raise MigrationDiscoveryError(
            f"Failed to import migration {path.name}: {e}", {"path": str(path)}
        ) from e

    upgrade = getattr(module, "upgrade", None)
    if not callable(upgrade):
        raise MigrationDiscoveryError(
            f"Migration {path.name} does not define upgrade()", {"path": str(path)}
        )

    return Migration(
        version=version,
        name=name,
        checksum=compute_checksum(source),
        upgrade=upgrade,
        kind=MigrationKind.PYTHON,
        path=path,
    )
