"""
SQL migration runner for pongbot.

Applies `<version>_<description>.sql` files from the migrations directory
at startup so the database always matches the latest table definitions.

- Migrations run in ascending version order, each in its own transaction.
- Applied versions are tracked in `_schema_migrations` together with a
  SHA-256 checksum of the file contents.
- Editing an already applied migration, or deleting one, is an error.
"""

from __future__ import annotations

import hashlib
import re
from dataclasses import dataclass
from pathlib import Path

from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncConnection, AsyncEngine

from pongbot.core.exceptions import MigrationError
from pongbot.core.logging.logger import get_logger

logger = get_logger(__name__)

MIGRATION_TABLE = "_schema_migrations"
_FILENAME_PATTERN = re.compile(r"^(\d+)_(.+)\.sql$")

_CREATE_TABLE_SQL = f"""
CREATE TABLE IF NOT EXISTS {MIGRATION_TABLE} (
    version BIGINT PRIMARY KEY,
    description TEXT NOT NULL,
    checksum TEXT NOT NULL,
    applied_at TIMESTAMPTZ NOT NULL DEFAULT now()
)
"""


@dataclass(frozen=True)
class Migration:
    """A single migration file."""

    version: int
    description: str
    sql: str

    @property
    def checksum(self) -> str:
        return hashlib.sha256(self.sql.encode("utf-8")).hexdigest()


def discover_migrations(directory: Path, required: bool = False) -> list[Migration]:
    """Find all migration files in a directory.

    Args:
        directory: Directory to scan.
        required: Whether a missing directory is an error. Otherwise it
            means no migrations and is logged as a warning.

    Returns:
        Migrations sorted by version.

    Raises:
        MigrationError: If two files share a version number, or if a
            required directory is missing.
    """
    if not directory.is_dir():
        if required:
            raise MigrationError(f"Migrations directory {directory} does not exist")
        logger.warning(
            "Migrations directory not found; nothing to apply",
            extra={"directory": str(directory.resolve())},
        )
        return []

    migrations: dict[int, Migration] = {}
    for path in sorted(directory.glob("*.sql")):
        match = _FILENAME_PATTERN.match(path.name)
        if match is None:
            logger.warning(
                "Ignoring migration file with unexpected name",
                extra={"file": path.name},
            )
            continue

        version = int(match.group(1))
        if version in migrations:
            raise MigrationError(
                f"Duplicate migration version {version} in {directory}", version
            )

        migrations[version] = Migration(
            version=version,
            description=match.group(2).replace("_", " "),
            sql=path.read_text(encoding="utf-8"),
        )

    return [migrations[version] for version in sorted(migrations)]


async def _execute_script(conn: AsyncConnection, sql: str) -> None:
    # asyncpg only accepts multi-statement scripts outside prepared statements
    raw = await conn.get_raw_connection()
    await raw.driver_connection.execute(sql)


class MigrationRunner:
    """Apply pending migrations to a database.

    Example:
        >>> runner = MigrationRunner(engine, Path("migrations"))
        >>> applied = await runner.run()
    """

    def __init__(self, engine: AsyncEngine, directory: Path, required: bool = False) -> None:
        self.engine = engine
        self.directory = directory
        self.required = required

    async def applied_checksums(self) -> dict[int, str]:
        """Map of applied version to recorded checksum."""
        async with self.engine.begin() as conn:
            await conn.execute(text(_CREATE_TABLE_SQL))
            result = await conn.execute(
                text(f"SELECT version, checksum FROM {MIGRATION_TABLE}")
            )
            return {row.version: row.checksum for row in result}

    async def pending(self) -> list[Migration]:
        """Migrations on disk that have not been applied yet."""
        applied = await self.applied_checksums()
        migrations = discover_migrations(self.directory, self.required)
        return [m for m in migrations if m.version not in applied]

    async def run(self) -> list[Migration]:
        """Apply every pending migration.

        Returns:
            The migrations applied by this call, in order.

        Raises:
            MigrationError: If an applied migration changed or went missing,
                or if a migration fails to apply.
        """
        migrations = discover_migrations(self.directory, self.required)
        applied = await self.applied_checksums()

        on_disk = {m.version for m in migrations}
        missing = sorted(set(applied) - on_disk)
        if missing:
            raise MigrationError(
                f"Migration {missing[0]} was previously applied but is missing",
                missing[0],
            )

        newly_applied: list[Migration] = []
        for migration in migrations:
            recorded = applied.get(migration.version)
            if recorded is not None:
                if recorded != migration.checksum:
                    raise MigrationError(
                        f"Migration {migration.version} was previously applied "
                        "but has been modified",
                        migration.version,
                    )
                continue

            logger.info(
                "Applying migration",
                extra={
                    "version": migration.version,
                    "description": migration.description,
                },
            )
            try:
                async with self.engine.begin() as conn:
                    # The record goes in first so the driver transaction is
                    # already open when the raw script runs.
                    await conn.execute(
                        text(
                            f"INSERT INTO {MIGRATION_TABLE} "
                            "(version, description, checksum) "
                            "VALUES (:version, :description, :checksum)"
                        ),
                        {
                            "version": migration.version,
                            "description": migration.description,
                            "checksum": migration.checksum,
                        },
                    )
                    await _execute_script(conn, migration.sql)
            except Exception as exc:
                logger.error(
                    "Migration failed",
                    extra={
                        "version": migration.version,
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                    },
                )
                raise MigrationError(
                    f"Migration {migration.version} failed: {exc}", migration.version
                ) from exc

            newly_applied.append(migration)

        if newly_applied:
            logger.info("Migrations complete", extra={"count": len(newly_applied)})
        else:
            logger.info("No pending migrations")

        return newly_applied
