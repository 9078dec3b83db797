"""
Database subsystem for pongbot.

Provides the async SQLAlchemy engine (the bot's connection pool), session
helpers and the SQL migration runner applied at startup.
"""

from pongbot.core.database.migrations import (
    Migration,
    MigrationRunner,
    discover_migrations,
)
from pongbot.core.database.service import DatabaseService
from pongbot.core.exceptions import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
    MigrationError,
)

__all__ = [
    "DatabaseService",
    "Migration",
    "MigrationRunner",
    "discover_migrations",
    "DatabaseInitializationError",
    "DatabaseNotInitializedError",
    "MigrationError",
]
