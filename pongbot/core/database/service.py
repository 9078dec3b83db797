"""
Database Service - Core Infrastructure Layer

Purpose
-------
Own the single async connection pool the bot keeps open for its whole
lifetime. Commands reach the pool through `BotData`; nothing in the bot
queries it yet, but it is connected, migrated and closed exactly once.

Responsibilities
----------------
- Create one AsyncEngine (asyncpg driver) with a bounded QueuePool
- Verify connectivity during startup so a bad DATABASE_URL fails fast
- Provide session and transaction context managers for future commands
- Dispose the engine on shutdown (idempotent)
- Expose a cheap health check

Non-Responsibilities
--------------------
- Schema migrations (handled by `pongbot.core.database.migrations`)
- Retry policies: a startup connection failure is fatal

Usage Example
-------------
>>> await DatabaseService.initialize(Config.DATABASE_URL)
>>> async with DatabaseService.get_transaction() as session:
...     await session.execute(text("SELECT 1"))
>>> await DatabaseService.shutdown()

Error Handling
--------------
**DatabaseInitializationError** - Raised when:
- The URL is empty or malformed
- The first connection attempt fails

**DatabaseNotInitializedError** - Raised when:
- A session is requested before initialize() or after shutdown()
"""

from __future__ import annotations

import asyncio
import time
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import Any, AsyncGenerator, Optional

from sqlalchemy import text
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import (
    AsyncEngine,
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from pongbot.core.exceptions import (
    DatabaseInitializationError,
    DatabaseNotInitializedError,
)
from pongbot.core.logging.logger import get_logger

logger = get_logger(__name__)


# ============================================================================
# Configuration Snapshot
# ============================================================================


@dataclass(frozen=True)
class _DatabaseConfigSnapshot:
    """Immutable view of the pool settings for the lifetime of the engine."""

    url: str
    echo: bool
    pool_size: int
    max_overflow: int
    pool_timeout: int

    @property
    def url_scheme(self) -> str:
        """Extract the URL scheme for logging."""
        return self.url.split(":", 1)[0] if ":" in self.url else "unknown"


# ============================================================================
# DatabaseService - Core Infrastructure
# ============================================================================


class DatabaseService:
    """
    Centralized async database engine and session management.

    Public API
    ----------
    **Lifecycle**:
    - initialize() -> Create engine and verify connectivity
    - shutdown() -> Dispose engine (pool closed)

    **Session Management**:
    - get_session() -> Session without automatic commit
    - get_transaction() -> Session wrapped in an atomic transaction

    **Utilities**:
    - get_engine() -> The live AsyncEngine
    - health_check() -> Fast database reachability check
    - is_initialized() -> Whether the pool is open
    """

    _engine: Optional[AsyncEngine] = None
    _session_factory: Optional[async_sessionmaker[AsyncSession]] = None
    _config_snapshot: Optional[_DatabaseConfigSnapshot] = None
    _init_lock: Optional[asyncio.Lock] = None

    # ========================================================================
    # Initialization & Shutdown
    # ========================================================================

    @classmethod
    def _lock(cls) -> asyncio.Lock:
        # Created lazily so the lock binds to the running loop
        if cls._init_lock is None:
            cls._init_lock = asyncio.Lock()
        return cls._init_lock

    @classmethod
    async def initialize(
        cls,
        url: str,
        *,
        pool_size: int = 10,
        max_overflow: int = 10,
        pool_timeout: int = 30,
        echo: bool = False,
    ) -> AsyncEngine:
        """
        Create the engine and open a first connection.

        Idempotent: returns the existing engine if already initialized.

        Raises
        ------
        DatabaseInitializationError
            If the URL is invalid or the database cannot be reached.
        """
        async with cls._lock():
            if cls._engine is not None:
                logger.debug("DatabaseService already initialized; skipping")
                return cls._engine

            if not url or not isinstance(url, str):
                raise DatabaseInitializationError(
                    "DATABASE_URL must be configured as a non-empty string"
                )

            config = _DatabaseConfigSnapshot(
                url=url,
                echo=echo,
                pool_size=pool_size,
                max_overflow=max_overflow,
                pool_timeout=pool_timeout,
            )

            logger.info(
                "Initializing DatabaseService",
                extra={
                    "url_scheme": config.url_scheme,
                    "pool_size": pool_size,
                    "max_overflow": max_overflow,
                },
            )

            try:
                engine = create_async_engine(
                    config.url,
                    echo=config.echo,
                    pool_size=config.pool_size,
                    max_overflow=config.max_overflow,
                    pool_timeout=config.pool_timeout,
                    pool_pre_ping=True,
                )
            except Exception as exc:
                logger.error(
                    "Database engine creation failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )
                raise DatabaseInitializationError(
                    f"Invalid database url: {exc}", exc
                ) from exc

            start = time.perf_counter()
            try:
                async with engine.connect() as conn:
                    await conn.execute(text("SELECT 1"))
            except Exception as exc:
                await engine.dispose()
                logger.error(
                    "Database connection failed",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )
                raise DatabaseInitializationError(
                    f"Failed to connect to database: {exc}", exc
                ) from exc

            cls._engine = engine
            cls._config_snapshot = config
            cls._session_factory = async_sessionmaker(
                bind=engine,
                class_=AsyncSession,
                expire_on_commit=False,
            )

            logger.info(
                "DatabaseService initialized successfully",
                extra={
                    "url_scheme": config.url_scheme,
                    "connect_ms": round((time.perf_counter() - start) * 1000, 2),
                },
            )
            return engine

    @classmethod
    async def shutdown(cls) -> None:
        """
        Dispose the engine and close all pooled connections.

        Safe to call multiple times; no-op if already shut down.
        """
        async with cls._lock():
            if cls._engine is None:
                logger.debug("DatabaseService not initialized; nothing to shutdown")
                return

            logger.info("Shutting down DatabaseService")

            try:
                await cls._engine.dispose()
                logger.info("DatabaseService shutdown complete")
            finally:
                cls._engine = None
                cls._session_factory = None
                cls._config_snapshot = None

    @classmethod
    def is_initialized(cls) -> bool:
        return cls._engine is not None

    @classmethod
    def get_engine(cls) -> AsyncEngine:
        """
        Return the live engine.

        Raises
        ------
        DatabaseNotInitializedError
            If initialize() has not completed.
        """
        if cls._engine is None:
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )
        return cls._engine

    # ========================================================================
    # Health Check
    # ========================================================================

    @classmethod
    async def health_check(cls) -> bool:
        """
        Run `SELECT 1` against the pool.

        Returns False instead of raising when the database is unreachable.
        """
        if cls._engine is None:
            logger.warning("Health check called on uninitialized DatabaseService")
            return False

        try:
            async with cls._engine.connect() as conn:
                await conn.execute(text("SELECT 1"))
            return True
        except (OperationalError, DBAPIError, OSError) as exc:
            logger.warning(
                "Database health check failed",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            return False

    # ========================================================================
    # Session & Transaction Context Managers
    # ========================================================================

    @classmethod
    def _ensure_initialized(cls) -> async_sessionmaker[AsyncSession]:
        if cls._session_factory is None:
            raise DatabaseNotInitializedError(
                "DatabaseService must be initialized before use. "
                "Call DatabaseService.initialize() during startup."
            )
        return cls._session_factory

    @classmethod
    @asynccontextmanager
    async def get_session(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a database session without automatic commit.

        For write operations prefer `get_transaction()`.
        """
        factory = cls._ensure_initialized()

        async with factory() as session:
            yield session

    @classmethod
    @asynccontextmanager
    async def get_transaction(cls) -> AsyncGenerator[AsyncSession, None]:
        """
        Create a database session wrapped in an atomic transaction.

        Commits on success; rolls back and re-raises on any exception.
        """
        factory = cls._ensure_initialized()

        start = time.perf_counter()
        async with factory() as session:
            try:
                yield session
                await session.commit()
                logger.debug(
                    "Database transaction committed",
                    extra={"duration_ms": (time.perf_counter() - start) * 1000.0},
                )
            except Exception as exc:
                await session.rollback()
                logger.error(
                    "Error in transaction; rolled back",
                    extra={
                        "error": str(exc),
                        "error_type": type(exc).__name__,
                        "duration_ms": (time.perf_counter() - start) * 1000.0,
                    },
                    exc_info=True,
                )
                raise

    # ========================================================================
    # Introspection
    # ========================================================================

    @classmethod
    def get_pool_status(cls) -> dict[str, Any]:
        """Return pool counters; logged when the pool is closed."""
        if cls._engine is None or cls._config_snapshot is None:
            return {"initialized": False}

        pool = cls._engine.pool
        return {
            "initialized": True,
            "pool_size": cls._config_snapshot.pool_size,
            "checked_out": getattr(pool, "checkedout", lambda: 0)(),
            "overflow": getattr(pool, "overflow", lambda: 0)(),
        }
