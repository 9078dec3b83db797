"""
Feature Cog Loader for pongbot

Purpose
-------
Load every feature extension listed in `pongbot.features.FEATURE_EXTENSIONS`
with timing, validation and structured logging.

Responsibilities
----------------
- Validate extension modules before loading (check for setup() function)
- Load each extension with timeout protection
- Track load timing per extension
- Log a loading summary

Non-Responsibilities
--------------------
- Cog implementation (handled by feature cogs)
- Deciding whether a failure is fatal (handled by PongBot.setup_hook)
"""

from __future__ import annotations

import asyncio
import importlib
import time
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from discord.ext import commands

from pongbot.core.logging.logger import get_logger

logger = get_logger(__name__)


@dataclass
class LoadResult:
    """Result of loading a single extension."""

    name: str
    success: bool
    duration_ms: float
    error: Optional[Exception] = None
    error_type: Optional[str] = None


@dataclass
class LoadStats:
    """Aggregate result of a loading pass."""

    total_time_ms: float
    results: List[LoadResult] = field(default_factory=list)

    @property
    def loaded(self) -> int:
        return sum(1 for r in self.results if r.success)

    @property
    def failed(self) -> List[LoadResult]:
        return [r for r in self.results if not r.success]


class FeatureLoader:
    """
    Loads feature extensions one after another, in the listed order.

    Sequential loading keeps command registration order stable, which the
    help listing reflects.
    """

    def __init__(
        self,
        bot: commands.Bot,
        extensions: Sequence[str],
        load_timeout_seconds: float = 30.0,
    ) -> None:
        self.bot = bot
        self.extensions = list(extensions)
        self.load_timeout_seconds = load_timeout_seconds

    async def load_all(self) -> LoadStats:
        """
        Load every configured extension.

        Returns:
            LoadStats with per-extension results.
        """
        start_time = time.perf_counter()
        results: List[LoadResult] = []

        for name in self.extensions:
            results.append(await self._load_with_timeout(name))

        stats = LoadStats(
            total_time_ms=(time.perf_counter() - start_time) * 1000,
            results=results,
        )
        self._log_summary(stats)
        return stats

    async def _load_with_timeout(self, extension_name: str) -> LoadResult:
        start_time = time.perf_counter()

        validation_error = self._validate_extension(extension_name)
        if validation_error:
            logger.error(
                "Extension validation failed",
                extra={
                    "extension": extension_name,
                    "error": str(validation_error),
                    "error_type": type(validation_error).__name__,
                },
            )
            return LoadResult(
                name=extension_name,
                success=False,
                duration_ms=0.0,
                error=validation_error,
                error_type="ValidationError",
            )

        try:
            await asyncio.wait_for(
                self.bot.load_extension(extension_name),
                timeout=self.load_timeout_seconds,
            )
        except asyncio.TimeoutError:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Extension load timeout",
                extra={
                    "extension": extension_name,
                    "timeout_seconds": self.load_timeout_seconds,
                },
            )
            return LoadResult(
                name=extension_name,
                success=False,
                duration_ms=duration_ms,
                error=TimeoutError(
                    f"Extension loading exceeded {self.load_timeout_seconds}s timeout"
                ),
                error_type="TimeoutError",
            )
        except Exception as exc:
            duration_ms = (time.perf_counter() - start_time) * 1000
            logger.error(
                "Failed to load extension",
                extra={
                    "extension": extension_name,
                    "error": str(exc),
                    "error_type": type(exc).__name__,
                },
                exc_info=True,
            )
            return LoadResult(
                name=extension_name,
                success=False,
                duration_ms=duration_ms,
                error=exc,
                error_type=type(exc).__name__,
            )

        duration_ms = (time.perf_counter() - start_time) * 1000
        logger.info(
            "Extension loaded",
            extra={"extension": extension_name, "duration_ms": round(duration_ms, 2)},
        )
        return LoadResult(name=extension_name, success=True, duration_ms=duration_ms)

    def _validate_extension(self, extension_name: str) -> Optional[Exception]:
        """Check the module imports and exposes a callable setup()."""
        try:
            module = importlib.import_module(extension_name)
        except ImportError as exc:
            return ImportError(f"Cannot import module: {exc}")

        setup_fn = getattr(module, "setup", None)
        if setup_fn is None:
            return ValueError(
                "Missing required setup() function. "
                "Expected: async def setup(bot): await bot.add_cog(YourCog(bot))"
            )
        if not callable(setup_fn):
            return ValueError("setup must be a callable function")
        return None

    def _log_summary(self, stats: LoadStats) -> None:
        logger.info(
            "Feature loading complete",
            extra={
                "total_time_ms": round(stats.total_time_ms, 2),
                "loaded": stats.loaded,
                "failed": len(stats.failed),
            },
        )
        for result in stats.failed:
            logger.warning(
                "Extension not loaded",
                extra={"extension": result.name, "error_type": result.error_type},
            )
