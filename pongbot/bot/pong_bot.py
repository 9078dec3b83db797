"""
pongbot Discord Bot - Main Bot Class

Purpose
-------
Discord integration for the scaffold: prefixes, intents, feature loading,
application command registration, edit tracking and global error handling.

Responsibilities
----------------
- Build intents and the command prefix callable
- Load feature cogs (via FeatureLoader) and sync the slash command tree
- Re-run edit-tracked commands when their message is edited
- Global error handling for commands
- Final command statistics on close

Non-Responsibilities
--------------------
- Database lifecycle (opened and closed by `pongbot.main`)
- Environment configuration (handled by `Config`)
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, List, Optional, Sequence, Type

import discord
from discord.ext import commands
from sqlalchemy.ext.asyncio import AsyncEngine

from pongbot.bot.edit_tracker import EditTracker, TrackedContext, tracks_edits
from pongbot.bot.loader import FeatureLoader
from pongbot.core.config.config import Config, PrefixOptions
from pongbot.core.exceptions import BotBuildError
from pongbot.core.logging.logger import LogContext, get_logger

logger = get_logger(__name__)

PrefixCallable = Callable[[commands.Bot, discord.Message], List[str]]


@dataclass(frozen=True)
class BotData:
    """State shared with every command invocation."""

    db: AsyncEngine


@dataclass
class CommandStats:
    commands_executed: int = 0
    commands_failed: int = 0
    errors_handled: int = 0


def build_intents() -> discord.Intents:
    """Non-privileged intents plus message content for prefix commands."""
    intents = discord.Intents.default()
    intents.message_content = True
    return intents


def build_command_prefix(options: PrefixOptions) -> PrefixCallable:
    """
    Prefix callable for the bot.

    Mentioning the bot always works as a prefix. The primary prefix comes
    next, followed by the additional prefixes in configured order.
    """
    return commands.when_mentioned_or(*options.all)


class PongBot(commands.Bot):
    """
    The scaffold bot.

    Dependencies (Injected):
    - data: shared state holding the database pool
    - prefixes: parsed prefix options
    - extensions: feature extension modules to load on setup
    - edit_tracker: edit tracking window for prefix commands
    """

    def __init__(
        self,
        data: BotData,
        prefixes: PrefixOptions,
        extensions: Sequence[str],
        edit_tracker: EditTracker,
    ) -> None:
        super().__init__(
            command_prefix=build_command_prefix(prefixes),
            intents=build_intents(),
            help_command=None,
            description=Config.BOT_DESCRIPTION,
        )

        self.data = data
        self.prefixes = prefixes
        self.extensions_to_load = tuple(extensions)
        self.edit_tracker = edit_tracker
        self.stats = CommandStats()
        self.errors_by_type: Dict[str, int] = {}

        logger.debug("PongBot initialized")

    # --------------------------------------------------------------- #
    # Context
    # --------------------------------------------------------------- #

    async def get_context(  # type: ignore[override]
        self,
        origin: discord.Message | discord.Interaction,
        /,
        *,
        cls: Type[commands.Context] = TrackedContext,
    ) -> commands.Context:
        return await super().get_context(origin, cls=cls)

    # --------------------------------------------------------------- #
    # Startup
    # --------------------------------------------------------------- #

    async def setup_hook(self) -> None:
        """
        Load feature cogs and register application commands globally.

        Raises:
            BotBuildError: If a feature fails to load.
            discord.HTTPException: If the command tree cannot be synced.
        """
        stats = await FeatureLoader(self, self.extensions_to_load).load_all()
        if stats.failed:
            names = ", ".join(result.name for result in stats.failed)
            raise BotBuildError(f"Failed to load features: {names}")

        try:
            synced = await self.tree.sync()
        except discord.HTTPException as exc:
            logger.critical(
                "Failed to register application commands",
                extra={"error": str(exc), "error_type": type(exc).__name__},
            )
            raise

        logger.info("Application commands registered", extra={"count": len(synced)})

    async def on_ready(self) -> None:
        logger.info(
            "Bot is online",
            extra={
                "user": str(self.user),
                "bot_id": getattr(self.user, "id", None),
                "guilds": len(self.guilds),
            },
        )

    # --------------------------------------------------------------- #
    # Edit Tracking
    # --------------------------------------------------------------- #

    async def on_message_edit(self, before: discord.Message, after: discord.Message) -> None:
        """Re-run an edit-tracked command when its message is edited."""
        if after.author.bot or before.content == after.content:
            return
        if not self.edit_tracker.is_trackable(after):
            return

        ctx = await self.get_context(after)
        if ctx.command is None or not tracks_edits(ctx.command):
            return

        logger.debug(
            "Re-running edited command",
            extra={"command_name": ctx.command.qualified_name, "message_id": after.id},
        )
        await self.invoke(ctx)

    # --------------------------------------------------------------- #
    # Error Handling
    # --------------------------------------------------------------- #

    async def on_command_error(self, ctx: commands.Context, error: Exception) -> None:  # type: ignore[override]
        """
        Global error handler for commands.

        Unknown commands are ignored. User errors get a short reply;
        anything else is logged with its traceback.
        """
        if isinstance(error, commands.CommandNotFound):
            return

        async with LogContext(
            user_id=ctx.author.id,
            guild_id=ctx.guild.id if ctx.guild else None,
            command=ctx.command.qualified_name if ctx.command else "unknown",
        ):
            self.stats.commands_failed += 1
            original = getattr(error, "original", error)
            error_type = type(original).__name__
            self.stats.errors_handled += 1
            self.errors_by_type[error_type] = self.errors_by_type.get(error_type, 0) + 1

            reply: Optional[str] = None
            if isinstance(error, commands.UserInputError):
                reply = f"Invalid usage: {error}"
            elif isinstance(error, commands.CommandOnCooldown):
                reply = f"Please wait {error.retry_after:.1f}s."
            elif isinstance(error, commands.CheckFailure):
                reply = "You lack permission to use this command."

            if reply is None:
                logger.error(
                    "Unhandled command error",
                    extra={"error": str(original), "error_type": error_type},
                    exc_info=(type(original), original, original.__traceback__),
                )
                reply = "Something went wrong while processing your command."

            try:
                await ctx.send(reply)
            except discord.HTTPException as exc:
                logger.warning(
                    "Failed to send error reply",
                    extra={"error": str(exc), "error_type": type(exc).__name__},
                )

    async def on_command_completion(self, ctx: commands.Context) -> None:
        self.stats.commands_executed += 1

    # --------------------------------------------------------------- #
    # Shutdown
    # --------------------------------------------------------------- #

    async def close(self) -> None:
        """Log final command statistics and close the gateway connection."""
        total = self.stats.commands_executed + self.stats.commands_failed
        if total > 0:
            logger.info(
                "Final command statistics",
                extra={
                    "commands_executed": self.stats.commands_executed,
                    "commands_failed": self.stats.commands_failed,
                    "success_rate": round(self.stats.commands_executed / total * 100, 1),
                    "errors_by_type": dict(self.errors_by_type),
                },
            )

        await super().close()
        logger.info("Bot connection closed")
