"""
Base Discord Cog for pongbot

Provides the shared plumbing every feature cog gets: a named logger, access
to the shared `BotData`, and a `LogContext` tagged with the invoking user,
guild and command.

Usage Example
-------------
>>> class PingCog(BaseCog):
...     def __init__(self, bot):
...         super().__init__(bot, "PingCog")
...
...     @commands.hybrid_command()
...     async def pong(self, ctx):
...         async with self.log_context(ctx):
...             await ctx.send("pong!")
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from discord.ext import commands

from pongbot.core.logging.logger import LogContext, get_logger

if TYPE_CHECKING:
    from pongbot.bot.pong_bot import BotData


class BaseCog(commands.Cog):
    """
    Base class for all feature cogs.

    Attributes
    ----------
    bot : commands.Bot
        Discord bot instance
    cog_name : str
        Name of the cog for logging
    logger : Logger
        Logger for this cog
    """

    def __init__(self, bot: commands.Bot, cog_name: str) -> None:
        self.bot = bot
        self.cog_name = cog_name
        self.logger = get_logger(f"pongbot.features.{cog_name}")

    @property
    def data(self) -> "BotData":
        """Shared state handed to every command invocation."""
        return self.bot.data  # type: ignore[attr-defined]

    def log_context(self, ctx: commands.Context) -> LogContext:
        """Build a LogContext from a command context."""
        return LogContext(
            user_id=ctx.author.id,
            guild_id=ctx.guild.id if ctx.guild else None,
            command=ctx.command.qualified_name if ctx.command else None,
        )
