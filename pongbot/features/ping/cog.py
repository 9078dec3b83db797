"""
Health-check command.

`pong` takes no arguments and replies with `pong!`. It works as a slash
command and as a prefix command, and an edited invocation edits the reply.
"""

from discord.ext import commands

from pongbot.bot.base_cog import BaseCog
from pongbot.bot.edit_tracker import TRACK_EDITS_EXTRA

PONG_REPLY = "pong!"


class PingCog(BaseCog):
    """Health-check command."""

    def __init__(self, bot: commands.Bot):
        super().__init__(bot, self.__class__.__name__)

    @commands.hybrid_command(
        name="pong",
        description="Pong!",
        extras={TRACK_EDITS_EXTRA: True},
    )
    async def pong(self, ctx: commands.Context) -> None:
        """Pong!"""
        async with self.log_context(ctx):
            # Send failures propagate to the global error handler
            await ctx.send(PONG_REPLY)


async def setup(bot: commands.Bot):
    """Load the PingCog."""
    await bot.add_cog(PingCog(bot))
