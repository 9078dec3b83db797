"""
Help command backed by the framework's built-in help formatter.

The bot is constructed with `help_command=None`; this cog registers `help` as
a hybrid command and renders the output with `commands.DefaultHelpCommand`,
so every loaded command appears without any per-command bookkeeping.
"""

from typing import Optional

from discord.ext import commands

from pongbot.bot.base_cog import BaseCog

HELP_FOOTER = (
    "Mention the bot or use one of its prefixes to run a command. "
    "Type {prefix}help <command> for more info on a command."
)


class PongHelpCommand(commands.DefaultHelpCommand):
    """DefaultHelpCommand that answers in the invoking context."""

    def __init__(self) -> None:
        super().__init__(no_category="Commands", sort_commands=True)

    def get_ending_note(self) -> str:
        return HELP_FOOTER.format(prefix=self.context.clean_prefix)

    def get_destination(self):
        # Slash invocations need an interaction response, which ctx.send gives
        return self.context


class HelpCog(BaseCog):
    """Command listing."""

    def __init__(self, bot: commands.Bot):
        super().__init__(bot, self.__class__.__name__)

    @commands.hybrid_command(name="help", description="Show help menu")
    async def help(self, ctx: commands.Context, *, command: Optional[str] = None) -> None:
        """Show help menu

        Parameters
        ----------
        command:
            Specific command to show help about
        """
        async with self.log_context(ctx):
            help_command = PongHelpCommand()
            help_command.context = ctx
            await help_command.command_callback(ctx, command=command)


async def setup(bot: commands.Bot):
    """Load the HelpCog."""
    await bot.add_cog(HelpCog(bot))
