"""
Unit tests for the health-check command.
"""

from unittest.mock import AsyncMock

import discord
import pytest

from pongbot.bot.edit_tracker import tracks_edits
from pongbot.features.ping.cog import PONG_REPLY, PingCog, setup


class TestPongCommand:
    async def test_replies_pong(self, mock_bot, mock_context):
        cog = PingCog(mock_bot)

        await cog.pong.callback(cog, mock_context)

        mock_context.send.assert_awaited_once_with("pong!")
        assert PONG_REPLY == "pong!"

    async def test_replies_every_time(self, mock_bot, mock_context):
        cog = PingCog(mock_bot)

        for _ in range(3):
            await cog.pong.callback(cog, mock_context)

        assert mock_context.send.await_count == 3
        for call in mock_context.send.await_args_list:
            assert call.args == ("pong!",)

    async def test_send_failure_propagates(self, mock_bot, mock_context):
        cog = PingCog(mock_bot)
        mock_context.send = AsyncMock(side_effect=discord.DiscordException("gone"))

        with pytest.raises(discord.DiscordException):
            await cog.pong.callback(cog, mock_context)


class TestPongRegistration:
    def test_command_metadata(self, mock_bot):
        cog = PingCog(mock_bot)

        assert cog.pong.name == "pong"
        assert cog.pong.description == "Pong!"
        assert tracks_edits(cog.pong) is True

    def test_command_is_also_a_slash_command(self, mock_bot):
        cog = PingCog(mock_bot)

        assert cog.pong.app_command is not None
        assert cog.pong.app_command.name == "pong"

    async def test_setup_adds_cog(self, mock_bot):
        await setup(mock_bot)

        mock_bot.add_cog.assert_awaited_once()
        assert isinstance(mock_bot.add_cog.await_args.args[0], PingCog)
