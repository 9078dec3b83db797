"""
Unit tests for edit tracking.

Covers the tracking window, purging of expired entries and the reply-editing
behaviour of TrackedContext.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest
from discord.ext import commands
from discord.ext.commands.view import StringView

from pongbot.bot.edit_tracker import EditTracker, TrackedContext, tracks_edits

NOW = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)


def _message(message_id: int, age_seconds: float = 0) -> MagicMock:
    message = MagicMock(spec=discord.Message)
    message.id = message_id
    message.created_at = NOW - timedelta(seconds=age_seconds)
    return message


@pytest.fixture
def tracker() -> EditTracker:
    return EditTracker(timedelta(seconds=120))


class TestEditTracker:
    def test_recent_message_is_trackable(self, tracker):
        assert tracker.is_trackable(_message(1, age_seconds=60), now=NOW) is True

    def test_message_at_window_edge_is_trackable(self, tracker):
        assert tracker.is_trackable(_message(1, age_seconds=120), now=NOW) is True

    def test_old_message_is_not_trackable(self, tracker):
        assert tracker.is_trackable(_message(1, age_seconds=121), now=NOW) is False

    def test_track_and_find(self, tracker, mocker):
        mocker.patch("discord.utils.utcnow", return_value=NOW)
        message, response = _message(1), _message(2)

        tracker.track(message, response)

        assert tracker.find_response(message) is response
        assert len(tracker) == 1

    def test_unknown_message_has_no_response(self, tracker):
        assert tracker.find_response(_message(99)) is None

    def test_forget(self, tracker, mocker):
        mocker.patch("discord.utils.utcnow", return_value=NOW)
        message = _message(1)
        tracker.track(message, _message(2))

        tracker.forget(message)
        tracker.forget(message)

        assert tracker.find_response(message) is None

    def test_purge_drops_expired_entries(self, tracker, mocker):
        mocker.patch("discord.utils.utcnow", return_value=NOW)
        fresh, stale = _message(1, age_seconds=10), _message(2, age_seconds=100)
        tracker.track(fresh, _message(10))
        tracker.track(stale, _message(20))

        removed = tracker.purge(now=NOW + timedelta(seconds=60))

        assert removed == 1
        assert tracker.find_response(fresh) is not None
        assert tracker.find_response(stale) is None

    def test_track_purges_first(self, tracker, mocker):
        utcnow = mocker.patch("discord.utils.utcnow", return_value=NOW)
        old = _message(1)
        tracker.track(old, _message(10))

        utcnow.return_value = NOW + timedelta(minutes=5)
        tracker.track(_message(2, age_seconds=-300), _message(20))

        assert tracker.find_response(old) is None
        assert len(tracker) == 1


class TestTracksEdits:
    def test_opted_in_command(self):
        command = MagicMock(extras={"track_edits": True})
        assert tracks_edits(command) is True

    def test_plain_command(self):
        command = MagicMock(extras={})
        assert tracks_edits(command) is False

    def test_no_command(self):
        assert tracks_edits(None) is False


class TestTrackedContext:
    @pytest.fixture
    def base_send(self, mocker):
        return mocker.patch.object(commands.Context, "send", new_callable=AsyncMock)

    def _context(self, tracker, track_edits=True, message_id=1) -> TrackedContext:
        bot = MagicMock()
        bot.edit_tracker = tracker
        command = MagicMock(extras={"track_edits": track_edits})
        return TrackedContext(
            message=_message(message_id),
            bot=bot,
            view=StringView("!pong"),
            command=command,
        )

    async def test_first_send_is_tracked(self, tracker, base_send, mocker):
        mocker.patch("discord.utils.utcnow", return_value=NOW)
        response = _message(100)
        base_send.return_value = response
        ctx = self._context(tracker)

        result = await ctx.send("pong!")

        assert result is response
        base_send.assert_awaited_once_with("pong!")
        assert tracker.find_response(ctx.message) is response

    async def test_second_send_edits_previous_reply(self, tracker, base_send, mocker):
        mocker.patch("discord.utils.utcnow", return_value=NOW)
        previous = _message(100)
        previous.edit = AsyncMock(return_value=previous)
        ctx = self._context(tracker)
        tracker.track(ctx.message, previous)

        result = await ctx.send("pong!")

        assert result is previous
        previous.edit.assert_awaited_once_with(content="pong!")
        base_send.assert_not_awaited()

    async def test_deleted_reply_is_replaced(self, tracker, base_send, mocker):
        mocker.patch("discord.utils.utcnow", return_value=NOW)
        previous = _message(100)
        previous.edit = AsyncMock(
            side_effect=discord.NotFound(MagicMock(status=404), "Unknown Message")
        )
        replacement = _message(101)
        base_send.return_value = replacement
        ctx = self._context(tracker)
        tracker.track(ctx.message, previous)

        result = await ctx.send("pong!")

        assert result is replacement
        assert tracker.find_response(ctx.message) is replacement

    async def test_untracked_command_sends_normally(self, tracker, base_send):
        ctx = self._context(tracker, track_edits=False)

        await ctx.send("hello")

        base_send.assert_awaited_once_with("hello")
        assert len(tracker) == 0
