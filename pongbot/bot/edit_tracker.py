"""
Edit tracking for prefix commands.

When a user edits a message that invoked an edit-tracked command, the command
runs again and its earlier reply is edited in place instead of a second reply
being posted. Only messages younger than the tracking window qualify.

Commands opt in with `extras={"track_edits": True}`.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any, Dict, Optional

import discord
from discord.ext import commands

from pongbot.core.logging.logger import get_logger

logger = get_logger(__name__)

TRACK_EDITS_EXTRA = "track_edits"

# Keyword arguments of Messageable.send that Message.edit also understands
_EDITABLE_KWARGS = frozenset(
    {"embed", "embeds", "view", "allowed_mentions", "delete_after", "suppress_embeds"}
)


def tracks_edits(command: Optional[commands.Command[Any, ..., Any]]) -> bool:
    """Whether a command opted in to edit tracking."""
    return command is not None and bool(command.extras.get(TRACK_EDITS_EXTRA, False))


@dataclass
class _TrackedInvocation:
    created_at: datetime
    response: discord.Message


class EditTracker:
    """
    Remembers which bot reply answered which user message.

    Parameters
    ----------
    max_duration:
        Messages older than this are neither re-run on edit nor kept.
    """

    def __init__(self, max_duration: timedelta) -> None:
        self.max_duration = max_duration
        self._invocations: Dict[int, _TrackedInvocation] = {}

    def __len__(self) -> int:
        return len(self._invocations)

    def is_trackable(self, message: discord.Message, now: Optional[datetime] = None) -> bool:
        """Whether `message` is still inside the tracking window."""
        now = now or discord.utils.utcnow()
        return now - message.created_at <= self.max_duration

    def track(self, message: discord.Message, response: discord.Message) -> None:
        """Record `response` as the reply to the user's `message`."""
        self.purge()
        self._invocations[message.id] = _TrackedInvocation(
            created_at=message.created_at, response=response
        )

    def find_response(self, message: discord.Message) -> Optional[discord.Message]:
        tracked = self._invocations.get(message.id)
        return tracked.response if tracked else None

    def forget(self, message: discord.Message) -> None:
        self._invocations.pop(message.id, None)

    def purge(self, now: Optional[datetime] = None) -> int:
        """Drop entries older than the window; returns how many were removed."""
        now = now or discord.utils.utcnow()
        expired = [
            message_id
            for message_id, tracked in self._invocations.items()
            if now - tracked.created_at > self.max_duration
        ]
        for message_id in expired:
            del self._invocations[message_id]
        return len(expired)


class TrackedContext(commands.Context):
    """
    Command context that edits the tracked reply on re-invocation.

    Slash invocations and commands without edit tracking behave exactly like
    `commands.Context`.
    """

    @property
    def edit_tracker(self) -> Optional[EditTracker]:
        return getattr(self.bot, "edit_tracker", None)

    async def send(self, content: Optional[str] = None, **kwargs: Any) -> discord.Message:  # type: ignore[override]
        tracker = self.edit_tracker
        if self.interaction is not None or tracker is None or not tracks_edits(self.command):
            return await super().send(content, **kwargs)

        previous = tracker.find_response(self.message)
        if previous is not None:
            edit_kwargs = {k: v for k, v in kwargs.items() if k in _EDITABLE_KWARGS}
            try:
                return await previous.edit(content=content, **edit_kwargs)
            except discord.NotFound:
                logger.debug(
                    "Tracked reply was deleted; sending a new one",
                    extra={"message_id": self.message.id},
                )
                tracker.forget(self.message)

        response = await super().send(content, **kwargs)
        tracker.track(self.message, response)
        return response
