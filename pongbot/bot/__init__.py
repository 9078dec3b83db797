"""
Discord bot layer for pongbot.

Holds the `PongBot` class, edit tracking, the feature loader and the base
class feature cogs derive from.
"""

from pongbot.bot.base_cog import BaseCog
from pongbot.bot.edit_tracker import EditTracker, TrackedContext, tracks_edits
from pongbot.bot.loader import FeatureLoader, LoadResult, LoadStats
from pongbot.bot.pong_bot import (
    BotData,
    PongBot,
    build_command_prefix,
    build_intents,
)

__all__ = [
    "BaseCog",
    "BotData",
    "EditTracker",
    "FeatureLoader",
    "LoadResult",
    "LoadStats",
    "PongBot",
    "TrackedContext",
    "build_command_prefix",
    "build_intents",
    "tracks_edits",
]
