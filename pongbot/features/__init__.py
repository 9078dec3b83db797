"""
Feature cogs for pongbot.

Every command lives in a feature extension listed in `FEATURE_EXTENSIONS`.
New commands must be added here to be loaded.
"""

FEATURE_EXTENSIONS = (
    "pongbot.features.ping.cog",
    "pongbot.features.help.cog",
)

__all__ = ["FEATURE_EXTENSIONS"]
