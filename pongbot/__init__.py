"""
pongbot - a minimal Discord bot scaffold.

Connects to the Discord gateway through discord.py, registers a health-check
`pong` command and a `help` listing, and keeps a PostgreSQL connection pool
open for the lifetime of the process.
"""

__version__ = "0.1.0"
