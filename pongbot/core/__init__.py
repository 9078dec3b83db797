"""
Core infrastructure layer for pongbot.

Provides configuration, logging, the database subsystem and the exception
hierarchy. Feature cogs import from the submodules directly; this module
performs no I/O.
"""
