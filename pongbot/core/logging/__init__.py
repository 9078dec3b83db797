"""
pongbot Logging Infrastructure

Exports the structured logging subsystem, the log context manager,
and the resolved settings type.
"""

from pongbot.core.logging.logger import (
    LogContext,
    LoggerConfig,
    get_logger,
    setup_logging,
    shutdown_logging,
)

__all__ = [
    "setup_logging",
    "shutdown_logging",
    "get_logger",
    "LogContext",
    "LoggerConfig",
]
