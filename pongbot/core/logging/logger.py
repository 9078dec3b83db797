"""
pongbot Logging Subsystem

Console logging for the bot, routed through a QueueHandler so handler I/O
never blocks the event loop the gateway client runs on.

Output is one line per record: JSON in production (or with LOG_JSON=1),
plain text otherwise, with ANSI-colored levels when stdout is a terminal.
Records logged inside a `LogContext` carry that context as `log_context`;
the JSON output nests it under "context" and the text output appends it as
`[key=value ...]`.

Startup calls `setup_logging()` once with defaults so that configuration
warnings are formatted, then `setup_logging(force=True)` after `Config`
has loaded to apply LOG_LEVEL and LOG_JSON.
"""

from __future__ import annotations

import json
import logging
import queue
import sys
import uuid
from contextvars import ContextVar, Token
from dataclasses import dataclass
from datetime import datetime, timezone
from logging import Logger
from logging.handlers import QueueHandler, QueueListener
from typing import Any, Dict, Optional

from pongbot.core.config.config import Config

CONSOLE_FORMAT = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"
QUEUE_MAX_SIZE = 10_000

# Loggers that are too chatty below WARNING.
QUIET_LOGGERS = ("discord", "discord.http", "discord.gateway", "asyncio")

_log_context: ContextVar[Dict[str, Any]] = ContextVar("pongbot_log_context", default={})


@dataclass(frozen=True)
class LoggerConfig:
    """Resolved console settings."""

    level: int
    json: bool
    colors: bool

    @classmethod
    def from_config(cls, level: Optional[str] = None) -> "LoggerConfig":
        """Read settings from `Config`; `level` overrides LOG_LEVEL."""
        name = (level or Config.LOG_LEVEL or "INFO").upper()
        resolved = logging.getLevelName(name)
        if not isinstance(resolved, int):
            resolved = logging.INFO

        use_json = Config.is_production() if Config.LOG_JSON is None else bool(Config.LOG_JSON)
        return cls(level=resolved, json=use_json, colors=not use_json and sys.stdout.isatty())


# ============================================================================
# Filters & Formatters
# ============================================================================


class ContextFilter(logging.Filter):
    """Copy the active LogContext onto each record as `log_context`."""

    def filter(self, record: logging.LogRecord) -> bool:  # type: ignore[override]
        record.log_context = dict(_log_context.get())
        return True


class ConsoleFormatter(logging.Formatter):
    """Single-line text format with optional ANSI level colors."""

    LEVEL_COLORS: Dict[int, str] = {
        logging.DEBUG: "90",
        logging.INFO: "94",
        logging.WARNING: "93",
        logging.ERROR: "91",
        logging.CRITICAL: "1;91",
    }

    def __init__(self, colors: bool = False) -> None:
        super().__init__(fmt=CONSOLE_FORMAT, datefmt=DATE_FORMAT)
        self.colors = colors

    def formatMessage(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        line = super().formatMessage(record)

        color = self.LEVEL_COLORS.get(record.levelno) if self.colors else None
        if color:
            line = line.replace(record.levelname, f"\033[{color}m{record.levelname}\033[0m", 1)

        context = getattr(record, "log_context", None)
        if context:
            line += " [" + " ".join(f"{key}={value}" for key, value in context.items()) + "]"
        return line


# Attributes every LogRecord has; anything else on a record came from `extra=`.
_RECORD_ATTRS = frozenset(vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None))) | {
    "message",
    "asctime",
    "log_context",
}


class JSONFormatter(logging.Formatter):
    """One JSON object per record, with `extra=` fields under "extra"."""

    def format(self, record: logging.LogRecord) -> str:  # type: ignore[override]
        entry: Dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=timezone.utc).isoformat(
                timespec="milliseconds"
            ),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        context = getattr(record, "log_context", None)
        if context:
            entry["context"] = context

        extra = {
            key: value
            for key, value in vars(record).items()
            if key not in _RECORD_ATTRS and not key.startswith("_")
        }
        if extra:
            entry["extra"] = extra

        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        if record.stack_info:
            entry["stack"] = self.formatStack(record.stack_info)

        return json.dumps(entry, ensure_ascii=False, default=str)


class DroppingQueueHandler(QueueHandler):
    """Queue handler that drops records instead of blocking when full."""

    def __init__(self, log_queue: "queue.Queue[logging.LogRecord]") -> None:
        super().__init__(log_queue)
        self.dropped = 0

    def enqueue(self, record: logging.LogRecord) -> None:  # type: ignore[override]
        try:
            self.queue.put_nowait(record)
        except queue.Full:
            self.dropped += 1


# ============================================================================
# Global Setup
# ============================================================================

_queue_listener: Optional[QueueListener] = None
_queue_handler: Optional[DroppingQueueHandler] = None


def _build_console_handler(settings: LoggerConfig) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(settings.level)
    handler.setFormatter(JSONFormatter() if settings.json else ConsoleFormatter(settings.colors))
    return handler


def setup_logging(level: Optional[str] = None, *, force: bool = False) -> None:
    """
    Install the queue-backed console logging stack on the root logger.

    Later calls are no-ops unless `force` is set, which tears the current
    stack down and rebuilds it from the current `Config`. `level` overrides
    `Config.LOG_LEVEL`.
    """
    global _queue_listener, _queue_handler

    if _queue_handler is not None:
        if not force:
            return
        shutdown_logging()

    settings = LoggerConfig.from_config(level)
    root = logging.getLogger()
    root.setLevel(settings.level)
    root.handlers.clear()

    log_queue: "queue.Queue[logging.LogRecord]" = queue.Queue(QUEUE_MAX_SIZE)
    _queue_listener = QueueListener(
        log_queue, _build_console_handler(settings), respect_handler_level=True
    )
    _queue_listener.start()

    _queue_handler = DroppingQueueHandler(log_queue)
    _queue_handler.addFilter(ContextFilter())
    root.addHandler(_queue_handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    logging.getLogger(__name__).debug(
        "Logging initialized",
        extra={
            "log_level": logging.getLevelName(settings.level),
            "json": settings.json,
            "colors": settings.colors,
        },
    )


def shutdown_logging() -> None:
    """Flush queued records and remove the logging stack."""
    global _queue_listener, _queue_handler

    if _queue_handler is None:
        return

    if _queue_listener is not None:
        _queue_listener.stop()
        _queue_listener = None

    root = logging.getLogger()
    root.removeHandler(_queue_handler)
    _queue_handler.close()
    if _queue_handler.dropped:
        sys.stderr.write(f"pongbot logging dropped {_queue_handler.dropped} record(s)\n")
    _queue_handler = None


def get_logger(name: str) -> Logger:
    return logging.getLogger(name)


class LogContext:
    """
    Attach fields to every record logged inside the block.

    Nested contexts inherit the outer fields. A correlation id is generated
    unless one is given or inherited; `None` values are left out.

    >>> async with LogContext(user_id=ctx.author.id, command="pong"):
    ...     logger.info("Command invoked")
    """

    def __init__(self, **fields: Any) -> None:
        self.fields = {key: value for key, value in fields.items() if value is not None}
        self._token: Optional[Token[Dict[str, Any]]] = None

    def __enter__(self) -> "LogContext":
        merged = {**_log_context.get(), **self.fields}
        merged.setdefault("correlation_id", uuid.uuid4().hex[:8])
        self._token = _log_context.set(merged)
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        if self._token is not None:
            _log_context.reset(self._token)
            self._token = None

    async def __aenter__(self) -> "LogContext":
        return self.__enter__()

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        self.__exit__(exc_type, exc_val, exc_tb)
