"""
Infrastructure exceptions for pongbot.

Purpose
-------
Define the exception hierarchy for startup and infrastructure failures:
configuration errors, database connection problems, schema migrations and
bot construction. Every one of these is fatal at startup; `pongbot.main`
logs them at CRITICAL and exits.

Design Notes
------------
- All exceptions inherit from `PongBotException`.
- Each exception carries:
  - `message`: human-readable description
  - `details`: additional structured context (dict)
  - `severity`: `ErrorSeverity` value for logging
  - `error_code`: short, stable identifier for programmatic use
- `to_dict()` output is suitable for `logger.critical(..., extra=...)`.
"""

from __future__ import annotations

from enum import Enum
from typing import Any, Dict, Optional


class ErrorSeverity(Enum):
    """Error severity levels for logging."""

    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"  # Process cannot continue


class PongBotException(Exception):
    """
    Base exception for all pongbot infrastructure errors.

    Args:
        message: Human-readable error message
        details: Additional structured data about the error
        severity: Error severity level for logging handlers
        error_code: Optional code for programmatic handling

    Example:
        >>> raise PongBotException(
        ...     "Database connection failed",
        ...     {"host": "localhost", "port": 5432}
        ... )
    """

    DEFAULT_SEVERITY: ErrorSeverity = ErrorSeverity.ERROR

    def __init__(
        self,
        message: str,
        details: Optional[Dict[str, Any]] = None,
        severity: Optional[ErrorSeverity] = None,
        error_code: Optional[str] = None,
    ) -> None:
        self.message: str = message
        self.details: Dict[str, Any] = details or {}
        self.severity: ErrorSeverity = severity or self.DEFAULT_SEVERITY
        self.error_code: str = error_code or self.__class__.__name__
        super().__init__(self.message)

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/serialization."""
        return {
            "error_type": self.__class__.__name__,
            "error_code": self.error_code,
            "error_message": self.message,
            "details": self.details,
            "severity": self.severity.value,
        }

    def __str__(self) -> str:
        return self.message

    def __repr__(self) -> str:
        return (
            f"{self.__class__.__name__}("
            f"message={self.message!r}, "
            f"details={self.details!r}, "
            f"severity={self.severity.value!r}"
            ")"
        )


class ConfigurationError(PongBotException):
    """
    Raised when an environment variable is missing or cannot be parsed.

    Args:
        config_key: The environment variable that has issues
        message: Description of the configuration problem
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, config_key: str, message: str) -> None:
        self.config_key = config_key
        super().__init__(
            message,
            details={"config_key": config_key},
            error_code="CONFIG_ERROR",
        )


class DatabaseInitializationError(PongBotException):
    """Raised when the database pool cannot be created or cannot connect."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, message: str, original_error: Optional[Exception] = None) -> None:
        self.original_error = original_error
        details: Dict[str, Any] = {}
        if original_error is not None:
            details = {
                "error": str(original_error),
                "error_type": type(original_error).__name__,
            }
        super().__init__(message, details=details, error_code="DATABASE_INIT_ERROR")


class DatabaseNotInitializedError(PongBotException):
    """Raised when the database is used before initialize() or after shutdown()."""

    def __init__(self, message: str = "DatabaseService is not initialized") -> None:
        super().__init__(message, error_code="DATABASE_NOT_INITIALIZED")


class MigrationError(PongBotException):
    """
    Raised when schema migrations cannot be applied.

    Args:
        message: Description of the failure
        version: Migration version involved, if any
    """

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, message: str, version: Optional[int] = None) -> None:
        self.version = version
        super().__init__(
            message,
            details={"version": version} if version is not None else {},
            error_code="MIGRATION_ERROR",
        )


class BotBuildError(PongBotException):
    """Raised when the bot framework cannot be constructed."""

    DEFAULT_SEVERITY = ErrorSeverity.CRITICAL

    def __init__(self, message: str = "Cannot build the bot framework!") -> None:
        super().__init__(message, error_code="BOT_BUILD_ERROR")
