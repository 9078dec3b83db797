"""
Static configuration management for pongbot.

Purpose
-------
Provides centralized static configuration loaded from environment variables
with sensible defaults and validation. Values are read at runtime so that
changing them never needs a reinstall.

Responsibilities
----------------
- Read required credentials (bot token, database URL)
- Parse the command prefix list
- Parse the flag that silences the missing `.env` hint
- Provide bounds-checked database pool tuning
- Provide a non-sensitive summary for startup logs

Non-Responsibilities
--------------------
- Loading the `.env` file itself (handled by `pongbot.main.load_environment`)
- Secrets management (use environment variables)

Environment Variables
---------------------
Required:
- DISCORD_TOKEN: Bot authentication token
- DATABASE_URL: PostgreSQL connection string

Optional (with defaults):
- PREFIXES: Space-separated prefix list (default: no prefix commands)
- DISABLE_NO_DOTENV_WARNING: "1" or "0" (default: "0")
- ENVIRONMENT: Environment type (default: development)
- LOG_LEVEL: Logging level (default: INFO)
- LOG_JSON: JSON console output (default: on in production)
- DATABASE_POOL_SIZE: Connection pool size (default: 10)
- DATABASE_MAX_OVERFLOW: Extra connections beyond the pool (default: 10)
- DATABASE_POOL_TIMEOUT: Seconds to wait for a connection (default: 30)
- DATABASE_ECHO: Echo SQL statements (default: False)
- MIGRATIONS_DIR: Directory holding *.sql migrations (default: ./migrations);
  when set explicitly the directory must exist
- EDIT_TRACKER_SECONDS: Window for re-running edited commands (default: 120)
"""

from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Optional, Tuple

from pongbot import __version__
from pongbot.core.exceptions import ConfigurationError

logger = logging.getLogger(__name__)


# ============================================================================
# Value Parsers
# ============================================================================


@dataclass(frozen=True)
class PrefixOptions:
    """
    Prefixes a plain-text message may start with to invoke a command.

    `primary` is None when prefix commands are disabled; `additional` keeps
    the order the prefixes were configured in.
    """

    primary: Optional[str] = None
    additional: Tuple[str, ...] = ()

    @property
    def all(self) -> Tuple[str, ...]:
        if self.primary is None:
            return self.additional
        return (self.primary, *self.additional)


def parse_prefixes(raw: Optional[str]) -> PrefixOptions:
    """
    Split a `PREFIXES` value into the primary prefix and additional prefixes.

    Parameters
    ----------
    raw:
        The raw environment value, or None when the variable is not set.

    Returns
    -------
    PrefixOptions
        No primary and no additional prefixes when `raw` is None.

    Raises
    ------
    ConfigurationError
        If the value holds no prefix at all.

    Example
    -------
    >>> parse_prefixes("! ? pb ")
    PrefixOptions(primary='!', additional=('?', 'pb'))
    >>> parse_prefixes(None)
    PrefixOptions(primary=None, additional=())
    """
    if raw is None:
        return PrefixOptions()

    tokens = raw.split()
    if not tokens:
        raise ConfigurationError(
            "PREFIXES", "Could not parse prefixes from environment variables"
        )

    return PrefixOptions(primary=tokens[0], additional=tuple(tokens[1:]))


def parse_dotenv_flag(raw: Optional[str]) -> bool:
    """
    Parse `DISABLE_NO_DOTENV_WARNING`.

    Only "1" and "0" are accepted; an unset variable means the hint stays on.

    Raises
    ------
    ConfigurationError
        For any other value.
    """
    if raw is None or raw == "0":
        return False
    if raw == "1":
        return True
    raise ConfigurationError(
        "DISABLE_NO_DOTENV_WARNING",
        "DISABLE_NO_DOTENV_WARNING environment variable is equal to something "
        "other than 1 or 0",
    )


def normalize_database_url(url: str) -> str:
    """Point plain postgres URLs at the asyncpg driver."""
    for scheme in ("postgres://", "postgresql://"):
        if url.startswith(scheme):
            return "postgresql+asyncpg://" + url[len(scheme):]
    return url


# ============================================================================
# Main Configuration Class
# ============================================================================


class Config:
    """
    Centralized static configuration for pongbot.

    Singleton via class attributes; call `Config.validate()` once at startup
    after the `.env` file has been loaded.

    Usage
    -----
    >>> Config.validate()
    >>> token = Config.DISCORD_TOKEN
    >>> Config.PREFIXES.primary
    '!'
    """

    _validated: bool = False

    # =========================================================================
    # Discord Configuration
    # =========================================================================

    DISCORD_TOKEN: str = ""
    PREFIXES: PrefixOptions = PrefixOptions()
    DISABLE_NO_DOTENV_WARNING: bool = False
    EDIT_TRACKER_SECONDS: int = 120

    # =========================================================================
    # Database Configuration
    # =========================================================================

    DATABASE_URL: str = ""
    DATABASE_POOL_SIZE: int = 10
    DATABASE_MAX_OVERFLOW: int = 10
    DATABASE_POOL_TIMEOUT: int = 30
    DATABASE_ECHO: bool = False
    MIGRATIONS_DIR: Path = Path("migrations")
    MIGRATIONS_DIR_REQUIRED: bool = False

    # =========================================================================
    # Environment Configuration
    # =========================================================================

    ENVIRONMENT: str = "development"
    LOG_LEVEL: str = "INFO"
    LOG_JSON: Optional[bool] = None

    # =========================================================================
    # Bot Metadata
    # =========================================================================

    BOT_VERSION: str = __version__
    BOT_DESCRIPTION: str = "A minimal Discord bot scaffold"

    # =========================================================================
    # Helper Methods
    # =========================================================================

    @classmethod
    def _required_str(cls, key: str, message: str) -> str:
        value = os.getenv(key)
        if not value:
            raise ConfigurationError(key, message)
        return value

    @classmethod
    def _safe_int(
        cls,
        key: str,
        default: int,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None,
    ) -> int:
        """
        Safely parse integer from environment with validation.

        Out-of-range and unparseable values fall back to `default` with a
        warning.

        Example
        -------
        >>> Config._safe_int("DATABASE_POOL_SIZE", 10, min_val=1, max_val=200)
        10
        """
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        try:
            value = int(raw_value)
        except ValueError:
            logger.warning(
                f"{key}='{raw_value}' is not a valid integer, using default {default}"
            )
            return default

        if min_val is not None and value < min_val:
            logger.warning(
                f"{key}={value} is below minimum {min_val}, using default {default}"
            )
            return default

        if max_val is not None and value > max_val:
            logger.warning(
                f"{key}={value} exceeds maximum {max_val}, using default {default}"
            )
            return default

        return value

    @classmethod
    def _safe_bool(cls, key: str, default: Optional[bool]) -> Optional[bool]:
        """
        Safely parse boolean from environment.

        Recognizes: true/false, yes/no, 1/0, on/off (case-insensitive).
        """
        raw_value = os.getenv(key)
        if raw_value is None:
            return default

        normalized = raw_value.lower().strip()
        if normalized in {"true", "yes", "1", "on"}:
            return True
        if normalized in {"false", "no", "0", "off"}:
            return False

        logger.warning(
            f"{key}='{raw_value}' is not a valid boolean, using default {default}"
        )
        return default

    # =========================================================================
    # Configuration Loading
    # =========================================================================

    @classmethod
    def load(cls) -> None:
        """
        Load all configuration from environment variables.

        Raises
        ------
        ConfigurationError
            If a required variable is missing or a strict value is malformed.
        """
        # Discord Configuration
        cls.DISCORD_TOKEN = cls._required_str(
            "DISCORD_TOKEN", "No discord token found in environment variables"
        )
        cls.PREFIXES = parse_prefixes(os.getenv("PREFIXES"))
        cls.DISABLE_NO_DOTENV_WARNING = parse_dotenv_flag(
            os.getenv("DISABLE_NO_DOTENV_WARNING")
        )
        cls.EDIT_TRACKER_SECONDS = cls._safe_int(
            "EDIT_TRACKER_SECONDS", 120, min_val=0, max_val=3600
        )

        # Database Configuration
        cls.DATABASE_URL = normalize_database_url(
            cls._required_str(
                "DATABASE_URL", "No database url found in environment variables"
            )
        )
        cls.DATABASE_POOL_SIZE = cls._safe_int(
            "DATABASE_POOL_SIZE", 10, min_val=1, max_val=200
        )
        cls.DATABASE_MAX_OVERFLOW = cls._safe_int(
            "DATABASE_MAX_OVERFLOW", 10, min_val=0, max_val=200
        )
        cls.DATABASE_POOL_TIMEOUT = cls._safe_int(
            "DATABASE_POOL_TIMEOUT", 30, min_val=1, max_val=600
        )
        cls.DATABASE_ECHO = bool(cls._safe_bool("DATABASE_ECHO", False))
        cls.MIGRATIONS_DIR = Path(os.getenv("MIGRATIONS_DIR") or "migrations")
        cls.MIGRATIONS_DIR_REQUIRED = bool(os.getenv("MIGRATIONS_DIR"))

        # Environment Configuration
        cls.ENVIRONMENT = os.getenv("ENVIRONMENT", "development").lower()
        cls.LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
        cls.LOG_JSON = cls._safe_bool("LOG_JSON", None)

    @classmethod
    def validate(cls) -> None:
        """
        Load and validate configuration on startup.

        Raises
        ------
        ConfigurationError
            If required config values are missing or invalid.
        """
        cls._validated = False
        cls.load()

        valid_log_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if cls.LOG_LEVEL not in valid_log_levels:
            logger.warning(f"Invalid LOG_LEVEL '{cls.LOG_LEVEL}', using INFO")
            cls.LOG_LEVEL = "INFO"

        cls._validated = True

    # =========================================================================
    # Environment Checks
    # =========================================================================

    @classmethod
    def is_production(cls) -> bool:
        """Check if running in production environment."""
        return cls.ENVIRONMENT == "production"

    @classmethod
    def is_validated(cls) -> bool:
        return cls._validated

    # =========================================================================
    # Summary
    # =========================================================================

    @classmethod
    def get_config_summary(cls) -> Dict[str, Any]:
        """
        Get non-sensitive configuration summary for debugging.

        Example
        -------
        >>> Config.get_config_summary()["discord_token_set"]
        True
        """
        return {
            "environment": cls.ENVIRONMENT,
            "log_level": cls.LOG_LEVEL,
            "primary_prefix": cls.PREFIXES.primary,
            "additional_prefixes": list(cls.PREFIXES.additional),
            "edit_tracker_seconds": cls.EDIT_TRACKER_SECONDS,
            "database_pool_size": cls.DATABASE_POOL_SIZE,
            "database_max_overflow": cls.DATABASE_MAX_OVERFLOW,
            "migrations_dir": str(cls.MIGRATIONS_DIR),
            "bot_version": cls.BOT_VERSION,
            "discord_token_set": bool(cls.DISCORD_TOKEN),
            "database_url_set": bool(cls.DATABASE_URL),
        }
