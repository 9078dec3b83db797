"""
Unit tests for the exception hierarchy.
"""

from pongbot.core.exceptions import (
    BotBuildError,
    ConfigurationError,
    DatabaseInitializationError,
    ErrorSeverity,
    MigrationError,
    PongBotException,
)


class TestExceptions:
    def test_configuration_error(self):
        error = ConfigurationError("PREFIXES", "Could not parse prefixes from environment variables")

        assert str(error) == "Could not parse prefixes from environment variables"
        assert error.details == {"config_key": "PREFIXES"}
        assert error.severity is ErrorSeverity.CRITICAL

    def test_database_error_keeps_original(self):
        original = OSError("connection refused")

        error = DatabaseInitializationError("Failed to connect to database", original)

        assert error.original_error is original
        assert error.details["error_type"] == "OSError"

    def test_to_dict_is_safe_as_log_extra(self):
        data = MigrationError("Migration 3 failed", 3).to_dict()

        assert data["error_message"] == "Migration 3 failed"
        assert data["details"] == {"version": 3}
        assert "message" not in data

    def test_bot_build_error_default_message(self):
        assert BotBuildError().message == "Cannot build the bot framework!"

    def test_all_share_a_base(self):
        for error in (
            BotBuildError(),
            MigrationError("x"),
            ConfigurationError("KEY", "x"),
        ):
            assert isinstance(error, PongBotException)
