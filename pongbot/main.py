"""
pongbot - Application Entry Point
==================================

Bootstrap
---------
- .env loading
- Config validation
- Logging
- Database pool + migrations
- Bot construction
- Signal-driven graceful shutdown

Every startup failure is fatal: it is logged at CRITICAL and the process
exits with status 1.
"""

import asyncio
import signal
import sys
from datetime import timedelta
from typing import Type

from dotenv import find_dotenv, load_dotenv
from dotenv.parser import parse_stream

from pongbot.bot.edit_tracker import EditTracker
from pongbot.bot.pong_bot import BotData, PongBot
from pongbot.core.config.config import Config
from pongbot.core.database.migrations import MigrationRunner
from pongbot.core.database.service import DatabaseService
from pongbot.core.exceptions import (
    BotBuildError,
    ConfigurationError,
    MigrationError,
    PongBotException,
)
from pongbot.core.logging.logger import get_logger, setup_logging, shutdown_logging
from pongbot.features import FEATURE_EXTENSIONS

logger = get_logger(__name__)

DOTENV_HINT = (
    "You have not included a .env file! If this is intentional you can "
    "disable this warning with `DISABLE_NO_DOTENV_WARNING=1`"
)


# ============================================================================
# Application Bootstrap
# ============================================================================

def load_environment() -> bool:
    """
    Load variables from a `.env` file into the process environment.

    Variables already set in the environment win over the file. Nothing is
    loaded unless every line of the file parses.

    Returns:
        True if a `.env` file was found and loaded.

    Raises:
        ConfigurationError: If the file cannot be read or has malformed lines.
    """
    path = find_dotenv(usecwd=True)
    if not path:
        return False

    try:
        with open(path, encoding="utf-8") as stream:
            bad_lines = [binding.original.line for binding in parse_stream(stream) if binding.error]
    except (OSError, UnicodeDecodeError) as exc:
        raise ConfigurationError("DOTENV", f"Could not read .env file {path}: {exc}") from exc

    if bad_lines:
        lines = ", ".join(str(line) for line in bad_lines)
        raise ConfigurationError("DOTENV", f"Could not parse .env file {path} at line(s) {lines}")

    load_dotenv(path, override=False)
    return True


def build_bot(config: Type[Config], data: BotData) -> PongBot:
    """Construct the bot from validated configuration."""
    try:
        return PongBot(
            data=data,
            prefixes=config.PREFIXES,
            extensions=FEATURE_EXTENSIONS,
            edit_tracker=EditTracker(timedelta(seconds=config.EDIT_TRACKER_SECONDS)),
        )
    except Exception as exc:
        raise BotBuildError() from exc


async def _open_database() -> BotData:
    engine = await DatabaseService.initialize(
        Config.DATABASE_URL,
        pool_size=Config.DATABASE_POOL_SIZE,
        max_overflow=Config.DATABASE_MAX_OVERFLOW,
        pool_timeout=Config.DATABASE_POOL_TIMEOUT,
        echo=Config.DATABASE_ECHO,
    )

    try:
        await MigrationRunner(
            engine, Config.MIGRATIONS_DIR, required=Config.MIGRATIONS_DIR_REQUIRED
        ).run()
    except MigrationError as exc:
        await DatabaseService.shutdown()
        raise MigrationError(f"Unable to apply migrations! {exc}", exc.version) from exc

    return BotData(db=engine)


# ============================================================================
# Application Shutdown
# ============================================================================

async def wait_for_shutdown(bot: PongBot, stop_event: asyncio.Event) -> None:
    """Wait for the stop signal, then close the bot and the database pool."""
    await stop_event.wait()
    logger.info("Shutting down the bot!")

    try:
        await bot.close()
    finally:
        if DatabaseService.is_initialized():
            logger.info("Closing database pool", extra=DatabaseService.get_pool_status())
        await DatabaseService.shutdown()


def install_signal_handlers(
    loop: asyncio.AbstractEventLoop, stop_event: asyncio.Event
) -> None:
    """Set `stop_event` on SIGINT and SIGTERM."""
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_event.set)
        except NotImplementedError:
            # Windows event loops have no add_signal_handler
            signal.signal(
                sig, lambda *_: loop.call_soon_threadsafe(stop_event.set)
            )
        logger.debug("Signal handler installed", extra={"signal": sig.name})


# ============================================================================
# Application Entrypoint
# ============================================================================

async def run() -> None:
    """
    Start the bot and run it until shutdown.

    Lifecycle:
        1. Load .env and validate configuration, logging with defaults until
           LOG_LEVEL and LOG_JSON are known
        2. Open the database pool and apply migrations
        3. Build the bot and start the shutdown watcher
        4. Run the bot until a stop signal arrives
    """
    setup_logging()
    dotenv_found = load_environment()
    Config.validate()
    setup_logging(force=True)

    if not dotenv_found and not Config.DISABLE_NO_DOTENV_WARNING:
        logger.warning(DOTENV_HINT)

    logger.info("Configuration loaded", extra=Config.get_config_summary())
    if Config.PREFIXES.primary is None:
        logger.info("PREFIXES not set; prefix commands only respond to mentions")

    data = await _open_database()

    try:
        bot = build_bot(Config, data)
    except BotBuildError:
        await DatabaseService.shutdown()
        raise

    stop_event = asyncio.Event()
    install_signal_handlers(asyncio.get_running_loop(), stop_event)
    shutdown_task = asyncio.create_task(
        wait_for_shutdown(bot, stop_event), name="pongbot-shutdown"
    )

    logger.info("Starting the bot!")
    try:
        await bot.start(Config.DISCORD_TOKEN)
    except BaseException:
        # Report the startup failure, not a teardown error it caused
        stop_event.set()
        try:
            await shutdown_task
        except Exception:
            logger.error("Error during shutdown", exc_info=True)
        raise

    stop_event.set()
    await shutdown_task


def main() -> None:
    """Process entry point."""
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Bot manually stopped via keyboard interrupt.")
    except PongBotException as exc:
        setup_logging()
        logger.critical(exc.message, extra=exc.to_dict(), exc_info=exc.__cause__ is not None)
        sys.exit(1)
    except Exception as exc:
        setup_logging()
        logger.critical(f"Fatal error: {exc}", exc_info=True)
        sys.exit(1)
    finally:
        shutdown_logging()


if __name__ == "__main__":
    main()
