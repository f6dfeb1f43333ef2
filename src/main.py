"""
Sequence Guard - Main Entry Point

Discord bot running a count-up number sequence game in one channel, plus
admin commands for resetting the game, clearing warnings and mass-unbanning.
"""

from __future__ import annotations

import asyncio
import logging
import signal
import sys
from typing import Optional, Any

import structlog

# Import helpers with support for package vs. flat layout
try:
    # Package-style imports (python -m src.main)
    from .config import Config, load_config, validate_config  # type: ignore
    from .health import HealthCheckServer  # type: ignore
    from .discord_bot import SequenceBot  # type: ignore
except ImportError:
    # Flat layout (tests and direct execution)
    from config import Config, load_config, validate_config  # type: ignore
    from health import HealthCheckServer  # type: ignore
    from discord_bot import SequenceBot  # type: ignore

logger = structlog.get_logger()


def setup_logging(log_level: str, log_format: str) -> None:
    """
    Configure structured logging.

    Args:
        log_level: Logging level (debug, info, warning, error, critical)
        log_format: Output format ("json" or "console")
    """
    level_map: dict[str, int] = {
        "debug": logging.DEBUG,
        "info": logging.INFO,
        "warning": logging.WARNING,
        "error": logging.ERROR,
        "critical": logging.CRITICAL,
    }

    min_level = level_map.get(log_level.lower(), logging.INFO)

    processors: list[Any] = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
    ]

    if log_format == "json":
        processors.append(structlog.processors.format_exc_info)
        processors.append(structlog.processors.JSONRenderer())
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(min_level),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(),
        cache_logger_on_first_use=True,
    )

    logger.info("logging_configured", level=log_level, format=log_format)


class Application:
    """Main application orchestrator: config, health server, Discord bot."""

    def __init__(self) -> None:
        """Initialize application components."""
        self.config: Optional[Config] = None
        self.health_server: Optional[HealthCheckServer] = None
        self.bot: Optional[SequenceBot] = None
        self.shutdown_event: asyncio.Event = asyncio.Event()

    async def setup(self) -> None:
        """Load configuration and initialize core components."""
        logger.info("application_starting")

        try:
            self.config = load_config()
            if not validate_config(self.config):
                raise ValueError("Configuration validation failed")
        except Exception as e:
            logger.error("config_load_failed", error=str(e))
            raise

        setup_logging(self.config.log_level, self.config.log_format)

        self.bot = SequenceBot(
            token=self.config.discord_bot_token,
            bot_name=self.config.bot_name,
            max_warnings=self.config.max_warnings,
            feedback_delete_after=self.config.feedback_delete_after,
            sync_commands=self.config.sync_commands,
        )

        if self.config.health_check_enabled:
            self.health_server = HealthCheckServer(
                host=self.config.health_check_host,
                port=self.config.health_check_port,
                status_provider=self.bot.status_snapshot,
            )

        logger.info(
            "application_configured",
            health_enabled=self.config.health_check_enabled,
            health_port=self.config.health_check_port,
            max_warnings=self.config.max_warnings,
        )

    async def start(self) -> None:
        """Start all application components."""
        logger.info("application_starting_components")
        assert self.config is not None, "Config not loaded"
        assert self.bot is not None, "Bot not initialized"

        if self.health_server is not None:
            await self.health_server.start()
            logger.info(
                "health_server_started",
                url=f"http://{self.config.health_check_host}:"
                f"{self.config.health_check_port}/health",
            )

        await self.bot.connect_bot()
        logger.info("application_running")

    async def stop(self) -> None:
        """Gracefully stop all components."""
        logger.info("application_stopping")

        if self.bot is not None:
            try:
                await self.bot.disconnect_bot()
            except Exception as e:
                logger.error("discord_disconnect_failed", error=str(e))

            logger.debug("discord_disconnected")

        if self.health_server is not None:
            try:
                await self.health_server.stop()
            except Exception as e:
                logger.error("health_server_stop_failed", error=str(e))

            logger.debug("health_server_stopped")

        logger.info("application_stopped")

    async def run(self) -> None:
        """Main application run loop."""
        try:
            await self.setup()
            await self.start()
            await self.shutdown_event.wait()
        except Exception as e:
            logger.error("application_error", error=str(e), exc_info=True)
            raise
        finally:
            await self.stop()


async def main() -> None:
    """Main async entry point."""
    app = Application()

    # Signal handlers for graceful shutdown
    def _signal_handler(signum: int, frame: Any) -> None:
        logger.info("received_signal", signal=signal.Signals(signum).name)
        app.shutdown_event.set()

    # Only register signals on real OS (not always available on Windows/threads)
    try:
        signal.signal(signal.SIGINT, _signal_handler)
        signal.signal(signal.SIGTERM, _signal_handler)
    except (ValueError, OSError) as e:
        logger.debug("signal_handlers_unavailable", error=str(e))

    try:
        await app.run()
    except Exception as e:
        logger.error("fatal_error", error=str(e))
        sys.exit(1)


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        print("\nShutdown complete.")
        sys.exit(0)


if __name__ == "__main__":
    run()
