# Copyright (c) 2025 Stephen Clau
#
# This file is part of Sequence Guard.
#
# Sequence Guard is dual-licensed:
#
# 1. GNU Affero General Public License v3.0 (AGPL-3.0)
#    See LICENSE file for full terms
#
# 2. Commercial License
#    For proprietary use without AGPL requirements
#    Contact: licensing@laudiversified.com
#
# SPDX-License-Identifier: AGPL-3.0-only OR Commercial

"""Discord bot client for the number sequence game.

Delegates concerns to the bot package:
- bot.sequence_state: Shared game state (counter, channel, warnings)
- bot.sequence_game: Chat message handling for the game channel
- bot.helpers: Background task tracking and best-effort message helpers
- bot.commands: Slash command registration
"""

import asyncio
from typing import Any, Dict, Optional

import discord
from discord import app_commands
import structlog

try:
    from bot import SequenceState, SequenceGameEngine, BackgroundTaskManager
    from bot.sequence_game import FEEDBACK_DELETE_AFTER
    from bot.sequence_state import DEFAULT_MAX_WARNINGS
    from bot.commands import register_sequence_commands
except ImportError:
    try:
        from .bot import SequenceState, SequenceGameEngine, BackgroundTaskManager  # type: ignore
        from .bot.sequence_game import FEEDBACK_DELETE_AFTER  # type: ignore
        from .bot.sequence_state import DEFAULT_MAX_WARNINGS  # type: ignore
        from .bot.commands import register_sequence_commands  # type: ignore
    except ImportError:
        raise ImportError("Could not import bot modules from bot/")

logger = structlog.get_logger()

READY_TIMEOUT = 30.0


class SequenceBot(discord.Client):
    """Discord client running the sequence game and its admin commands."""

    def __init__(
        self,
        token: str,
        bot_name: str = "Sequence Guard",
        *,
        max_warnings: int = DEFAULT_MAX_WARNINGS,
        feedback_delete_after: Optional[float] = FEEDBACK_DELETE_AFTER,
        sync_commands: bool = True,
        intents: Optional[discord.Intents] = None,
    ):
        """
        Initialize Discord bot.

        Args:
            token: Discord bot token
            bot_name: Display name for the bot
            max_warnings: Wrong guesses before the maximum-warnings message
            feedback_delete_after: Seconds before game feedback is removed
            sync_commands: Overwrite the global slash commands on first ready
            intents: Discord intents (auto-configured if None)
        """
        if intents is None:
            intents = discord.Intents.default()
            intents.guilds = True
            intents.guild_messages = True
            intents.message_content = True  # Required to read guesses

        super().__init__(intents=intents)

        self.token = token
        self.bot_name = bot_name
        self.sync_commands = sync_commands
        self.tree = app_commands.CommandTree(self)
        self._ready_event = asyncio.Event()
        self._connected = False
        self._commands_synced = False
        self._connection_task: Optional[asyncio.Task] = None

        self.sequence_state = SequenceState(max_warnings=max_warnings)
        self.background_tasks = BackgroundTaskManager()
        self.game_engine = SequenceGameEngine(
            state=self.sequence_state,
            tasks=self.background_tasks,
            feedback_delete_after=feedback_delete_after,
        )

        logger.info(
            "discord_bot_initialized",
            bot_name=bot_name,
            max_warnings=max_warnings,
            feedback_delete_after=feedback_delete_after,
        )

    # ========================================================================
    # Bot Lifecycle
    # ========================================================================

    async def setup_hook(self) -> None:
        """Called when the bot is starting up. Set up commands here."""
        register_sequence_commands(self)
        logger.info("discord_bot_setup_complete")

    async def sync_application_commands(self) -> None:
        """Overwrite the global application commands with the registered set."""
        try:
            logger.info("commands_sync_started")
            synced = await self.tree.sync()
            self._commands_synced = True
            logger.info(
                "commands_synced_globally",
                count=len(synced),
                commands=[cmd.name for cmd in synced],
            )
        except Exception as e:
            logger.error("command_sync_failed", error=str(e), exc_info=True)

    # ========================================================================
    # Discord Event Handlers
    # ========================================================================

    async def on_ready(self) -> None:
        """Called when bot is ready (fires on initial connect AND reconnects)."""
        if self.user is None:
            logger.error("discord_bot_ready_but_no_user")
            return

        logger.info(
            "discord_bot_ready",
            bot_name=self.user.name,
            bot_id=self.user.id,
            guilds=len(self.guilds),
        )

        self._connected = True
        self._ready_event.set()

        if self.sync_commands and not self._commands_synced:
            await self.sync_application_commands()
        elif not self.sync_commands:
            logger.info("commands_sync_skipped")

    async def on_message(self, message: discord.Message) -> None:
        """Feed chat messages to the sequence game."""
        await self.game_engine.handle_message(message)

    async def on_disconnect(self) -> None:
        """Called when bot disconnects."""
        self._connected = False
        logger.warning("discord_bot_disconnected")

    async def on_error(self, event: str, *args: Any, **kwargs: Any) -> None:
        """Called when an event handler raises."""
        logger.error("discord_bot_error", event=event, exc_info=True)

    # ========================================================================
    # Connection Management
    # ========================================================================

    async def connect_bot(self) -> None:
        """Log in and connect to the gateway, waiting until ready."""
        try:
            logger.info("connecting_to_discord")
            await self.login(self.token)
        except discord.LoginFailure as e:
            logger.error("discord_login_failed", error=str(e))
            raise ConnectionError(
                "Discord login failed: the bot token was rejected. "
                "Check DISCORD_BOT_TOKEN."
            ) from e

        self._connection_task = asyncio.create_task(self.connect())

        try:
            await asyncio.wait_for(self._ready_event.wait(), timeout=READY_TIMEOUT)
        except asyncio.TimeoutError:
            logger.error("discord_bot_connection_timeout", timeout=READY_TIMEOUT)
            await self._cancel_connection_task()
            raise ConnectionError(
                f"Discord bot connection timed out after {READY_TIMEOUT:.0f} seconds"
            )

        logger.info("discord_bot_connected")

    async def _cancel_connection_task(self) -> None:
        if self._connection_task is None:
            return
        if not self._connection_task.done():
            self._connection_task.cancel()
            try:
                await self._connection_task
            except asyncio.CancelledError:
                pass
        self._connection_task = None

    async def disconnect_bot(self) -> None:
        """Disconnect from Discord and cancel pending background work."""
        if not self._connected and self._connection_task is None:
            return

        logger.info("disconnecting_from_discord")
        self._connected = False

        await self.background_tasks.cancel_all()
        await self._cancel_connection_task()

        if not self.is_closed():
            await self.close()
        logger.info("discord_bot_disconnected")

    # ========================================================================
    # Status
    # ========================================================================

    @property
    def is_connected(self) -> bool:
        """Check if bot is connected to Discord."""
        return self._connected

    def status_snapshot(self) -> Dict[str, Any]:
        """Connection and game status for the health endpoint."""
        return {
            "discord_connected": self._connected,
            "game_active": self.sequence_state.is_active,
        }
