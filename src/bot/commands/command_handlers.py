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

"""Sequence game and moderation command handlers.

Handlers for the admin slash commands:
- SetNumberChannelCommandHandler: Make the current channel the game channel
- ResetSequenceCommandHandler: Restart the sequence at 1 or a custom value
- UnbanAllCommandHandler: Revoke every ban in the guild
- ResetWarnCommandHandler: Clear a user's warning count

Handlers never touch the interaction response; they return a CommandResult
and the registration layer edits it into the deferred reply.
"""

from typing import Any, Callable, Coroutine, Optional, Protocol
from dataclasses import dataclass
import discord
import structlog

try:
    from bot.helpers import has_manage_guild
    from bot.sequence_state import SequenceState
except ImportError:
    from ..helpers import has_manage_guild  # type: ignore
    from ..sequence_state import SequenceState  # type: ignore

logger = structlog.get_logger()


# ============================================================================
# Protocols (Type-safe dependency contracts)
# ============================================================================

class TaskSpawner(Protocol):
    """Protocol for fire-and-forget task scheduling."""

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> Any:
        """Schedule a coroutine without awaiting it."""
        ...


PermissionCheck = Callable[[Any], bool]


# ============================================================================
# Result Type
# ============================================================================

@dataclass
class CommandResult:
    """Standard result type for command handlers."""

    success: bool
    content: str
    ephemeral: bool = True


# ============================================================================
# Base Handler
# ============================================================================

class AdminCommandHandler:
    """Shared authorization gate for commands that need Manage Server."""

    denied_message = "You do not have permission to use this command."

    def __init__(
        self,
        state: SequenceState,
        permission_check: PermissionCheck = has_manage_guild,
    ) -> None:
        self.state = state
        self.permission_check = permission_check

    def _authorize(self, interaction: discord.Interaction) -> Optional[CommandResult]:
        """Return a denial result, or None if the invoker may proceed."""
        if self.permission_check(interaction.user):
            return None

        logger.info(
            "command_permission_denied",
            command=type(self).__name__,
            user_id=interaction.user.id,
        )
        return CommandResult(success=False, content=self.denied_message)


# ============================================================================
# /setnumberchannel
# ============================================================================

class SetNumberChannelCommandHandler(AdminCommandHandler):
    """Set the invoking channel as the game channel and restart at 1."""

    denied_message = "You do not have permission to set the channel."

    async def execute(self, interaction: discord.Interaction) -> CommandResult:
        denied = self._authorize(interaction)
        if denied:
            return denied

        self.state.set_channel(interaction.channel_id)
        logger.info(
            "number_channel_set",
            channel_id=interaction.channel_id,
            moderator=interaction.user.name,
        )
        return CommandResult(
            success=True,
            content="This channel is now set for the number sequence game.",
        )


# ============================================================================
# /resetsequence
# ============================================================================

class ResetSequenceCommandHandler(AdminCommandHandler):
    """Reset the expected number to a custom start or 1."""

    denied_message = "You do not have permission to reset the sequence."

    async def execute(
        self,
        interaction: discord.Interaction,
        start: Optional[int] = None,
    ) -> CommandResult:
        """Execute resetsequence.

        Args:
            interaction: Discord interaction context
            start: Optional new starting number
        """
        denied = self._authorize(interaction)
        if denied:
            return denied

        value = self.state.reset(start)
        logger.info("sequence_reset_by_command", start=value, moderator=interaction.user.name)
        return CommandResult(
            success=True,
            content=f"The number sequence has been reset to {value}.",
        )


# ============================================================================
# /unbanall
# ============================================================================

class UnbanAllCommandHandler(AdminCommandHandler):
    """Revoke every ban in the guild.

    Unbans are dispatched one task per user and not awaited, so the reply
    can go out while requests are still in flight.
    """

    denied_message = "You do not have permission to unban users."

    def __init__(
        self,
        state: SequenceState,
        tasks: TaskSpawner,
        permission_check: PermissionCheck = has_manage_guild,
    ) -> None:
        super().__init__(state, permission_check)
        self.tasks = tasks

    async def execute(self, interaction: discord.Interaction) -> CommandResult:
        denied = self._authorize(interaction)
        if denied:
            return denied

        guild = interaction.guild
        if guild is None:
            return CommandResult(
                success=False,
                content="This command must be used in a server.",
            )

        try:
            bans = [entry async for entry in guild.bans(limit=None)]
        except Exception as e:
            logger.error(
                "unban_all_fetch_failed",
                guild_id=guild.id,
                error=str(e),
                exc_info=True,
            )
            return CommandResult(
                success=False,
                content="An error occurred while fetching bans.",
            )

        if not bans:
            return CommandResult(success=True, content="There are no banned users.")

        for entry in bans:
            self.tasks.spawn(
                guild.unban(entry.user, reason=f"unbanall by {interaction.user}"),
                name=f"unban_{entry.user.id}",
            )

        logger.info(
            "unban_all_dispatched",
            guild_id=guild.id,
            count=len(bans),
            moderator=interaction.user.name,
        )
        return CommandResult(success=True, content="All users have been unbanned.")


# ============================================================================
# /resetwarn
# ============================================================================

class ResetWarnCommandHandler(AdminCommandHandler):
    """Clear the warning count of a single user."""

    denied_message = "You do not have permission to reset warnings."

    async def execute(
        self,
        interaction: discord.Interaction,
        user: discord.abc.User,
    ) -> CommandResult:
        denied = self._authorize(interaction)
        if denied:
            return denied

        if self.state.clear_warnings(user.id):
            logger.info(
                "warnings_reset_by_command",
                target_id=user.id,
                moderator=interaction.user.name,
            )
            return CommandResult(
                success=True,
                content=f"Warnings for {user} have been reset.",
            )

        return CommandResult(success=True, content=f"{user} has no warnings.")
