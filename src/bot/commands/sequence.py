"""Sequence game slash command registration.

Registers four top-level application commands:

- /setnumberchannel: make this channel the game channel
- /resetsequence [start]: restart the sequence
- /unbanall: revoke every ban in the server
- /resetwarn <user>: clear a user's warnings

Every command defers an ephemeral reply first, then edits the handler's
text into it.
"""

from typing import Any, Awaitable, Callable, Optional, Protocol, runtime_checkable
import discord
from discord import app_commands
import structlog

try:
    from bot.commands.command_handlers import (
        CommandResult,
        SetNumberChannelCommandHandler,
        ResetSequenceCommandHandler,
        UnbanAllCommandHandler,
        ResetWarnCommandHandler,
    )
except ImportError:
    from .command_handlers import (  # type: ignore
        CommandResult,
        SetNumberChannelCommandHandler,
        ResetSequenceCommandHandler,
        UnbanAllCommandHandler,
        ResetWarnCommandHandler,
    )

logger = structlog.get_logger()

GENERIC_ERROR_TEXT = "An unexpected error occurred. Please try again later."

# ════════════════════════════════════════════════════════════════════════════
# TYPE PROTOCOL: SequenceBotLike (for type safety)
# ════════════════════════════════════════════════════════════════════════════

@runtime_checkable
class SequenceBotLike(Protocol):
    """Protocol defining expected bot attributes for sequence commands."""
    sequence_state: Any
    background_tasks: Any
    tree: app_commands.CommandTree


# ════════════════════════════════════════════════════════════════════════════
# 🔧 HELPER: Deferred Response Handling
# ════════════════════════════════════════════════════════════════════════════

async def send_command_response(
    interaction: discord.Interaction,
    result: CommandResult,
) -> None:
    """Edit the handler's text into the deferred reply."""
    try:
        await interaction.edit_original_response(content=result.content)
    except discord.HTTPException as e:
        logger.error(
            "command_response_edit_failed",
            command=getattr(interaction.command, "name", None),
            error=str(e),
        )


async def run_deferred(
    interaction: discord.Interaction,
    execute: Callable[[], Awaitable[CommandResult]],
) -> None:
    """
    Acknowledge the command, run the handler, and finalize the reply.

    The defer goes out before any work so the platform's response timeout
    is never hit.
    """
    command_name = getattr(interaction.command, "name", None)
    try:
        await interaction.response.defer(ephemeral=True)
    except discord.HTTPException as e:
        logger.error("command_defer_failed", command=command_name, error=str(e))
        return

    try:
        result = await execute()
    except Exception as e:
        logger.error(
            "command_handler_exception",
            command=command_name,
            error=str(e),
            exc_info=True,
        )
        result = CommandResult(success=False, content=GENERIC_ERROR_TEXT)

    await send_command_response(interaction, result)


# ════════════════════════════════════════════════════════════════════════════
# 🔧 HELPER: Initialize All Command Handlers
# ════════════════════════════════════════════════════════════════════════════

setnumberchannel_handler: Optional[SetNumberChannelCommandHandler] = None
resetsequence_handler: Optional[ResetSequenceCommandHandler] = None
unbanall_handler: Optional[UnbanAllCommandHandler] = None
resetwarn_handler: Optional[ResetWarnCommandHandler] = None


def _initialize_all_handlers(bot: SequenceBotLike) -> None:
    """Initialize the command handlers with the bot's shared state."""
    global setnumberchannel_handler, resetsequence_handler
    global unbanall_handler, resetwarn_handler

    setnumberchannel_handler = SetNumberChannelCommandHandler(state=bot.sequence_state)
    resetsequence_handler = ResetSequenceCommandHandler(state=bot.sequence_state)
    unbanall_handler = UnbanAllCommandHandler(
        state=bot.sequence_state,
        tasks=bot.background_tasks,
    )
    resetwarn_handler = ResetWarnCommandHandler(state=bot.sequence_state)

    logger.info("all_handlers_initialized_complete", total=4)


def register_sequence_commands(bot: SequenceBotLike) -> None:
    """
    Register the sequence game and moderation commands on the bot's tree.

    Args:
        bot: Bot exposing sequence_state, background_tasks and tree
    """
    _initialize_all_handlers(bot)

    @app_commands.command(
        name="setnumberchannel",
        description="Sets this channel as the number sequence game channel.",
    )
    async def setnumberchannel_command(interaction: discord.Interaction) -> None:
        assert setnumberchannel_handler is not None
        await run_deferred(
            interaction,
            lambda: setnumberchannel_handler.execute(interaction),
        )

    @app_commands.command(
        name="resetsequence",
        description="Resets the number sequence to a custom start limit.",
    )
    @app_commands.describe(start="The custom starting number for the sequence")
    async def resetsequence_command(
        interaction: discord.Interaction,
        start: Optional[app_commands.Range[int, 1]] = None,
    ) -> None:
        assert resetsequence_handler is not None
        await run_deferred(
            interaction,
            lambda: resetsequence_handler.execute(interaction, start=start),
        )

    @app_commands.command(
        name="unbanall",
        description="Unbans all users from the server.",
    )
    async def unbanall_command(interaction: discord.Interaction) -> None:
        assert unbanall_handler is not None
        await run_deferred(
            interaction,
            lambda: unbanall_handler.execute(interaction),
        )

    @app_commands.command(
        name="resetwarn",
        description="Resets warnings for a specific user.",
    )
    @app_commands.describe(user="The user whose warnings should be reset")
    async def resetwarn_command(
        interaction: discord.Interaction,
        user: discord.User,
    ) -> None:
        assert resetwarn_handler is not None
        await run_deferred(
            interaction,
            lambda: resetwarn_handler.execute(interaction, user=user),
        )

    for command in (
        setnumberchannel_command,
        resetsequence_command,
        unbanall_command,
        resetwarn_command,
    ):
        bot.tree.add_command(command)

    logger.info(
        "sequence_commands_registered",
        commands=["setnumberchannel", "resetsequence", "unbanall", "resetwarn"],
    )
