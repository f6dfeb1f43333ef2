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

"""Helper utilities for Discord bot operations.

Includes background task tracking for fire-and-forget calls, best-effort
message helpers, and the permission check shared by all admin commands.
"""

import asyncio
from typing import Any, Coroutine, Optional, Set
import discord
import structlog

logger = structlog.get_logger()


class BackgroundTaskManager:
    """Track fire-and-forget tasks so their failures are logged, never raised."""

    def __init__(self) -> None:
        self._tasks: Set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine[Any, Any, Any], name: Optional[str] = None) -> asyncio.Task:
        """
        Schedule a coroutine without awaiting it.

        The task is held until it finishes so it is not garbage collected
        mid-flight.

        Args:
            coro: Coroutine to run
            name: Label used in log output

        Returns:
            The scheduled task
        """
        task = asyncio.create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_task_done)
        return task

    def _on_task_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            return

        error = task.exception()
        if error is not None:
            logger.warning(
                "background_task_failed",
                task=task.get_name(),
                error=str(error),
                error_type=type(error).__name__,
            )

    @property
    def pending(self) -> int:
        """Number of tasks still running."""
        return len(self._tasks)

    async def drain(self) -> None:
        """Wait until every tracked task, including ones spawned meanwhile, has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def cancel_all(self) -> None:
        """Cancel every tracked task and wait for the cancellations."""
        if not self._tasks:
            return

        tasks = list(self._tasks)
        for task in tasks:
            task.cancel()
        await asyncio.gather(*tasks, return_exceptions=True)
        logger.info("background_tasks_cancelled", count=len(tasks))


# ========================================================================
# MODULE-LEVEL HELPER FUNCTIONS
# ========================================================================

def has_manage_guild(member: Any) -> bool:
    """
    Check whether a member holds the Manage Server permission.

    Plain users (e.g. in DMs) carry no guild permissions and are denied.
    """
    permissions = getattr(member, "guild_permissions", None)
    if permissions is None:
        return False
    return bool(permissions.manage_guild)


async def delete_message_safely(message: discord.Message) -> bool:
    """
    Delete a message, logging instead of raising on failure.

    Returns:
        True if the message was deleted, False otherwise
    """
    try:
        await message.delete()
        return True
    except discord.NotFound:
        logger.debug("message_already_deleted", message_id=message.id)
    except discord.Forbidden:
        logger.warning("message_delete_forbidden", message_id=message.id)
    except discord.HTTPException as e:
        logger.warning("message_delete_failed", message_id=message.id, error=str(e))
    return False


async def send_feedback(
    channel: discord.abc.Messageable,
    content: str,
    delete_after: Optional[float],
) -> Optional[discord.Message]:
    """
    Send a short-lived message to a channel.

    discord.py schedules the deletion itself and ignores a failed delete.

    Args:
        channel: Channel to send to
        content: Message text
        delete_after: Seconds before the message is removed (None keeps it)

    Returns:
        The sent message, or None if sending failed
    """
    try:
        return await channel.send(content, delete_after=delete_after)
    except discord.Forbidden:
        logger.warning("feedback_send_forbidden", channel_id=getattr(channel, "id", None))
    except discord.HTTPException as e:
        logger.warning(
            "feedback_send_failed",
            channel_id=getattr(channel, "id", None),
            error=str(e),
        )
    return None
