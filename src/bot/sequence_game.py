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

"""Number sequence game driven by chat messages in the configured channel."""

import re
from typing import Any, List, Optional
import discord
import structlog

from .helpers import BackgroundTaskManager, delete_message_safely, send_feedback
from .sequence_state import SequenceState

logger = structlog.get_logger()

FEEDBACK_DELETE_AFTER = 5.0

# Leading integer of a token: "12abc" -> 12, "abc" -> no match
_INTEGER_PREFIX = re.compile(r"^[+-]?[0-9]+")

CORRECT_TEXT = "Correct!"
WRONG_NUMBER_TEXT = (
    "⚠️ Wrong number! The next number should be **{expected}**. "
    "You have {remaining} warning(s) left."
)
MAX_WARNINGS_TEXT = "{mention}, you have reached the maximum number of warnings."


def parse_numbers(content: str) -> List[int]:
    """
    Extract integers from whitespace-separated tokens, in order.

    Tokens that do not start with an integer are discarded.
    """
    numbers: List[int] = []
    for token in content.split():
        match = _INTEGER_PREFIX.match(token)
        if match:
            numbers.append(int(match.group(0)))
    return numbers


class SequenceGameEngine:
    """Advance or penalize the shared counter for each number in a message."""

    def __init__(
        self,
        state: SequenceState,
        tasks: BackgroundTaskManager,
        feedback_delete_after: Optional[float] = FEEDBACK_DELETE_AFTER,
    ) -> None:
        """
        Initialize the game engine.

        Args:
            state: Shared game state
            tasks: Tracker for fire-and-forget sends and deletes
            feedback_delete_after: Seconds before feedback messages are removed
        """
        self.state = state
        self.tasks = tasks
        self.feedback_delete_after = feedback_delete_after

    def should_handle(self, message: discord.Message) -> bool:
        """Only human messages in the configured channel take part."""
        if message.author.bot:
            return False
        if not self.state.is_active:
            return False
        return self.state.is_game_channel(message.channel.id)

    async def handle_message(self, message: discord.Message) -> None:
        """
        Run one message through the game.

        Every parsed number is checked in order against the live counter, so
        "5 6" with 5 expected advances twice. Sends and deletes are spawned
        in the background; the counter is never read across an await.
        """
        if not self.should_handle(message):
            return

        numbers = parse_numbers(message.content)
        if not numbers:
            logger.debug(
                "sequence_noise_deleted",
                message_id=message.id,
                author_id=message.author.id,
            )
            self._delete(message)
            return

        for number in numbers:
            if number == self.state.expected_number:
                self._on_correct(message, number)
            else:
                self._on_wrong(message, number)

    def _on_correct(self, message: discord.Message, number: int) -> None:
        self._send(message.channel, CORRECT_TEXT)
        next_number = self.state.advance()
        logger.info(
            "sequence_advanced",
            number=number,
            next_number=next_number,
            author_id=message.author.id,
        )

    def _on_wrong(self, message: discord.Message, number: int) -> None:
        self._delete(message)

        author = message.author
        count = self.state.add_warning(author.id)
        remaining = self.state.max_warnings - count

        logger.info(
            "wrong_number",
            number=number,
            expected=self.state.expected_number,
            author_id=author.id,
            warnings=count,
            remaining=remaining,
        )

        if remaining > 0:
            text = WRONG_NUMBER_TEXT.format(
                expected=self.state.expected_number,
                remaining=remaining,
            )
        else:
            text = MAX_WARNINGS_TEXT.format(mention=author.mention)
        self._send(message.channel, text)

    def _send(self, channel: Any, content: str) -> None:
        self.tasks.spawn(
            send_feedback(channel, content, self.feedback_delete_after),
            name="sequence_feedback",
        )

    def _delete(self, message: discord.Message) -> None:
        self.tasks.spawn(delete_message_safely(message), name="sequence_delete")
