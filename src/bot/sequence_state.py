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

"""Shared state for the number sequence game.

Owned by the bot and injected into both the command handlers and the game
engine. Held in memory only; a restart resets everything.

All mutations happen on the event loop thread without an intervening await,
so no lock is needed as long as events are delivered to a single loop.
"""

from dataclasses import dataclass, field
from typing import Dict, Optional
import structlog

logger = structlog.get_logger()

DEFAULT_START = 1
DEFAULT_MAX_WARNINGS = 3


@dataclass
class SequenceState:
    """Mutable game register, active channel pointer, and warning tally."""

    expected_number: int = DEFAULT_START
    """Next integer the game expects."""

    allowed_channel_id: Optional[int] = None
    """Channel where the game runs. None means the game is inactive."""

    warnings: Dict[int, int] = field(default_factory=dict)
    """user_id -> wrong guess count. Absence means zero."""

    max_warnings: int = DEFAULT_MAX_WARNINGS

    def __post_init__(self) -> None:
        if self.max_warnings < 1:
            raise ValueError(f"max_warnings must be >= 1, got {self.max_warnings}")
        if self.expected_number < 1:
            raise ValueError(
                f"expected_number must be >= 1, got {self.expected_number}"
            )

    @property
    def is_active(self) -> bool:
        """True once a channel has been configured."""
        return self.allowed_channel_id is not None

    def is_game_channel(self, channel_id: int) -> bool:
        return self.allowed_channel_id is not None and channel_id == self.allowed_channel_id

    def set_channel(self, channel_id: int) -> None:
        """Move the game to a channel and restart the sequence at 1."""
        previous = self.allowed_channel_id
        self.allowed_channel_id = channel_id
        self.expected_number = DEFAULT_START
        logger.info(
            "sequence_channel_set",
            channel_id=channel_id,
            previous_channel_id=previous,
        )

    def reset(self, start: Optional[int] = None) -> int:
        """
        Reset the expected number.

        Args:
            start: New starting value. None or 0 fall back to 1, and
                anything below 1 is clamped to 1.

        Returns:
            The value the sequence was reset to.
        """
        new_value = start if start else DEFAULT_START
        if new_value < DEFAULT_START:
            logger.warning("sequence_reset_start_clamped", requested=start)
            new_value = DEFAULT_START

        self.expected_number = new_value
        logger.info("sequence_reset", expected_number=new_value)
        return new_value

    def advance(self) -> int:
        """Accept the current number and move to the next. Returns the new value."""
        self.expected_number += 1
        return self.expected_number

    def add_warning(self, user_id: int) -> int:
        """Record a wrong guess for a user. Returns their updated count."""
        count = self.warnings.get(user_id, 0) + 1
        self.warnings[user_id] = count
        return count

    def remaining_warnings(self, user_id: int) -> int:
        """Warnings left before the maximum. Zero or negative once reached."""
        return self.max_warnings - self.warnings.get(user_id, 0)

    def clear_warnings(self, user_id: int) -> bool:
        """
        Drop a user's warning entry.

        Returns:
            True if the user had warnings, False otherwise
        """
        if not self.warnings.get(user_id):
            return False

        del self.warnings[user_id]
        logger.info("warnings_cleared", user_id=user_id)
        return True
