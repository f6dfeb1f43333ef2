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

"""Tests for bot/sequence_state.py - SequenceState mutations and invariants."""

import pytest

from bot.sequence_state import SequenceState, DEFAULT_MAX_WARNINGS


class TestSequenceStateDefaults:
    """Initial state and construction validation."""

    def test_defaults(self, state: SequenceState) -> None:
        assert state.expected_number == 1
        assert state.allowed_channel_id is None
        assert state.warnings == {}
        assert state.max_warnings == DEFAULT_MAX_WARNINGS == 3
        assert state.is_active is False

    def test_rejects_zero_max_warnings(self) -> None:
        with pytest.raises(ValueError, match="max_warnings"):
            SequenceState(max_warnings=0)

    def test_rejects_expected_number_below_one(self) -> None:
        with pytest.raises(ValueError, match="expected_number"):
            SequenceState(expected_number=0)

    def test_instances_do_not_share_warnings(self) -> None:
        first = SequenceState()
        second = SequenceState()
        first.add_warning(1)
        assert second.warnings == {}


class TestChannel:
    """set_channel() and channel matching."""

    def test_set_channel_activates_and_resets(self, state: SequenceState) -> None:
        state.expected_number = 40
        state.set_channel(99)

        assert state.is_active is True
        assert state.allowed_channel_id == 99
        assert state.expected_number == 1

    def test_set_channel_replaces_previous(self, state: SequenceState) -> None:
        state.set_channel(1)
        state.set_channel(2)

        assert state.is_game_channel(2) is True
        assert state.is_game_channel(1) is False

    def test_inactive_state_matches_no_channel(self, state: SequenceState) -> None:
        assert state.is_game_channel(0) is False
        assert state.is_game_channel(12345) is False


class TestReset:
    """reset() start handling."""

    def test_reset_without_start_goes_to_one(self, state: SequenceState) -> None:
        state.expected_number = 17
        assert state.reset() == 1
        assert state.expected_number == 1

    def test_reset_to_custom_start(self, state: SequenceState) -> None:
        state.expected_number = 3
        assert state.reset(10) == 10
        assert state.expected_number == 10

    def test_reset_zero_falls_back_to_one(self, state: SequenceState) -> None:
        assert state.reset(0) == 1

    def test_reset_negative_is_clamped(self, state: SequenceState) -> None:
        assert state.reset(-5) == 1
        assert state.expected_number == 1

    def test_reset_keeps_channel_and_warnings(self, state: SequenceState) -> None:
        state.set_channel(7)
        state.add_warning(11)
        state.reset(4)

        assert state.allowed_channel_id == 7
        assert state.warnings == {11: 1}


class TestAdvance:

    def test_advance_increments(self, state: SequenceState) -> None:
        assert state.advance() == 2
        assert state.advance() == 3
        assert state.expected_number == 3


class TestWarnings:
    """add_warning(), remaining_warnings() and clear_warnings()."""

    def test_first_warning_creates_entry(self, state: SequenceState) -> None:
        assert state.add_warning(5) == 1
        assert state.warnings == {5: 1}

    def test_warnings_accumulate_per_user(self, state: SequenceState) -> None:
        state.add_warning(5)
        state.add_warning(5)
        state.add_warning(6)

        assert state.warnings == {5: 2, 6: 1}

    def test_remaining_warnings(self, state: SequenceState) -> None:
        assert state.remaining_warnings(5) == 3
        state.add_warning(5)
        assert state.remaining_warnings(5) == 2
        state.add_warning(5)
        state.add_warning(5)
        assert state.remaining_warnings(5) == 0
        state.add_warning(5)
        assert state.remaining_warnings(5) == -1

    def test_clear_existing_warnings(self, state: SequenceState) -> None:
        state.add_warning(5)
        assert state.clear_warnings(5) is True
        assert 5 not in state.warnings

    def test_clear_missing_warnings(self, state: SequenceState) -> None:
        assert state.clear_warnings(5) is False

    def test_warning_restarts_at_one_after_clear(self, state: SequenceState) -> None:
        state.add_warning(5)
        state.add_warning(5)
        state.clear_warnings(5)

        assert state.add_warning(5) == 1
