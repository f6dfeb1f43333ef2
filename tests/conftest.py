"""Shared pytest configuration for Sequence Guard tests.

This module provides:
- src/ on sys.path for flat imports (config, discord_bot, bot.*)
- Mock Discord interaction, member and message factories
- Fresh SequenceState / BackgroundTaskManager fixtures
"""

from unittest.mock import MagicMock, AsyncMock
from typing import Any, Callable, Optional
import sys
from pathlib import Path
import pytest
import discord

# Add src/ to Python path for absolute imports
project_root = Path(__file__).parent.parent
sys.path.insert(0, str(project_root / "src"))

from bot.helpers import BackgroundTaskManager  # noqa: E402
from bot.sequence_state import SequenceState  # noqa: E402

pytest_plugins = ['pytest_asyncio']

GAME_CHANNEL_ID = 555000111
OTHER_CHANNEL_ID = 555000222


def make_member(
    user_id: int = 123456789,
    name: str = "testuser",
    manage_guild: bool = False,
    bot: bool = False,
) -> MagicMock:
    """Create a mock guild member with a Manage Server flag."""
    member = MagicMock(spec=discord.Member)
    member.id = user_id
    member.name = name
    member.bot = bot
    member.mention = f"<@{user_id}>"
    member.guild_permissions = MagicMock()
    member.guild_permissions.manage_guild = manage_guild
    member.__str__ = MagicMock(return_value=name)
    return member


def make_http_exception(cls: type = discord.HTTPException, status: int = 500) -> Exception:
    """Build a discord.py HTTP exception without a real response."""
    response = MagicMock()
    response.status = status
    response.reason = "test"
    return cls(response, "test error")


# ════════════════════════════════════════════════════════════════════════════
# MOCK FIXTURES
# ════════════════════════════════════════════════════════════════════════════


@pytest.fixture
def state() -> SequenceState:
    """Fresh game state with the default three warnings."""
    return SequenceState()


@pytest.fixture
def active_state() -> SequenceState:
    """Game state with the game channel already configured."""
    game_state = SequenceState()
    game_state.allowed_channel_id = GAME_CHANNEL_ID
    return game_state


@pytest.fixture
def tasks() -> BackgroundTaskManager:
    return BackgroundTaskManager()


@pytest.fixture
def admin() -> MagicMock:
    return make_member(user_id=1001, name="moderator", manage_guild=True)


@pytest.fixture
def regular_member() -> MagicMock:
    return make_member(user_id=2002, name="player", manage_guild=False)


@pytest.fixture
def game_channel() -> MagicMock:
    """Text channel whose send() returns a message mock."""
    channel = MagicMock(spec=discord.TextChannel)
    channel.id = GAME_CHANNEL_ID
    channel.send = AsyncMock(return_value=MagicMock(spec=discord.Message))
    return channel


@pytest.fixture
def make_message(game_channel: MagicMock) -> Callable[..., MagicMock]:
    """Factory for chat messages posted in the game channel by default."""

    def _make(
        content: str,
        author: Optional[MagicMock] = None,
        channel: Optional[MagicMock] = None,
    ) -> MagicMock:
        message = MagicMock(spec=discord.Message)
        message.id = 777
        message.content = content
        message.author = author or make_member(user_id=3003, name="counter")
        message.channel = channel or game_channel
        message.delete = AsyncMock()
        return message

    return _make


@pytest.fixture
def mock_interaction(admin: MagicMock) -> MagicMock:
    """Create a mock Discord interaction invoked by an admin in the game channel.

    Type Contract:
        - user: member mock with guild_permissions.manage_guild
        - channel_id: int = GAME_CHANNEL_ID
        - guild: MagicMock with bans() async iterator and unban AsyncMock
        - response.defer: AsyncMock
        - edit_original_response: AsyncMock
    """
    interaction: MagicMock = MagicMock(spec=discord.Interaction)
    interaction.user = admin
    interaction.channel_id = GAME_CHANNEL_ID
    interaction.command = MagicMock()
    interaction.command.name = "test"

    interaction.guild = MagicMock(spec=discord.Guild)
    interaction.guild.id = 42
    interaction.guild.unban = AsyncMock()

    interaction.response = MagicMock()
    interaction.response.defer = AsyncMock()
    interaction.edit_original_response = AsyncMock()

    return interaction


def set_bans(guild: MagicMock, users: list, error: Optional[Exception] = None) -> None:
    """Make guild.bans() yield BanEntry-like objects (or raise)."""

    async def _bans(*args: Any, **kwargs: Any):
        if error is not None:
            raise error
        for user in users:
            entry = MagicMock()
            entry.user = user
            yield entry

    guild.bans = MagicMock(side_effect=_bans)
