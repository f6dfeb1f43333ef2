"""Discord slash command registration.

Exports register_sequence_commands() which registers the sequence game and
moderation commands as top-level application commands.
"""

from .sequence import register_sequence_commands

__all__ = ["register_sequence_commands"]
