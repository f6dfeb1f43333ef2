"""Discord bot module - sequence game components."""

from .sequence_state import SequenceState
from .sequence_game import SequenceGameEngine, parse_numbers
from .helpers import BackgroundTaskManager

__all__ = [
    "SequenceState",
    "SequenceGameEngine",
    "parse_numbers",
    "BackgroundTaskManager",
]
