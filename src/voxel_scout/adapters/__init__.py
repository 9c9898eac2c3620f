"""World command adapters and client log readers."""

from .game_command import GameCommand, GameCommandAdapter
from .log_reader import ScanLogReader

__all__ = [
    "GameCommand",
    "GameCommandAdapter",
    "ScanLogReader",
]
