"""Boundary for world command transport integrations."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(slots=True)
class GameCommand:
    """Canonical command payload directed to the world integration layer."""

    command: str


class GameCommandAdapter(Protocol):
    """Interface to submit one primitive command to the running world."""

    def send(self, payload: GameCommand) -> str | None:
        """Dispatch a command payload and return its textual receipt."""
