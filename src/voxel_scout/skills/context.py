"""Execution context handed to skill behaviors."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Awaitable, Callable, Sequence

from voxel_scout.models import Direction, ScanSummary
from voxel_scout.progress import PlayerProgress
from voxel_scout.scans.sources import ScanSource


class SkillResult(str, Enum):
    DONE = "done"
    BLOCKED = "blocked"
    LOCKED = "locked"


@dataclass(slots=True)
class SkillContext:
    """Everything a skill may read or do during one invocation.

    ``exec`` submits one primitive command to the command queue and returns
    without waiting for it to run. ``progress`` is a snapshot; skills never
    write it back. ``scan_fragments`` returns the raw output of recent
    explores, oldest first.
    """

    progress: PlayerProgress
    exec: Callable[[str], Awaitable[None]]
    command_history: Callable[[], Sequence[str]] = lambda: ()
    latest_scan: Callable[[Direction], ScanSummary | None] | None = None
    scan_sources: Sequence[ScanSource] = field(default_factory=tuple)
    scan_fragments: Callable[[], Sequence[str]] = lambda: ()
    say: Callable[[str], None] | None = None
    invoke_skill: Callable[..., Awaitable[SkillResult]] | None = None

    def recent_commands(self) -> list[str]:
        """Command history, lowercased, oldest first."""
        return [command.strip().lower() for command in self.command_history()]

    def notify(self, text: str) -> None:
        if self.say is not None:
            self.say(text)


SkillBehavior = Callable[..., Awaitable[SkillResult]]
