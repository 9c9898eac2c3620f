"""Player progress: levels, unlocks, and the stores that persist them."""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

MARCH_UNLOCK_MOVES = 5
MINING_UNLOCK_BLOCKS = 3

_DIR_TOKENS = frozenset(
    {
        "n", "s", "e", "w", "ne", "nw", "se", "sw",
        "north", "south", "east", "west", "northeast", "northwest", "southeast", "southwest",
    }
)
_VERTICAL_TOKENS = frozenset({"u", "d", "up", "down"})
_TUPLE_RE = re.compile(r"\([^)]+\)")
_SAFE_ID_RE = re.compile(r"[^A-Za-z0-9_.-]")


@dataclass(slots=True)
class PlayerProgress:
    level: int = 1
    tiles_moved: int = 0
    blocks_mined: int = 0
    unlocked_skills: set[str] = field(default_factory=set)
    flags: dict[str, bool] = field(default_factory=dict)

    def copy(self) -> PlayerProgress:
        return PlayerProgress(
            level=self.level,
            tiles_moved=self.tiles_moved,
            blocks_mined=self.blocks_mined,
            unlocked_skills=set(self.unlocked_skills),
            flags=dict(self.flags),
        )

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "tiles_moved": self.tiles_moved,
            "blocks_mined": self.blocks_mined,
            "unlocked_skills": sorted(self.unlocked_skills),
            "flags": dict(self.flags),
        }

    @classmethod
    def from_dict(cls, payload: dict) -> PlayerProgress:
        return cls(
            level=int(payload.get("level", 1)),
            tiles_moved=int(payload.get("tiles_moved", 0)),
            blocks_mined=int(payload.get("blocks_mined", 0)),
            unlocked_skills={str(name).lower() for name in payload.get("unlocked_skills", [])},
            flags={str(k): bool(v) for k, v in (payload.get("flags") or {}).items()},
        )


def count_steps_for_move(command: str, *, include_vertical: bool = True) -> int:
    lowered = command.strip().lower()
    if lowered.split(" ", 1)[0] != "move":
        return 0

    rest = lowered[4:].strip()
    if " " not in rest:
        return 1

    count = 0
    for token in rest.split():
        if token in _DIR_TOKENS or (include_vertical and token in _VERTICAL_TOKENS):
            count += 1
    return count


def count_blocks_for_mine(command: str) -> int:
    lowered = command.strip().lower()
    if lowered.split(" ", 1)[0] != "mine":
        return 0

    # "mine down", "mine (1,2,3)" or a batch of coordinate tuples.
    tuples = _TUPLE_RE.findall(lowered[4:])
    return len(tuples) if tuples else 1


def maybe_level_up(progress: PlayerProgress) -> bool:
    """Raise the level to what the counters earn; levels never go down."""
    target = 1
    if progress.tiles_moved >= MARCH_UNLOCK_MOVES:
        target = 2
    if progress.blocks_mined >= MINING_UNLOCK_BLOCKS:
        target = 3

    if target > progress.level:
        progress.level = target
        return True
    return False


def ensure_unlocked(progress: PlayerProgress, skill: str) -> bool:
    name = skill.lower()
    if name in progress.unlocked_skills:
        return False
    progress.unlocked_skills.add(name)
    return True


def apply_command(progress: PlayerProgress, command: str) -> bool:
    """Fold one completed command into ``progress``; True when anything changed."""
    steps = count_steps_for_move(command)
    blocks = count_blocks_for_mine(command)
    if not steps and not blocks:
        return False

    progress.tiles_moved += steps
    progress.blocks_mined += blocks
    maybe_level_up(progress)
    return True


class ProgressStore(Protocol):
    """Persistence contract for per-actor progress."""

    def load(self, actor_id: str) -> PlayerProgress:
        """Return stored progress, or fresh progress for unknown actors."""

    def save(self, actor_id: str, progress: PlayerProgress) -> None:
        """Persist ``progress`` for ``actor_id``."""


class InMemoryProgressStore:
    def __init__(self) -> None:
        self._records: dict[str, dict] = {}

    def load(self, actor_id: str) -> PlayerProgress:
        payload = self._records.get(actor_id)
        return PlayerProgress.from_dict(payload) if payload else PlayerProgress()

    def save(self, actor_id: str, progress: PlayerProgress) -> None:
        self._records[actor_id] = progress.to_dict()


class JsonProgressStore:
    """One JSON document per actor under ``directory``."""

    def __init__(self, directory: str | Path) -> None:
        self._directory = Path(directory)
        self._directory.mkdir(parents=True, exist_ok=True)

    def path_for(self, actor_id: str) -> Path:
        return self._directory / f"prog-{_SAFE_ID_RE.sub('_', actor_id)}.json"

    def load(self, actor_id: str) -> PlayerProgress:
        path = self.path_for(actor_id)
        if not path.exists():
            return PlayerProgress()
        return PlayerProgress.from_dict(json.loads(path.read_text(encoding="utf-8")))

    def save(self, actor_id: str, progress: PlayerProgress) -> None:
        self.path_for(actor_id).write_text(json.dumps(progress.to_dict()), encoding="utf-8")
