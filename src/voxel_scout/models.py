from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

LAYERS: tuple[int, ...] = (2, 1, 0, -1, -2, -3)
ROW_LABELS: tuple[str, ...] = ("+2", "+1", "0", "-1", "-2", "-3")
SCAN_DEPTH = 5

_OFFSETS: dict[str, tuple[int, int]] = {
    "north": (0, -1),
    "east": (1, 0),
    "south": (0, 1),
    "west": (-1, 0),
    "northeast": (1, -1),
    "northwest": (-1, -1),
    "southeast": (1, 1),
    "southwest": (-1, 1),
}

_SHORT_FORMS: dict[str, str] = {
    "n": "north",
    "s": "south",
    "e": "east",
    "w": "west",
    "ne": "northeast",
    "nw": "northwest",
    "se": "southeast",
    "sw": "southwest",
}


def layer_label(layer: int) -> str:
    """Row label used by scan tables, e.g. ``+2`` or ``-1``."""
    return f"+{layer}" if layer > 0 else str(layer)


class Direction(str, Enum):
    NORTH = "north"
    SOUTH = "south"
    EAST = "east"
    WEST = "west"
    NORTHEAST = "northeast"
    NORTHWEST = "northwest"
    SOUTHEAST = "southeast"
    SOUTHWEST = "southwest"

    @property
    def offset(self) -> tuple[int, int]:
        """Unit step on the (x, z) plane."""
        return _OFFSETS[self.value]

    @classmethod
    def parse(cls, text: str | None) -> Direction | None:
        if not text:
            return None
        lowered = text.strip().lower()
        lowered = _SHORT_FORMS.get(lowered, lowered)
        try:
            return cls(lowered)
        except ValueError:
            return None


@dataclass(frozen=True, slots=True)
class BlockSample:
    """One labelled terrain cell relative to the actor, with its world coordinate when known."""

    distance: int
    layer: int
    label: str
    position: tuple[int, int, int] | None = None


@dataclass(frozen=True, slots=True)
class StepInfo:
    """Traversal verdict for the column ``distance`` steps away."""

    dy: int | None
    has_water: bool = False
    has_lava_or_magma: bool = False

    @property
    def enterable(self) -> bool:
        return not self.has_lava_or_magma and self.dy is not None

    @property
    def safe(self) -> bool:
        return self.enterable and not self.has_water


@dataclass(frozen=True, slots=True)
class ScanSummary:
    """Digest of one directional scan: five columns plus derived safety markers."""

    direction: Direction
    steps: tuple[StepInfo, ...]
    safe_len: int
    water_at: int | None = None
    hazard_at: int | None = None

    def __post_init__(self) -> None:
        if len(self.steps) != SCAN_DEPTH:
            raise ValueError(f"A scan summary needs exactly {SCAN_DEPTH} steps, got {len(self.steps)}")
        if not 0 <= self.safe_len <= SCAN_DEPTH:
            raise ValueError(f"safe_len out of range: {self.safe_len}")
