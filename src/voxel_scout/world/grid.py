"""In-process grid world: a terrain oracle plus a command adapter that renders scans.

Stands in for the real world backend in local demos and tests. ``explore <dir>``
prints the same six-row table the live client prints, with every non-air cell
wrapped in a clickable ``data-block`` span; ``move`` applies packed direction
and up/down tokens to the actor position; ``mine`` clears coordinate tuples.
"""

from __future__ import annotations

import html
import json
import re
from dataclasses import dataclass, field
from typing import Protocol

from voxel_scout.adapters.game_command import GameCommand
from voxel_scout.models import LAYERS, SCAN_DEPTH, Direction, layer_label

Coord = tuple[int, int, int]

_CELL_WIDTH = 14
_PLAIN_LABELS = frozenset({"Air", "Empty"})
_TUPLE_RE = re.compile(r"\(\s*(-?\d+)\s*,\s*(-?\d+)\s*,\s*(-?\d+)\s*\)")


class TerrainOracle(Protocol):
    """Resolves a world coordinate to a terrain label."""

    def label_at(self, x: int, y: int, z: int) -> str:
        """Return the block label at ``(x, y, z)``."""


@dataclass(slots=True)
class LayeredTerrain:
    """Flat terrain with optional per-coordinate overrides.

    ``ground_level`` is the y of the topmost solid block; everything above it
    is air unless overridden.
    """

    ground_level: int = 64
    surface: str = "Grass"
    subsurface: str = "Dirt"
    overrides: dict[Coord, str] = field(default_factory=dict)

    def place(self, x: int, y: int, z: int, label: str) -> None:
        self.overrides[(x, y, z)] = label

    def label_at(self, x: int, y: int, z: int) -> str:
        if (x, y, z) in self.overrides:
            return self.overrides[(x, y, z)]
        if y > self.ground_level:
            return "Air"
        if y == self.ground_level:
            return self.surface
        return self.subsurface


def _cell(label: str, payload: dict) -> str:
    padding = " " * max(_CELL_WIDTH - len(label), 1)
    if label in _PLAIN_LABELS:
        return label + padding
    data = html.escape(json.dumps(payload), quote=False)
    return f"<span class=\"clickable-block\" data-block='{data}'>{label}</span>{padding}"


class GridWorldAdapter:
    """Command adapter that executes explore/move/mine against a :class:`TerrainOracle`."""

    def __init__(self, terrain: TerrainOracle, *, position: Coord = (0, 65, 0)) -> None:
        self._terrain = terrain
        self._position = position

    @property
    def position(self) -> Coord:
        return self._position

    def send(self, payload: GameCommand) -> str:
        parts = payload.command.strip().lower().split()
        if not parts:
            raise ValueError("Empty command")

        if parts[0] == "explore" and len(parts) == 2:
            direction = Direction.parse(parts[1])
            if direction is None:
                raise ValueError(f"Invalid direction: {parts[1]}")
            return self.render_scan(direction)

        if parts[0] == "move" and len(parts) > 1:
            return self.move(parts[1:])

        if parts[0] == "mine" and len(parts) > 1:
            return self.mine(payload.command.strip()[len("mine") :])

        return f"executed: {payload.command}"

    def render_scan(self, direction: Direction) -> str:
        x, y, z = self._position
        dx, dz = direction.offset
        columns = [(x + dx * distance, z + dz * distance) for distance in range(1, SCAN_DEPTH + 1)]

        lines = [
            f"Exploring {direction.value.upper()} from ({x}, {y}, {z}):",
            "",
            " ".join(f"Block {distance}".ljust(_CELL_WIDTH) for distance in range(1, SCAN_DEPTH + 1)).rstrip(),
            " ".join(f"({tx}, {y}, {tz})".ljust(_CELL_WIDTH) for tx, tz in columns).rstrip(),
        ]
        for layer in LAYERS:
            cells = []
            for distance, (tx, tz) in enumerate(columns, start=1):
                label = self._terrain.label_at(tx, y + layer, tz)
                payload = {"x": tx, "y": y + layer, "z": tz, "name": label, "distance": distance, "layer": layer}
                cells.append(_cell(label, payload))
            lines.append(f"{layer_label(layer)}: {' '.join(cells).rstrip()}")
        return "\n".join(lines)

    def move(self, tokens: list[str]) -> str:
        x, y, z = self._position
        for token in tokens:
            if token in ("up", "u"):
                y += 1
                continue
            if token in ("down", "d"):
                y -= 1
                continue
            direction = Direction.parse(token)
            if direction is None:
                raise ValueError(f"Invalid direction: {token}")
            dx, dz = direction.offset
            x, z = x + dx, z + dz

        self._position = (x, y, z)
        return f"Moved to ({x}, {y}, {z})"

    def mine(self, targets: str) -> str:
        """Replace every ``(x,y,z)`` tuple in ``targets`` with air."""
        place = getattr(self._terrain, "place", None)
        if place is None:
            raise ValueError("Terrain is read-only")

        coords = [tuple(int(value) for value in match) for match in _TUPLE_RE.findall(targets)]
        if not coords:
            raise ValueError(f"No coordinates to mine: {targets.strip()}")
        for cx, cy, cz in coords:
            place(cx, cy, cz, "Air")
        return f"Mined {len(coords)} block{'s' if len(coords) != 1 else ''}"
