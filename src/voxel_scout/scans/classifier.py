"""Column walkability and hazard classification for directional scans."""

from __future__ import annotations

import re
from typing import Iterable, Mapping

from voxel_scout.models import LAYERS, Direction, ScanSummary, StepInfo

# Feet level first, then a small step up, then drops of one and two blocks.
CANDIDATE_DY: tuple[int, ...] = (0, 1, -1, -2)

_AIR = re.compile(r"\bair\b", re.IGNORECASE)
_WATER = re.compile(r"water", re.IGNORECASE)
_LAVA = re.compile(r"lava|magma", re.IGNORECASE)
_PASSABLE_VEGETATION = re.compile(r"(?:flower|sapling|vine|fescuegrass|switchgrass)$", re.IGNORECASE)


def is_air(label: str | None) -> bool:
    return bool(label) and _AIR.search(label) is not None


def is_water(label: str | None) -> bool:
    return bool(label) and _WATER.search(label) is not None


def is_lava_or_magma(label: str | None) -> bool:
    return bool(label) and _LAVA.search(label) is not None


def is_walkable(label: str | None) -> bool:
    """Cells a body can stand in: air or low vegetation."""
    if not label:
        return False
    return is_air(label) or _PASSABLE_VEGETATION.search(label.strip()) is not None


def is_solid_floor(label: str | None) -> bool:
    return bool(label) and not is_air(label) and not is_water(label)


def classify_column(column: Mapping[int, str | None]) -> StepInfo:
    """Classify one column keyed by vertical layer offset (+2 .. -3).

    The first ``dy`` in :data:`CANDIDATE_DY` with two walkable body cells over a
    solid floor wins. Hazards are flagged from every layer of the column, not
    just the chosen body span.
    """
    chosen: int | None = None
    for dy in CANDIDATE_DY:
        feet, head, floor = column.get(dy), column.get(dy + 1), column.get(dy - 1)
        if is_walkable(feet) and is_walkable(head) and is_solid_floor(floor):
            chosen = dy
            break

    labels = [column.get(layer) for layer in LAYERS]
    return StepInfo(
        dy=chosen,
        has_water=any(is_water(label) for label in labels),
        has_lava_or_magma=any(is_lava_or_magma(label) for label in labels),
    )


def safe_prefix_length(steps: Iterable[StepInfo]) -> int:
    count = 0
    for step in steps:
        if not (step.enterable and not step.has_water and not step.has_lava_or_magma):
            break
        count += 1
    return count


def _first_index(steps: Iterable[StepInfo], attribute: str) -> int | None:
    for index, step in enumerate(steps, start=1):
        if getattr(step, attribute):
            return index
    return None


def summarize_steps(direction: Direction, steps: Iterable[StepInfo]) -> ScanSummary:
    ordered = tuple(steps)
    return ScanSummary(
        direction=direction,
        steps=ordered,
        safe_len=safe_prefix_length(ordered),
        water_at=_first_index(ordered, "has_water"),
        hazard_at=_first_index(ordered, "has_lava_or_magma"),
    )
