"""The ``mine`` skill: clear the grass the latest explore turned up."""

from __future__ import annotations

import re

from voxel_scout.scans.sources import RecordScanSource
from voxel_scout.skills.context import SkillContext, SkillResult
from voxel_scout.skills.registry import SkillDescriptor, SkillRegistry, SkillRequirement

MINE_UNLOCK_LEVEL = 3

_MINEABLE = re.compile(r"switchgrass|fescue", re.IGNORECASE)


def mine_targets(fragment: str) -> list[tuple[int, int, int]]:
    """Coordinates of mineable grass in one rendered scan, in render order, without repeats."""
    targets: list[tuple[int, int, int]] = []
    for sample in RecordScanSource.records(fragment):
        if sample.position is None or not _MINEABLE.search(sample.label):
            continue
        if sample.position not in targets:
            targets.append(sample.position)
    return targets


def mine_command(targets: list[tuple[int, int, int]]) -> str:
    return "mine " + " ".join(f"({x},{y},{z})" for x, y, z in targets)


async def mine(ctx: SkillContext, *_: str) -> SkillResult:
    fragments = list(ctx.scan_fragments())
    if not fragments:
        ctx.notify("[SYSTEM] No recent explore output found. Run `explore <dir>` first.")
        return SkillResult.BLOCKED

    targets = mine_targets(fragments[-1])
    if not targets:
        ctx.notify("No grass blocks found in the latest explore.")
        return SkillResult.DONE

    await ctx.exec(mine_command(targets))
    ctx.notify(f"Mining {len(targets)} grass block{'s' if len(targets) != 1 else ''}.")
    return SkillResult.DONE


def register_mine_skill(registry: SkillRegistry, *, unlock_level: int = MINE_UNLOCK_LEVEL) -> SkillDescriptor:
    return registry.register(
        "mine",
        mine,
        SkillRequirement(min_level=unlock_level),
        description="Mine every switchgrass and fescue block shown by the latest explore.",
        examples=("explore west", "skill mine"),
    )
