"""The ``march`` skill: walk the unused safe prefix of the latest scan."""

from __future__ import annotations

from voxel_scout.models import Direction
from voxel_scout.planning.march import MarchPlanner
from voxel_scout.skills.context import SkillBehavior, SkillContext, SkillResult
from voxel_scout.skills.registry import SkillDescriptor, SkillRegistry, SkillRequirement

MARCH_UNLOCK_LEVEL = 2


def make_march_skill(planner: MarchPlanner) -> SkillBehavior:
    async def march(ctx: SkillContext, direction_arg: str | None = None, *_: str) -> SkillResult:
        direction = Direction.parse(direction_arg)
        if direction is None:
            ctx.notify(
                f"[SYSTEM] Usage: skill march <dir> (got {direction_arg or 'nothing'}); "
                "use north/n, east/e, south/s, west/w, northeast/ne, northwest/nw, southeast/se or southwest/sw."
            )
            return SkillResult.BLOCKED

        outcome = await planner.plan(direction, ctx)
        ctx.notify(outcome.message)
        return outcome.result

    return march


def register_march_skill(
    registry: SkillRegistry,
    planner: MarchPlanner,
    *,
    unlock_level: int = MARCH_UNLOCK_LEVEL,
) -> SkillDescriptor:
    return registry.register(
        "march",
        make_march_skill(planner),
        SkillRequirement(min_level=unlock_level),
        description="Walk up to 5 safe steps after an explore, stopping before hazards and water.",
        args=("<dir>",),
        examples=("skill march west",),
    )
