from __future__ import annotations

import asyncio

from voxel_scout.models import Direction
from voxel_scout.progress import PlayerProgress
from voxel_scout.skills.context import SkillContext, SkillResult
from voxel_scout.skills.mine import mine_command, mine_targets, register_mine_skill
from voxel_scout.skills.registry import SkillRegistry
from voxel_scout.world import GridWorldAdapter, LayeredTerrain


def _fragment(*placements: tuple[int, int, int, str]) -> str:
    terrain = LayeredTerrain()
    for x, y, z, label in placements:
        terrain.place(x, y, z, label)
    return GridWorldAdapter(terrain).render_scan(Direction.EAST)


def _ctx(level: int, fragments: list[str], executed: list[str], said: list[str]) -> SkillContext:
    async def _exec(command: str) -> None:
        executed.append(command)

    return SkillContext(
        progress=PlayerProgress(level=level),
        exec=_exec,
        scan_fragments=lambda: fragments,
        say=said.append,
    )


def _registry() -> SkillRegistry:
    registry = SkillRegistry()
    register_mine_skill(registry)
    return registry


def test_mine_requires_level_three_unless_unlocked() -> None:
    registry = _registry()

    assert registry.check("mine", PlayerProgress(level=2)).reason == "requires level 3"
    assert registry.check("mine", PlayerProgress(level=3)).ok
    assert registry.check("mine", PlayerProgress(level=1, unlocked_skills={"mine"})).ok


def test_locked_mine_submits_nothing() -> None:
    executed: list[str] = []
    said: list[str] = []
    fragment = _fragment((1, 65, 0, "SwitchGrass"))

    result = asyncio.run(_registry().dispatch("mine", _ctx(2, [fragment], executed, said)))

    assert result == SkillResult.LOCKED
    assert executed == []
    assert said == ["[SYSTEM] MINE locked: requires level 3"]


def test_mine_without_an_explore_is_blocked() -> None:
    executed: list[str] = []
    said: list[str] = []

    result = asyncio.run(_registry().dispatch("mine", _ctx(3, [], executed, said)))

    assert result == SkillResult.BLOCKED
    assert executed == []
    assert said == ["[SYSTEM] No recent explore output found. Run `explore <dir>` first."]


def test_mine_with_no_grass_in_view_does_nothing() -> None:
    executed: list[str] = []
    said: list[str] = []

    result = asyncio.run(_registry().dispatch("mine", _ctx(3, [_fragment()], executed, said)))

    assert result == SkillResult.DONE
    assert executed == []
    assert said == ["No grass blocks found in the latest explore."]


def test_mine_batches_grass_from_the_newest_fragment_only() -> None:
    executed: list[str] = []
    said: list[str] = []
    older = _fragment((5, 65, 0, "SwitchGrass"))
    newest = _fragment((1, 65, 0, "SwitchGrass"), (2, 66, 0, "FescueGrass"), (3, 65, 0, "Stone"))

    result = asyncio.run(_registry().dispatch("mine", _ctx(3, [older, newest], executed, said)))

    assert result == SkillResult.DONE
    assert executed == ["mine (2,66,0) (1,65,0)"]
    assert said == ["Mining 2 grass blocks."]


def test_mine_targets_skip_repeats_and_unmineable_labels() -> None:
    fragment = _fragment((1, 65, 0, "switchgrass"), (4, 64, 0, "Lava"))

    targets = mine_targets(fragment + "\n" + fragment)

    assert targets == [(1, 65, 0)]
    assert mine_command(targets + [(-2, 63, 7)]) == "mine (1,65,0) (-2,63,7)"
