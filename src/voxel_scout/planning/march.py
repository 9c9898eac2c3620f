"""Elevation-aware march planning over the latest directional scan.

A march consumes the still-unused safe prefix of the newest scan for one
direction and turns it into a single compound ``move`` command, e.g.
``move east east up east``. Anything that prevents a confident plan resolves
to ``blocked`` and, where it helps, a fresh ``explore <dir>`` request.
"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Awaitable, Callable, Sequence

from voxel_scout.models import SCAN_DEPTH, Direction, ScanSummary, StepInfo
from voxel_scout.scans.cache import ScanCache
from voxel_scout.skills.context import SkillContext, SkillResult

START_ELEVATIONS: tuple[int, ...] = (0, 1, -1, -2)
MAX_DESCENT = 2
UP = "up"
DOWN = "down"

_VERTICAL_TOKENS = frozenset({"u", "d", "up", "down"})


def scan_command(direction: Direction) -> str:
    return f"explore {direction.value}"


def _is_scan_marker(command: str, direction: Direction) -> bool:
    parts = command.split()
    return len(parts) == 2 and parts[0] == "explore" and Direction.parse(parts[1]) == direction


def _directional_steps(command: str, direction: Direction) -> int:
    """Horizontal steps ``command`` takes towards ``direction``; 0 if it is anything else."""
    parts = command.split()
    if len(parts) == 1:
        return 1 if Direction.parse(parts[0]) == direction else 0
    if not parts or parts[0] != "move":
        return 0

    steps = 0
    for token in parts[1:]:
        if token in _VERTICAL_TOKENS:
            continue
        if Direction.parse(token) != direction:
            return 0
        steps += 1
    return steps


def moves_since_scan(commands: Sequence[str], direction: Direction) -> int:
    """Steps already walked on the newest scan for ``direction``.

    Counts the contiguous run of matching moves right after the last
    ``explore <dir>`` marker; any other command ends the run.
    """
    marker = None
    for index in range(len(commands) - 1, -1, -1):
        if _is_scan_marker(commands[index], direction):
            marker = index
            break
    if marker is None:
        return 0

    consumed = 0
    for command in commands[marker + 1 :]:
        steps = _directional_steps(command, direction)
        if not steps:
            break
        consumed += steps
    return consumed


def reachable_run(steps: Sequence[StepInfo], start: int) -> int:
    """Consecutive steps reachable from ``start`` with at most a two-block drop per step."""
    elevation = start
    count = 0
    for step in steps:
        if step.dy is None or step.dy - elevation < -MAX_DESCENT:
            break
        elevation = step.dy
        count += 1
    return count


def choose_start(steps: Sequence[StepInfo]) -> tuple[int, int]:
    best_start, best_count = START_ELEVATIONS[0], -1
    for start in START_ELEVATIONS:
        run = reachable_run(steps, start)
        if run > best_count:
            best_start, best_count = start, run
    return best_start, best_count


def _vertical(delta: int) -> list[str]:
    return [UP] * delta if delta > 0 else [DOWN] * -delta


def build_tokens(direction: Direction, steps: Sequence[StepInfo], start: int) -> tuple[str, ...]:
    tokens = _vertical(start)
    elevation = start
    for step in steps:
        target = elevation if step.dy is None else step.dy
        tokens.append(direction.value)
        tokens.extend(_vertical(target - elevation))
        elevation = target
    return tuple(tokens)


@dataclass(frozen=True, slots=True)
class MovementPlan:
    direction: Direction
    tokens: tuple[str, ...]
    start_elevation: int
    steps: int

    @property
    def command(self) -> str:
        return "move " + " ".join(self.tokens)


@dataclass(frozen=True, slots=True)
class MarchOutcome:
    result: SkillResult
    message: str
    plan: MovementPlan | None = None
    rescan_requested: bool = False

    @property
    def blocked(self) -> bool:
        return self.result == SkillResult.BLOCKED


class MarchPlanner:
    """Plans marches from cached or freshly requested scans.

    Only the final compound move goes through the command queue; acquiring a
    scan and planning run in the caller's task.
    """

    def __init__(
        self,
        cache: ScanCache,
        *,
        rescan_wait_seconds: float = 1.0,
        sleep: Callable[[float], Awaitable[object]] = asyncio.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._cache = cache
        self._rescan_wait_seconds = rescan_wait_seconds
        self._sleep = sleep
        self._logger = logger or logging.getLogger("voxel_scout.planning.march")

    async def acquire(self, direction: Direction, ctx: SkillContext) -> tuple[ScanSummary | None, bool]:
        """Return ``(summary, rescan_requested)`` trying cache, accessor, sources, then a fresh scan.

        For an invalidated direction only the cache counts: the accessor and
        the log-backed sources may still hold the scan that was invalidated.
        """
        summary = self._cache.get(direction)
        if summary is not None:
            return summary, False

        if not self._cache.is_invalidated(direction):
            if ctx.latest_scan is not None:
                summary = ctx.latest_scan(direction)
            if summary is None:
                summary = self._from_sources(direction, ctx)
            if summary is not None:
                self._cache.set(summary)
                return summary, False

        self._logger.info("march_rescan_requested", extra={"direction": direction.value, "reason": "no_scan"})
        await ctx.exec(scan_command(direction))
        await self._sleep(self._rescan_wait_seconds)

        summary = self._cache.get(direction)
        if summary is None and not self._cache.is_invalidated(direction):
            summary = self._from_sources(direction, ctx)
            if summary is not None:
                self._cache.set(summary)
        return summary, True

    @staticmethod
    def _from_sources(direction: Direction, ctx: SkillContext) -> ScanSummary | None:
        for source in ctx.scan_sources:
            summary = source.latest(direction)
            if summary is not None:
                return summary
        return None

    async def plan(self, direction: Direction, ctx: SkillContext) -> MarchOutcome:
        summary, rescanned = await self.acquire(direction, ctx)
        if summary is None:
            return self._blocked(
                direction,
                f"No scan available for {direction.value}; requested a fresh scan.",
                rescan_requested=rescanned,
            )

        consumed = moves_since_scan(ctx.recent_commands(), direction)
        end = min(SCAN_DEPTH, consumed + summary.safe_len)
        remaining = summary.steps[consumed:end]
        if not remaining or not all(step.safe for step in remaining):
            if not rescanned:
                self._cache.invalidate(direction)
                await ctx.exec(scan_command(direction))
            return self._blocked(
                direction,
                f"March {direction.value} blocked: no safe steps left on the last scan "
                f"({consumed} used, {summary.safe_len} safe); re-scanning.",
                rescan_requested=True,
            )

        start, reachable = choose_start(remaining)
        if reachable <= 0:
            if not rescanned:
                self._cache.invalidate(direction)
                await ctx.exec(scan_command(direction))
            return self._blocked(
                direction,
                f"March {direction.value} blocked: next column is out of reach; re-scanning.",
                rescan_requested=True,
            )

        accepted = remaining[:reachable]
        plan = MovementPlan(
            direction=direction,
            tokens=build_tokens(direction, accepted, start),
            start_elevation=start,
            steps=reachable,
        )
        await ctx.exec(plan.command)
        self._logger.info(
            "march_planned",
            extra={"direction": direction.value, "consumed": consumed, "command": plan.command},
        )
        return MarchOutcome(
            result=SkillResult.DONE,
            message=f"Marching {direction.value} {reachable} step{'s' if reachable != 1 else ''}: {plan.command}",
            plan=plan,
            rescan_requested=rescanned,
        )

    def _blocked(self, direction: Direction, message: str, *, rescan_requested: bool) -> MarchOutcome:
        self._logger.info(
            "march_blocked",
            extra={"direction": direction.value, "rescan_requested": rescan_requested, "reason": message},
        )
        return MarchOutcome(result=SkillResult.BLOCKED, message=message, rescan_requested=rescan_requested)
