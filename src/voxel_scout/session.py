"""Session orchestration: one actor's command routing, scans, skills and progress."""

from __future__ import annotations

import logging
from collections import Counter, deque
from typing import Sequence

from voxel_scout.command_runtime import CommandJob, CommandJobStatus, CommandRuntime
from voxel_scout.models import Direction
from voxel_scout.planning.march import MarchPlanner
from voxel_scout.progress import PlayerProgress, ProgressStore, apply_command, ensure_unlocked
from voxel_scout.scans.cache import ScanCache
from voxel_scout.scans.digest import DEFAULT_WINDOW_LINES, extract_latest_scan
from voxel_scout.scans.sources import OutputLog, RecordScanSource, ScanSource, TextTableScanSource, strip_markup
from voxel_scout.skills.commands import try_dispatch_skill
from voxel_scout.skills.context import SkillContext, SkillResult
from voxel_scout.skills.march import MARCH_UNLOCK_LEVEL, register_march_skill
from voxel_scout.skills.mine import MINE_UNLOCK_LEVEL, register_mine_skill
from voxel_scout.skills.registry import SkillRegistry
from voxel_scout.telemetry.status import StatusChannel

SCAN_FRAGMENTS_KEPT = 20


def _explore_direction(command: str) -> Direction | None:
    parts = command.strip().lower().split()
    if len(parts) == 2 and parts[0] == "explore":
        return Direction.parse(parts[1])
    return None


class NavigatorSession:
    """Routes player input and keeps scans and progress in step with finished commands.

    Skill lines (``skill ...``) run in the caller's task; every other line,
    and every command a skill emits, goes through the runtime's queue.

    A direction's cached scan is invalidated as soon as an ``explore`` for it
    is submitted, and only refilled when the last outstanding one comes back
    with a readable table.
    """

    def __init__(
        self,
        *,
        runtime: CommandRuntime,
        registry: SkillRegistry,
        cache: ScanCache,
        progress_store: ProgressStore,
        actor_id: str = "default",
        output_log: OutputLog | None = None,
        status: StatusChannel | None = None,
        extra_sources: Sequence[ScanSource] = (),
        scan_window_lines: int = DEFAULT_WINDOW_LINES,
        logger: logging.Logger | None = None,
    ) -> None:
        self._runtime = runtime
        self._registry = registry
        self._cache = cache
        self._progress_store = progress_store
        self._actor_id = actor_id
        self._output_log = output_log or OutputLog()
        self._status = status or StatusChannel()
        self._scan_window_lines = scan_window_lines
        self._scan_fragments: deque[str] = deque(maxlen=SCAN_FRAGMENTS_KEPT)
        self._pending_explores: Counter[Direction] = Counter()
        self._sources: list[ScanSource] = [
            TextTableScanSource(self._output_log, window=scan_window_lines),
            RecordScanSource(self.scan_fragments),
            *extra_sources,
        ]
        self._logger = logger or logging.getLogger("voxel_scout.session")

        self._progress = progress_store.load(actor_id)
        runtime.add_listener(self._on_job_finished)

    @property
    def progress(self) -> PlayerProgress:
        return self._progress

    @property
    def runtime(self) -> CommandRuntime:
        return self._runtime

    @property
    def registry(self) -> SkillRegistry:
        return self._registry

    @property
    def cache(self) -> ScanCache:
        return self._cache

    @property
    def output_log(self) -> OutputLog:
        return self._output_log

    @property
    def status(self) -> StatusChannel:
        return self._status

    def scan_fragments(self) -> list[str]:
        """Raw output of successful ``explore`` commands, oldest first."""
        return list(self._scan_fragments)

    def build_context(self) -> SkillContext:
        ctx = SkillContext(
            progress=self._progress.copy(),
            exec=self._exec,
            command_history=self._runtime.recent_commands,
            latest_scan=self._cache.get,
            scan_sources=tuple(self._sources),
            scan_fragments=self.scan_fragments,
            say=self._status.say,
        )

        async def invoke_skill(name: str, *args: str) -> SkillResult:
            return await self._registry.dispatch(name, ctx, args)

        ctx.invoke_skill = invoke_skill
        return ctx

    async def handle_command(self, raw: str) -> SkillResult | str:
        """Dispatch a skill line, or queue a plain command and return its job id."""
        text = raw.strip()
        result = await try_dispatch_skill(text, self._registry, self.build_context())
        if result is not None:
            return result
        return self.submit(text)

    def unlock(self, skill: str) -> None:
        if ensure_unlocked(self._progress, skill):
            self._save()

    def set_flag(self, flag: str, value: bool = True) -> None:
        if self._progress.flags.get(flag) != value:
            self._progress.flags[flag] = value
            self._save()

    async def _exec(self, command: str) -> None:
        self.submit(command)

    def submit(self, command: str) -> str:
        """Queue one primitive command and return its job id."""
        direction = _explore_direction(command)
        if direction is not None:
            # The new marker resets consumed steps; the old scan no longer matches it.
            self._pending_explores[direction] += 1
            self._cache.invalidate(direction)
        return self._runtime.submit_command(command)

    def _save(self) -> None:
        self._progress_store.save(self._actor_id, self._progress)

    def _on_job_finished(self, job: CommandJob) -> None:
        if job.stdout:
            self._output_log.append(job.stdout)

        direction = _explore_direction(job.command)
        if direction is not None:
            self._finish_explore(job, direction)

        if job.status != CommandJobStatus.SUCCEEDED:
            self._status.say(f"Command `{job.command}` failed: {job.error or 'unknown error'}")
            return

        level_before = self._progress.level
        if apply_command(self._progress, job.command):
            self._save()
            if self._progress.level > level_before:
                self._status.say(f"Level up! You are now level {self._progress.level}.")

    def _finish_explore(self, job: CommandJob, direction: Direction) -> None:
        if self._pending_explores[direction] > 0:
            self._pending_explores[direction] -= 1

        summary = None
        if job.status == CommandJobStatus.SUCCEEDED and job.stdout:
            self._scan_fragments.append(job.stdout)
            lines = [strip_markup(line) for line in job.stdout.splitlines()]
            summary = extract_latest_scan(lines, direction, window=self._scan_window_lines)
            if summary is None:
                self._logger.warning("scan_output_unparsed", extra={"job_id": job.id, "command": job.command})

        if summary is None or self._pending_explores[direction] > 0:
            self._cache.invalidate(direction)
            self._logger.info(
                "scan_invalidated",
                extra={
                    "direction": direction.value,
                    "job_id": job.id,
                    "pending_explores": self._pending_explores[direction],
                },
            )
            return
        self._cache.set(summary)


def create_session(
    runtime: CommandRuntime,
    progress_store: ProgressStore,
    *,
    actor_id: str = "default",
    rescan_wait_seconds: float = 1.0,
    scan_window_lines: int = DEFAULT_WINDOW_LINES,
    output_log_lines: int = 500,
    march_unlock_level: int = MARCH_UNLOCK_LEVEL,
    mine_unlock_level: int = MINE_UNLOCK_LEVEL,
    status: StatusChannel | None = None,
) -> NavigatorSession:
    """Build a session with a fresh scan cache and the built-in skills registered."""
    cache = ScanCache(window=scan_window_lines)
    registry = SkillRegistry()
    planner = MarchPlanner(cache, rescan_wait_seconds=rescan_wait_seconds)
    register_march_skill(registry, planner, unlock_level=march_unlock_level)
    register_mine_skill(registry, unlock_level=mine_unlock_level)
    return NavigatorSession(
        runtime=runtime,
        registry=registry,
        cache=cache,
        progress_store=progress_store,
        actor_id=actor_id,
        output_log=OutputLog(max_lines=output_log_lines),
        status=status,
        scan_window_lines=scan_window_lines,
    )
