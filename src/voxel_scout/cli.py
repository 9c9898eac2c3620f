"""CLI-side handler wrappers and utility commands."""

from __future__ import annotations

from voxel_scout.command_runtime import CommandJob
from voxel_scout.session import NavigatorSession
from voxel_scout.skills.context import SkillResult


class CliCommandHandler:
    """Simple facade over a navigator session for the command line."""

    def __init__(self, session: NavigatorSession) -> None:
        self._session = session

    async def handle(self, line: str) -> SkillResult | str:
        return await self._session.handle_command(line)

    def submit_command(self, command: str) -> str:
        return self._session.submit(command)

    def get_job(self, job_id: str) -> CommandJob:
        return self._session.runtime.get_job(job_id)

    def list_recent_jobs(self, limit: int = 20) -> list[CommandJob]:
        return self._session.runtime.list_recent_jobs(limit=limit)

    async def drain(self) -> None:
        """Wait for every queued command, then stop the worker."""
        await self._session.runtime.join()
        await self._session.runtime.stop()
