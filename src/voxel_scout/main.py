"""CLI startup entrypoint for voxel-scout."""

from __future__ import annotations

import asyncio
from pathlib import Path

import typer
from rich import print
from rich.markup import escape

from voxel_scout.adapters import GameCommandAdapter, ScanLogReader
from voxel_scout.cli import CliCommandHandler
from voxel_scout.command_runtime import CommandRuntime, EchoGameCommandAdapter, JsonlHistoryStore
from voxel_scout.config import settings
from voxel_scout.models import Direction, ScanSummary
from voxel_scout.progress import JsonProgressStore
from voxel_scout.scans.digest import extract_latest_scan
from voxel_scout.scans.sources import strip_markup
from voxel_scout.session import NavigatorSession, create_session
from voxel_scout.skills.commands import render_skill_overview
from voxel_scout.telemetry import configure_logging
from voxel_scout.world import GridWorldAdapter, LayeredTerrain

app = typer.Typer(help="voxel-scout local navigation client")


def _build_game_adapter() -> GameCommandAdapter:
    if settings.game_adapter.lower() == "grid":
        return GridWorldAdapter(LayeredTerrain())
    return EchoGameCommandAdapter()


def _build_runtime(adapter: GameCommandAdapter | None = None) -> CommandRuntime:
    history_store = JsonlHistoryStore(settings.command_history_path) if settings.command_history_path else None
    return CommandRuntime(adapter=adapter or _build_game_adapter(), history_store=history_store)


def _build_session(
    adapter: GameCommandAdapter | None = None,
    *,
    rescan_wait_seconds: float | None = None,
) -> tuple[NavigatorSession, CliCommandHandler]:
    configure_logging(settings.log_level)
    session = create_session(
        _build_runtime(adapter),
        JsonProgressStore(settings.progress_dir),
        actor_id=settings.actor_id,
        rescan_wait_seconds=settings.rescan_wait_seconds if rescan_wait_seconds is None else rescan_wait_seconds,
        scan_window_lines=settings.scan_window_lines,
        output_log_lines=settings.output_log_lines,
        march_unlock_level=settings.march_unlock_level,
        mine_unlock_level=settings.mine_unlock_level,
    )
    return session, CliCommandHandler(session)


def _summary_payload(summary: ScanSummary) -> dict:
    return {
        "direction": summary.direction.value,
        "safe_len": summary.safe_len,
        "water_at": summary.water_at,
        "hazard_at": summary.hazard_at,
        "steps": [
            {
                "distance": distance,
                "dy": step.dy,
                "enterable": step.enterable,
                "has_water": step.has_water,
                "has_lava_or_magma": step.has_lava_or_magma,
            }
            for distance, step in enumerate(summary.steps, start=1)
        ],
    }


def _parse_direction(value: str | None) -> Direction | None:
    if value is None:
        return None
    direction = Direction.parse(value)
    if direction is None:
        raise typer.BadParameter(f"Invalid direction: {value}")
    return direction


@app.command()
def start() -> None:
    """Show runtime backend configuration."""
    print(
        {
            "app_name": settings.app_name,
            "actor_id": settings.actor_id,
            "game_adapter": settings.game_adapter,
            "progress_dir": settings.progress_dir,
            "command_history_path": settings.command_history_path,
            "rescan_wait_seconds": settings.rescan_wait_seconds,
        }
    )


@app.command()
def digest(
    scan_file: Path = typer.Argument(..., help="Log file containing explore output"),
    direction: str = typer.Option(None, help="Only accept scans for this direction"),
) -> None:
    """Digest the newest scan table found in a saved log."""
    wanted = _parse_direction(direction)
    lines = [strip_markup(line) for line in ScanLogReader(scan_file).lines()]
    summary = extract_latest_scan(lines, wanted, window=settings.scan_window_lines)
    if summary is None:
        print({"summary": None, "reason": "no complete scan table found"})
        raise typer.Exit(code=1)

    print({"summary": _summary_payload(summary)})


@app.command("submit-command")
def submit_command(command: str) -> None:
    """Submit a world command and wait for completion."""
    session, cli_handler = _build_session()

    async def _run() -> str:
        await session.runtime.start()
        job_id = cli_handler.submit_command(command)
        await asyncio.wait_for(session.runtime.join(), timeout=5)
        job = cli_handler.get_job(job_id)
        await session.runtime.stop()
        return f"{job.id}: {job.status.value} ({strip_markup(job.stdout or job.error or '')})"

    print({"command_result": asyncio.run(_run())})


@app.command()
def march(
    direction: str = typer.Argument(..., help="north/n, east/e, ... southwest/sw"),
    unlock: bool = typer.Option(False, help="Unlock the march skill for this actor first"),
    explore_first: bool = typer.Option(True, help="Run an explore before marching"),
    rescan_wait: float = typer.Option(None, help="Seconds to wait for a requested re-scan"),
) -> None:
    """Run the march skill once and print what was queued."""
    wanted = _parse_direction(direction)
    session, cli_handler = _build_session(rescan_wait_seconds=rescan_wait)
    session.status.subscribe(lambda text: print(escape(text)))
    if unlock:
        session.unlock("march")

    async def _run() -> str:
        await session.runtime.start()
        if explore_first:
            await cli_handler.handle(f"explore {wanted.value}")
            await session.runtime.join()
        result = await cli_handler.handle(f"skill march {wanted.value}")
        await cli_handler.drain()
        return str(getattr(result, "value", result))

    result = asyncio.run(_run())
    jobs = [
        {"command": job.command, "status": job.status.value, "output": strip_markup(job.stdout or job.error or "")}
        for job in reversed(cli_handler.list_recent_jobs(limit=10))
    ]
    print({"march": result, "jobs": jobs, "level": session.progress.level})
    if result != "done":
        raise typer.Exit(code=1)


@app.command()
def skills() -> None:
    """List registered skills and whether they are available."""
    session, _ = _build_session()
    print(escape(render_skill_overview(session.registry, session.progress)))


@app.command()
def progress(
    unlock: str = typer.Option(None, help="Explicitly unlock a skill by name"),
    flag: str = typer.Option(None, help="Set a progress flag"),
) -> None:
    """Show (and optionally amend) the stored progress for the configured actor."""
    session, _ = _build_session()
    if unlock:
        session.unlock(unlock)
    if flag:
        session.set_flag(flag)
    print({"actor_id": settings.actor_id, "progress": session.progress.to_dict()})


if __name__ == "__main__":
    app()
