from __future__ import annotations

import asyncio
import logging
import time
from pathlib import Path

import pytest

from voxel_scout.command_runtime import (
    CommandJobStatus,
    CommandQueue,
    CommandRuntime,
    EchoGameCommandAdapter,
    JsonlHistoryStore,
)


class FailingAdapter:
    def __init__(self, fail_on: str | None = None) -> None:
        self.calls = 0
        self.fail_on = fail_on

    def send(self, payload):
        self.calls += 1
        if self.fail_on is None or payload.command == self.fail_on:
            raise RuntimeError("boom")
        return f"ok: {payload.command}"


def test_queue_runs_tasks_in_order_one_at_a_time() -> None:
    events: list[tuple[str, int, float]] = []

    def _task(index: int, delay: float, fail: bool = False):
        async def _run() -> None:
            events.append(("start", index, time.monotonic()))
            await asyncio.sleep(delay)
            events.append(("end", index, time.monotonic()))
            if fail:
                raise RuntimeError(f"task {index} failed")

        return _run

    async def _run() -> list[int]:
        queue = CommandQueue()
        sequences = [
            queue.enqueue(_task(1, 0.03)),
            queue.enqueue(_task(2, 0.0, fail=True)),
            queue.enqueue(_task(3, 0.01)),
        ]
        await asyncio.wait_for(queue.join(), timeout=1)
        await queue.stop()
        return sequences

    sequences = asyncio.run(_run())

    assert sequences == [1, 2, 3]
    assert [(kind, index) for kind, index, _ in events] == [
        ("start", 1),
        ("end", 1),
        ("start", 2),
        ("end", 2),
        ("start", 3),
        ("end", 3),
    ]
    stamps = [stamp for _, _, stamp in events]
    assert stamps == sorted(stamps)


def test_failed_task_is_logged_and_the_queue_continues(caplog: pytest.LogCaptureFixture) -> None:
    ran: list[str] = []

    async def _boom() -> None:
        raise ValueError("bad task")

    async def _after() -> None:
        ran.append("after")

    async def _run() -> None:
        queue = CommandQueue()
        await queue.start()
        queue.enqueue(_boom, label="boom")
        queue.enqueue(_after, label="after")
        await asyncio.wait_for(queue.join(), timeout=1)
        assert queue.running is None
        assert queue.pending() == 0
        await queue.stop()

    with caplog.at_level(logging.ERROR, logger="voxel_scout.command_queue"):
        asyncio.run(_run())

    assert ran == ["after"]
    assert "command_task_failed" in caplog.text


def test_enqueue_without_a_loop_waits_for_start() -> None:
    ran: list[int] = []

    async def _task() -> None:
        ran.append(1)

    queue = CommandQueue()
    queue.enqueue(_task)
    assert ran == []

    async def _run() -> None:
        await queue.start()
        await asyncio.wait_for(queue.join(), timeout=1)
        await queue.stop()

    asyncio.run(_run())
    assert ran == [1]


def test_runtime_executes_command_successfully() -> None:
    async def _run() -> tuple[CommandJobStatus, str | None]:
        runtime = CommandRuntime(adapter=EchoGameCommandAdapter())
        await runtime.start()
        job_id = runtime.submit_command("explore east")
        await asyncio.wait_for(runtime.join(), timeout=1)
        job = runtime.get_job(job_id)
        await runtime.stop()
        return job.status, job.stdout

    status, stdout = asyncio.run(_run())
    assert status == CommandJobStatus.SUCCEEDED
    assert stdout == "executed: explore east"


def test_runtime_marks_failure_once_and_keeps_going() -> None:
    finished: list[str] = []

    async def _run() -> tuple[FailingAdapter, list]:
        adapter = FailingAdapter(fail_on="move north")
        runtime = CommandRuntime(adapter=adapter)
        runtime.add_listener(lambda job: finished.append(job.command))
        await runtime.start()
        failed_id = runtime.submit_command("move north")
        ok_id = runtime.submit_command("move south")
        await asyncio.wait_for(runtime.join(), timeout=1)
        jobs = [runtime.get_job(failed_id), runtime.get_job(ok_id)]
        await runtime.stop()
        return adapter, jobs

    adapter, (failed, ok) = asyncio.run(_run())
    assert adapter.calls == 2
    assert failed.status == CommandJobStatus.FAILED
    assert "RuntimeError" in (failed.error or "")
    assert ok.status == CommandJobStatus.SUCCEEDED
    assert finished == ["move north", "move south"]


def test_runtime_reports_recent_commands_oldest_first() -> None:
    runtime = CommandRuntime(adapter=EchoGameCommandAdapter())
    runtime.submit_command("Explore EAST")
    runtime.submit_command("move east east")
    runtime.submit_command("look")

    assert runtime.recent_commands() == ["explore east", "move east east", "look"]
    assert runtime.recent_commands(limit=2) == ["move east east", "look"]
    assert runtime.recent_commands(limit=0) == []


def test_unknown_job_id_raises() -> None:
    runtime = CommandRuntime(adapter=EchoGameCommandAdapter())

    with pytest.raises(KeyError):
        runtime.get_job("missing")


def test_json_history_store_roundtrip(tmp_path: Path) -> None:
    store = JsonlHistoryStore(tmp_path / "history" / "commands.jsonl")

    async def _run() -> str:
        runtime = CommandRuntime(adapter=EchoGameCommandAdapter(), history_store=store)
        job_id = runtime.submit_command("move west")
        await asyncio.wait_for(runtime.join(), timeout=1)
        await runtime.stop()
        return job_id

    job_id = asyncio.run(_run())
    recent = store.list_recent(limit=5)

    assert recent[0].id == job_id
    assert recent[0].status == CommandJobStatus.SUCCEEDED
    assert recent[0].stdout == "executed: move west"

    fresh = CommandRuntime(adapter=EchoGameCommandAdapter(), history_store=store)
    assert fresh.list_recent_jobs(limit=5)[0].id == job_id
