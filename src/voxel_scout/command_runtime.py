"""Single-flight command queue and the job runtime built on top of it."""

from __future__ import annotations

import asyncio
import json
import logging
from collections import deque
from dataclasses import asdict, dataclass
from datetime import datetime, timezone
from enum import Enum
from itertools import count
from pathlib import Path
from typing import Awaitable, Callable, Protocol
from uuid import uuid4

from voxel_scout.adapters import GameCommand, GameCommandAdapter

CommandTask = Callable[[], Awaitable[None]]
JobListener = Callable[["CommandJob"], None]


class CommandQueue:
    """FIFO executor that runs at most one task at a time.

    Tasks run exactly once, in submission order. A task that raises is logged
    and the queue moves on to the next one.
    """

    def __init__(self, *, max_queue_size: int = 0, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("voxel_scout.command_queue")
        self._queue: asyncio.Queue[tuple[int, str, CommandTask]] = asyncio.Queue(maxsize=max_queue_size)
        self._sequence = count(1)
        self._worker_task: asyncio.Task[None] | None = None
        self._running: int | None = None

    @property
    def running(self) -> int | None:
        """Sequence number of the task currently executing, if any."""
        return self._running

    def pending(self) -> int:
        return self._queue.qsize()

    async def start(self) -> None:
        """Start the worker loop once for this queue."""
        if self._worker_task and not self._worker_task.done():
            return

        self._worker_task = asyncio.create_task(self._worker_loop(), name="command-queue-worker")
        self._logger.info("command_queue_started", extra={"queue_maxsize": self._queue.maxsize})

    async def stop(self) -> None:
        """Stop the worker loop; tasks still queued stay queued."""
        if not self._worker_task:
            return

        self._worker_task.cancel()
        try:
            await self._worker_task
        except asyncio.CancelledError:
            pass
        finally:
            self._worker_task = None

        self._logger.info("command_queue_stopped")

    async def join(self) -> None:
        """Wait until every task enqueued so far has finished."""
        await self._queue.join()

    def enqueue(self, task: CommandTask, *, label: str = "") -> int:
        """Append ``task`` and return its sequence number without waiting."""
        sequence = next(self._sequence)
        self._queue.put_nowait((sequence, label, task))
        self._ensure_worker()
        self._logger.debug(
            "command_task_enqueued",
            extra={"sequence": sequence, "label": label, "queue_size": self._queue.qsize()},
        )
        return sequence

    def _ensure_worker(self) -> None:
        if self._worker_task and not self._worker_task.done():
            return
        try:
            asyncio.get_running_loop()
        except RuntimeError:
            # No loop yet; start() picks the backlog up later.
            return
        self._worker_task = asyncio.create_task(self._worker_loop(), name="command-queue-worker")

    async def _worker_loop(self) -> None:
        while True:
            sequence, label, task = await self._queue.get()
            self._running = sequence
            try:
                await task()
            except asyncio.CancelledError:
                raise
            except Exception:  # noqa: BLE001 - one failed task must not halt the queue.
                self._logger.exception("command_task_failed", extra={"sequence": sequence, "label": label})
            finally:
                self._running = None
                self._queue.task_done()


class CommandJobStatus(str, Enum):
    """Lifecycle states for submitted command jobs."""

    QUEUED = "queued"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(slots=True)
class CommandJob:
    """Represents command execution state and final output."""

    id: str
    command: str
    submitted_at: datetime
    status: CommandJobStatus
    stdout: str | None = None
    error: str | None = None


class CommandHistoryStore(Protocol):
    """Persistence contract for storing command history."""

    def append(self, job: CommandJob) -> None:
        """Persist a finished job record."""

    def list_recent(self, limit: int) -> list[CommandJob]:
        """Return up to ``limit`` newest jobs."""


class InMemoryHistoryStore:
    """Bounded in-memory history store."""

    def __init__(self, max_jobs: int = 1_000) -> None:
        self._jobs: deque[CommandJob] = deque(maxlen=max_jobs)

    def append(self, job: CommandJob) -> None:
        self._jobs.appendleft(job)

    def list_recent(self, limit: int) -> list[CommandJob]:
        return list(self._jobs)[:limit]


class JsonlHistoryStore:
    """Simple JSONL-backed command history persistence."""

    def __init__(self, file_path: str | Path) -> None:
        self._path = Path(file_path)
        self._path.parent.mkdir(parents=True, exist_ok=True)

    def append(self, job: CommandJob) -> None:
        payload = asdict(job)
        payload["status"] = job.status.value
        payload["submitted_at"] = job.submitted_at.isoformat()
        with self._path.open("a", encoding="utf-8") as handle:
            handle.write(json.dumps(payload) + "\n")

    def list_recent(self, limit: int) -> list[CommandJob]:
        if not self._path.exists():
            return []

        jobs: list[CommandJob] = []
        with self._path.open("r", encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                payload = json.loads(line)
                jobs.append(
                    CommandJob(
                        id=payload["id"],
                        command=payload["command"],
                        submitted_at=datetime.fromisoformat(payload["submitted_at"]),
                        status=CommandJobStatus(payload["status"]),
                        stdout=payload.get("stdout"),
                        error=payload.get("error"),
                    )
                )

        jobs.reverse()
        return jobs[:limit]


class CommandRuntime:
    """Turns command strings into jobs executed one at a time through a :class:`CommandQueue`."""

    def __init__(
        self,
        adapter: GameCommandAdapter,
        *,
        queue: CommandQueue | None = None,
        history_store: CommandHistoryStore | None = None,
        max_jobs: int = 1_000,
        logger: logging.Logger | None = None,
    ) -> None:
        self._adapter = adapter
        self._logger = logger or logging.getLogger("voxel_scout.command_runtime")
        self._queue = queue or CommandQueue()
        self._history_store = history_store or InMemoryHistoryStore(max_jobs=max_jobs)

        self._jobs: dict[str, CommandJob] = {}
        self._order: deque[str] = deque(maxlen=max_jobs)
        self._listeners: list[JobListener] = []

    @property
    def queue(self) -> CommandQueue:
        return self._queue

    async def start(self) -> None:
        await self._queue.start()

    async def stop(self) -> None:
        await self._queue.stop()

    async def join(self) -> None:
        await self._queue.join()

    def add_listener(self, listener: JobListener) -> None:
        """Call ``listener`` with every job once it has finished, successfully or not."""
        self._listeners.append(listener)

    def submit_command(self, command: str) -> str:
        """Submit a command and return the associated job id."""
        job_id = uuid4().hex
        job = CommandJob(
            id=job_id,
            command=command,
            submitted_at=datetime.now(timezone.utc),
            status=CommandJobStatus.QUEUED,
        )
        self._jobs[job_id] = job
        if len(self._order) == self._order.maxlen:
            self._jobs.pop(self._order[0], None)
        self._order.append(job_id)

        self._queue.enqueue(lambda: self._execute_job(job_id), label=command)
        self._logger.info(
            "command_submitted",
            extra={"job_id": job_id, "command": command, "queue_size": self._queue.pending()},
        )
        return job_id

    def get_job(self, job_id: str) -> CommandJob:
        """Return job state for the given id."""
        if job_id not in self._jobs:
            raise KeyError(f"Unknown command job id: {job_id}")
        return self._jobs[job_id]

    def recent_commands(self, limit: int | None = None) -> list[str]:
        """Lowercased command texts in submission order, oldest first."""
        ids = list(self._order)
        if limit is not None:
            ids = ids[-limit:] if limit > 0 else []
        return [self._jobs[job_id].command.strip().lower() for job_id in ids]

    def list_recent_jobs(self, limit: int = 20) -> list[CommandJob]:
        """Return most recent in-memory jobs and persisted history entries."""
        in_memory = [self._jobs[job_id] for job_id in reversed(self._order)]
        if len(in_memory) >= limit:
            return in_memory[:limit]

        persisted = self._history_store.list_recent(limit)
        merged: list[CommandJob] = []
        seen: set[str] = set()
        for job in [*in_memory, *persisted]:
            if job.id in seen:
                continue
            seen.add(job.id)
            merged.append(job)
            if len(merged) >= limit:
                break
        return merged

    async def _execute_job(self, job_id: str) -> None:
        job = self._jobs[job_id]
        job.status = CommandJobStatus.RUNNING
        self._logger.info("command_started", extra={"job_id": job.id, "command": job.command})

        try:
            output = await asyncio.to_thread(self._adapter.send, GameCommand(command=job.command))
            job.stdout = str(output) if output is not None else None
            job.status = CommandJobStatus.SUCCEEDED
            self._logger.info("command_succeeded", extra={"job_id": job.id, "stdout": job.stdout})
        except Exception as exc:
            job.status = CommandJobStatus.FAILED
            job.error = f"{type(exc).__name__}: {exc}"
            raise
        finally:
            self._history_store.append(job)
            self._notify(job)

    def _notify(self, job: CommandJob) -> None:
        for listener in list(self._listeners):
            try:
                listener(job)
            except Exception:  # noqa: BLE001 - listeners are observers only.
                self._logger.exception("command_listener_failed", extra={"job_id": job.id})


class EchoGameCommandAdapter:
    """Fallback adapter used for local CLI demos and tests."""

    def send(self, payload: GameCommand) -> str:
        return f"executed: {payload.command}"
