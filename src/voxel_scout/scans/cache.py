"""Per-direction store of the latest scan summary."""

from __future__ import annotations

import logging
from typing import Sequence

from voxel_scout.models import Direction, ScanSummary
from voxel_scout.scans.digest import DEFAULT_WINDOW_LINES, extract_latest_scan


class ScanCache:
    """Holds at most one summary per direction; writes overwrite wholesale.

    Entries never expire on their own. :meth:`invalidate` drops a direction
    and remembers it as invalidated until the next :meth:`set` for it, so
    callers can tell "never scanned" from "the last scan is no longer valid".
    """

    def __init__(self, *, window: int = DEFAULT_WINDOW_LINES, logger: logging.Logger | None = None) -> None:
        self._entries: dict[Direction, ScanSummary] = {}
        self._invalidated: set[Direction] = set()
        self._window = window
        self._logger = logger or logging.getLogger("voxel_scout.scans.cache")

    def set(self, summary: ScanSummary) -> None:
        self._entries[summary.direction] = summary
        self._invalidated.discard(summary.direction)
        self._logger.debug(
            "scan_cached",
            extra={"direction": summary.direction.value, "safe_len": summary.safe_len},
        )

    def get(self, direction: Direction) -> ScanSummary | None:
        return self._entries.get(direction)

    def invalidate(self, direction: Direction) -> None:
        self._entries.pop(direction, None)
        self._invalidated.add(direction)
        self._logger.debug("scan_invalidated", extra={"direction": direction.value})

    def is_invalidated(self, direction: Direction) -> bool:
        return direction in self._invalidated

    def clear(self) -> None:
        self._entries.clear()
        self._invalidated.clear()

    def update_from_log(self, lines: Sequence[str], direction: Direction | None = None) -> ScanSummary | None:
        """Digest the newest scan in ``lines`` and store it when one is found."""
        summary = extract_latest_scan(lines, direction, window=self._window)
        if summary is not None:
            self.set(summary)
        return summary

    def snapshot(self) -> dict[Direction, ScanSummary]:
        return dict(self._entries)

    def __contains__(self, direction: object) -> bool:
        return direction in self._entries

    def __len__(self) -> int:
        return len(self._entries)
