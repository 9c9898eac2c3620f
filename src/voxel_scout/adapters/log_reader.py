"""Read scan output that a client writes to a log file."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class ScanLogReader:
    """Utility for reading client output written to a log file."""

    path: Path

    def read(self) -> str:
        if not self.path.exists():
            return ""
        return self.path.read_text(encoding="utf-8", errors="ignore")

    def lines(self) -> list[str]:
        return self.read().splitlines()

    def tail(self, lines: int = 50) -> str:
        return "\n".join(self.lines()[-lines:])
