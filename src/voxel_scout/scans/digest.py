"""Parse directional scan output into :class:`ScanSummary` values.

Two input shapes are supported and normalize to the same summary:

- the textual table printed after ``explore <dir>``::

      Exploring EAST from (10, 64, -3):
      +2: Air Air Air Air Air
      +1: Air Air Air Air Air
      0: Air Air Water Air Air
      -1: Grass Grass Grass Grass Grass
      -2: Dirt Dirt Dirt Dirt Dirt
      -3: Stone Stone Stone Stone Stone

- discrete ``(distance, layer, label)`` records scraped from structured output.
"""

from __future__ import annotations

import re
from collections import defaultdict
from typing import Iterable, Sequence

from voxel_scout.models import LAYERS, ROW_LABELS, SCAN_DEPTH, BlockSample, Direction, ScanSummary
from voxel_scout.scans.classifier import classify_column, summarize_steps

DEFAULT_WINDOW_LINES = 40

_HEADER_RE = re.compile(r"^\s*Exploring\s+([A-Za-z]+)\b", re.IGNORECASE)
_ROW_PRESENT_RE = {
    label: re.compile(rf"^\s*{re.escape(label)}:", re.MULTILINE) for label in ROW_LABELS
}


def _header_token(line: str) -> str | None:
    match = _HEADER_RE.match(line)
    return match.group(1) if match else None


def parse_scan_header(line: str) -> Direction | None:
    """Return the direction named by an ``Exploring <DIR> from ...`` header."""
    return Direction.parse(_header_token(line))


def _row_cells(lines: Sequence[str], label: str) -> list[str] | None:
    prefix = f"{label}:"
    for line in lines:
        if line.lstrip().startswith(prefix):
            _, _, rest = line.partition(":")
            return rest.split()
    return None


def digest_table(block: str, direction: Direction) -> ScanSummary | None:
    """Digest a six-row scan table; ``None`` if a row is missing or short."""
    lines = block.splitlines()
    rows: dict[int, list[str]] = {}
    for layer, label in zip(LAYERS, ROW_LABELS):
        cells = _row_cells(lines, label)
        if cells is None or len(cells) < SCAN_DEPTH:
            return None
        rows[layer] = cells[:SCAN_DEPTH]

    steps = [classify_column({layer: rows[layer][col] for layer in LAYERS}) for col in range(SCAN_DEPTH)]
    return summarize_steps(direction, steps)


def digest_records(records: Iterable[BlockSample], direction: Direction) -> ScanSummary:
    columns: dict[int, dict[int, str]] = defaultdict(dict)
    for record in records:
        if 1 <= record.distance <= SCAN_DEPTH:
            columns[record.distance][record.layer] = record.label

    steps = [classify_column(columns.get(distance, {})) for distance in range(1, SCAN_DEPTH + 1)]
    return summarize_steps(direction, steps)


def digest(raw: str | Iterable[BlockSample], direction: Direction) -> ScanSummary | None:
    """Single entry point for both scan shapes."""
    if isinstance(raw, str):
        return digest_table(raw, direction)
    return digest_records(raw, direction)


def _has_all_rows(window: str) -> bool:
    return all(pattern.search(window) for pattern in _ROW_PRESENT_RE.values())


def extract_latest_scan(
    lines: Sequence[str],
    direction: Direction | None = None,
    *,
    window: int = DEFAULT_WINDOW_LINES,
) -> ScanSummary | None:
    """Find and digest the newest scan table in a rolling output log.

    Walks backwards to the most recent header for ``direction`` (any direction
    when ``None``) whose following window holds all six rows.
    """
    for index in range(len(lines) - 1, -1, -1):
        token = _header_token(lines[index])
        if token is None:
            continue

        found = Direction.parse(token) or direction
        if found is None or (direction is not None and found != direction):
            continue

        end = min(len(lines), index + window)
        for offset in range(index + 1, end):
            if _header_token(lines[offset]) is not None:
                end = offset
                break

        block = "\n".join(lines[index:end])
        if not _has_all_rows(block):
            continue

        summary = digest_table(block, found)
        if summary is not None:
            return summary
    return None
