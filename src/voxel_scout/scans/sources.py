"""Pluggable scan sources backed by recent client output."""

from __future__ import annotations

import html
import json
import logging
import re
from collections import deque
from typing import Callable, Iterator, Protocol, Sequence

from voxel_scout.models import LAYERS, SCAN_DEPTH, BlockSample, Direction, ScanSummary
from voxel_scout.scans.digest import DEFAULT_WINDOW_LINES, digest_records, extract_latest_scan, parse_scan_header

_TAG_RE = re.compile(r"<[^>]+>")
_DATA_BLOCK_RE = re.compile(r"""data-block=(?:'([^']*)'|"([^"]*)")""")

logger = logging.getLogger("voxel_scout.scans.sources")


def strip_markup(text: str) -> str:
    """Drop tags and decode entities from rendered scan output."""
    return html.unescape(_TAG_RE.sub("", text))


class ScanSource(Protocol):
    """Anything that can produce the latest scan summary for a direction."""

    def latest(self, direction: Direction | None = None) -> ScanSummary | None:
        """Return the newest summary, or ``None`` when nothing valid is available."""


class OutputLog:
    """Bounded rolling buffer of textual client output, one entry per line."""

    def __init__(self, max_lines: int = 500) -> None:
        self._lines: deque[str] = deque(maxlen=max_lines)

    def append(self, text: str) -> None:
        self._lines.extend(text.splitlines())

    def lines(self) -> list[str]:
        return list(self._lines)

    def clear(self) -> None:
        self._lines.clear()

    def __len__(self) -> int:
        return len(self._lines)


class TextTableScanSource:
    """Digests the newest textual scan table found in an output log."""

    def __init__(self, log: OutputLog, *, window: int = DEFAULT_WINDOW_LINES) -> None:
        self._log = log
        self._window = window

    def latest(self, direction: Direction | None = None) -> ScanSummary | None:
        lines = [strip_markup(line) for line in self._log.lines()]
        return extract_latest_scan(lines, direction, window=self._window)


class RecordScanSource:
    """Reads ``data-block`` records embedded in rendered scan markup.

    Each fragment is one rendered scan; clickable cells carry a JSON payload
    with ``distance``, ``layer`` and ``name`` (plus ``x``/``y``/``z`` when the
    renderer knows them). Air is rendered without a payload, so cells missing
    from a fragment that has records are read as ``missing_label``; pass
    ``None`` to leave them absent.
    """

    def __init__(self, fragments: Callable[[], Sequence[str]], *, missing_label: str | None = "Air") -> None:
        self._fragments = fragments
        self._missing_label = missing_label

    def latest(self, direction: Direction | None = None) -> ScanSummary | None:
        for fragment in reversed(list(self._fragments())):
            found = self._fragment_direction(fragment)
            if found is None:
                found = direction
            if found is None or (direction is not None and found != direction):
                continue

            records = list(self.records(fragment))
            if not records:
                continue
            return digest_records(self._complete(records), found)
        return None

    def _complete(self, records: list[BlockSample]) -> list[BlockSample]:
        if self._missing_label is None:
            return records
        seen = {(record.distance, record.layer) for record in records}
        filler = [
            BlockSample(distance=distance, layer=layer, label=self._missing_label)
            for distance in range(1, SCAN_DEPTH + 1)
            for layer in LAYERS
            if (distance, layer) not in seen
        ]
        return [*records, *filler]

    @staticmethod
    def _fragment_direction(fragment: str) -> Direction | None:
        for line in strip_markup(fragment).splitlines():
            found = parse_scan_header(line)
            if found is not None:
                return found
        return None

    @staticmethod
    def records(fragment: str) -> Iterator[BlockSample]:
        for match in _DATA_BLOCK_RE.finditer(fragment):
            raw = html.unescape(match.group(1) if match.group(1) is not None else match.group(2))
            try:
                payload = json.loads(raw)
                position = None
                if all(axis in payload for axis in ("x", "y", "z")):
                    position = (int(payload["x"]), int(payload["y"]), int(payload["z"]))
                sample = BlockSample(
                    distance=int(payload["distance"]),
                    layer=int(payload["layer"]),
                    label=str(payload["name"]),
                    position=position,
                )
            except (ValueError, KeyError, TypeError):
                logger.debug("scan_record_skipped", extra={"raw": raw})
                continue
            yield sample
