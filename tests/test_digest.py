from __future__ import annotations

import random

import pytest

from voxel_scout.models import BlockSample, Direction
from voxel_scout.scans.digest import digest, digest_table, extract_latest_scan, parse_scan_header

FLAT_ROWS = {
    "+2": "Air Air Air Air Air",
    "+1": "Air Air Air Air Air",
    "0": "Air Air Air Air Air",
    "-1": "Grass Grass Grass Grass Grass",
    "-2": "Dirt Dirt Dirt Dirt Dirt",
    "-3": "Stone Stone Stone Stone Stone",
}


def _table(overrides: dict[str, str] | None = None, *, header: str = "Exploring EAST from (10, 64, -3):") -> str:
    rows = {**FLAT_ROWS, **(overrides or {})}
    return "\n".join([header, *(f"{label}: {cells}" for label, cells in rows.items())])


def test_flat_table_is_fully_safe() -> None:
    summary = digest_table(_table(), Direction.EAST)

    assert summary is not None
    assert summary.safe_len == 5
    assert [step.dy for step in summary.steps] == [0, 0, 0, 0, 0]
    assert summary.water_at is None
    assert summary.hazard_at is None


def test_water_at_foot_level_cuts_the_safe_prefix() -> None:
    summary = digest_table(_table({"0": "Air Air Water Air Air"}), Direction.EAST)

    assert summary is not None
    assert summary.water_at == 3
    assert summary.safe_len == 2
    assert summary.steps[2].dy is None


def test_lava_below_marks_hazard() -> None:
    summary = digest_table(_table({"-3": "Stone Lava Stone Stone Stone"}), Direction.EAST)

    assert summary is not None
    assert summary.hazard_at == 2
    assert summary.safe_len == 1


@pytest.mark.parametrize("missing", list(FLAT_ROWS))
def test_missing_row_yields_no_summary(missing: str) -> None:
    rows = {label: cells for label, cells in FLAT_ROWS.items() if label != missing}
    block = "\n".join(["Exploring EAST from (0, 64, 0):", *(f"{label}: {cells}" for label, cells in rows.items())])

    assert digest_table(block, Direction.EAST) is None


def test_short_row_yields_no_summary() -> None:
    assert digest_table(_table({"-2": "Dirt Dirt Dirt Dirt"}), Direction.EAST) is None


def test_extra_cells_and_padding_are_ignored() -> None:
    summary = digest_table(_table({"+1": "  Air   Air  Air Air Air Stone  "}), Direction.EAST)

    assert summary is not None
    assert summary.safe_len == 5


def test_well_formed_tables_always_digest() -> None:
    rng = random.Random(7)
    labels = ["Air", "Grass", "Dirt", "Stone", "Water", "Lava", "DandelionFlower", "Magma"]
    for _ in range(50):
        rows = {label: " ".join(rng.choice(labels) for _ in range(5)) for label in FLAT_ROWS}
        summary = digest_table(_table(rows), Direction.NORTH)

        assert summary is not None
        assert 0 <= summary.safe_len <= 5
        assert all(step.safe for step in summary.steps[: summary.safe_len])
        assert summary.safe_len == 5 or not summary.steps[summary.safe_len].safe


def test_records_digest_like_the_table() -> None:
    records = []
    for distance in range(1, 6):
        records += [
            BlockSample(distance, 1, "Air"),
            BlockSample(distance, 0, "Air"),
            BlockSample(distance, -1, "Grass"),
        ]
    records.append(BlockSample(4, -1, "Water"))
    records.append(BlockSample(9, 0, "Lava"))

    summary = digest(records, Direction.WEST)

    assert summary.direction == Direction.WEST
    assert summary.safe_len == 3
    assert summary.water_at == 4
    assert summary.hazard_at is None


def test_digest_routes_text_to_the_table_parser() -> None:
    summary = digest(_table(), Direction.SOUTH)

    assert summary is not None
    assert summary.direction == Direction.SOUTH


def test_parse_scan_header() -> None:
    assert parse_scan_header("Exploring NORTHEAST from (1, 2, 3):") == Direction.NORTHEAST
    assert parse_scan_header("  exploring w from (1, 2, 3):") == Direction.WEST
    assert parse_scan_header("Exploring UPWARDS from (1, 2, 3):") is None
    assert parse_scan_header("+2: Air Air Air Air Air") is None


def test_extract_latest_scan_picks_newest_matching_direction() -> None:
    lines = [
        "noise",
        *_table().splitlines(),
        "Moved to (1, 65, 0)",
        *_table({"0": "Air Stone Stone Air Air"}, header="Exploring WEST from (1, 65, 0):").splitlines(),
    ]

    east = extract_latest_scan(lines, Direction.EAST)
    newest = extract_latest_scan(lines)

    assert east is not None and east.direction == Direction.EAST and east.safe_len == 5
    assert newest is not None and newest.direction == Direction.WEST


def test_incomplete_newer_scan_falls_back_to_older_complete_one() -> None:
    partial = _table().splitlines()[:-2]
    lines = [*_table({"0": "Air Air Air Water Air"}).splitlines(), *partial]

    summary = extract_latest_scan(lines, Direction.EAST)

    assert summary is not None
    assert summary.water_at == 4


def test_window_bounds_the_search() -> None:
    lines = ["Exploring EAST from (0, 64, 0):", *(["filler"] * 10), *_table().splitlines()[1:]]

    assert extract_latest_scan(lines, Direction.EAST, window=8) is None
    assert extract_latest_scan(lines, Direction.EAST, window=40) is not None


def test_no_scan_in_log() -> None:
    assert extract_latest_scan(["hello", "world"], Direction.EAST) is None
    assert extract_latest_scan([], None) is None
