from __future__ import annotations

from voxel_scout.models import Direction, StepInfo
from voxel_scout.scans.classifier import (
    classify_column,
    is_air,
    is_walkable,
    safe_prefix_length,
    summarize_steps,
)


def _column(p2="Air", p1="Air", z0="Air", m1="Grass", m2="Dirt", m3="Stone") -> dict[int, str]:
    return {2: p2, 1: p1, 0: z0, -1: m1, -2: m2, -3: m3}


def test_flat_ground_is_entered_at_foot_level() -> None:
    step = classify_column(_column())

    assert step.dy == 0
    assert step.enterable is True
    assert step.has_water is False


def test_step_up_drop_one_and_drop_two() -> None:
    assert classify_column(_column(z0="Grass", m1="Dirt")).dy == 1
    assert classify_column(_column(m1="Air", m2="Grass")).dy == -1
    assert classify_column(_column(m1="Air", m2="Air", m3="Grass")).dy == -2


def test_first_candidate_wins_over_later_ones() -> None:
    # Both +1 (floor at 0) and -2 (floor at -3) fit; +1 comes first in the order.
    step = classify_column(_column(z0="Stone", m1="Air", m2="Air", m3="Stone"))

    assert step.dy == 1


def test_no_candidate_means_not_enterable() -> None:
    step = classify_column(_column(m1="Air", m2="Air", m3="Air"))

    assert step.dy is None
    assert step.enterable is False


def test_water_anywhere_is_flagged_but_does_not_veto_entry() -> None:
    step = classify_column(_column(p2="Water"))

    assert step.dy == 0
    assert step.has_water is True
    assert step.enterable is True


def test_water_is_not_a_floor() -> None:
    step = classify_column(_column(m1="Water", m2="Sand", m3="Sand"))

    assert step.dy is None
    assert step.has_water is True


def test_lava_outside_the_body_span_still_blocks_entry() -> None:
    step = classify_column(_column(m3="Lava"))

    assert step.dy == 0
    assert step.has_lava_or_magma is True
    assert step.enterable is False
    assert classify_column(_column(m2="Magma")).has_lava_or_magma is True


def test_passable_vegetation_and_air_matching() -> None:
    assert is_walkable("DandelionFlower")
    assert is_walkable("OakSapling")
    assert is_walkable("FescueGrass")
    assert not is_walkable("Grass")
    assert not is_air("Stairs")
    assert classify_column(_column(z0="DandelionFlower")).dy == 0


def test_missing_layers_are_not_an_error() -> None:
    assert classify_column({}).dy is None
    assert classify_column({0: "Air", 1: "Air", -1: "Grass"}).dy == 0


def test_safe_prefix_stops_at_first_failure() -> None:
    steps = [StepInfo(dy=0), StepInfo(dy=0, has_water=True), StepInfo(dy=0), StepInfo(dy=0), StepInfo(dy=0)]

    assert safe_prefix_length(steps) == 1

    summary = summarize_steps(Direction.EAST, steps)
    assert summary.safe_len == 1
    assert summary.water_at == 2
    assert summary.hazard_at is None


def test_summary_markers_are_independent_of_the_prefix() -> None:
    steps = [
        StepInfo(dy=None),
        StepInfo(dy=0),
        StepInfo(dy=0, has_lava_or_magma=True),
        StepInfo(dy=0, has_water=True),
        StepInfo(dy=0),
    ]
    summary = summarize_steps(Direction.WEST, steps)

    assert summary.safe_len == 0
    assert summary.hazard_at == 3
    assert summary.water_at == 4
    for step in summary.steps:
        if step.enterable:
            assert not step.has_lava_or_magma and step.dy is not None
