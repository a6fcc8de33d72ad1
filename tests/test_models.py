"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for pacer input records.
"""

from __future__ import annotations

import dataclasses

import pytest

from services.pacer.errors import InvalidConfigurationError, PacerError
from services.pacer.models import PlanConfig, PlannedSegment, RestStop, TrackPoint, distance_to_meters
from tests.conftest import make_segment


def test_distance_to_meters():
    assert distance_to_meters(5.0, "metric") == 5000.0
    assert distance_to_meters(1.0, "imperial") == pytest.approx(1609.34, abs=0.01)


def test_rest_stop_defaults_and_conversion():
    a, b = RestStop(10.0, 60), RestStop(10.0, 60)
    assert a.identifier != b.identifier
    assert a.distance_meters("metric") == 10_000.0
    assert a.distance_meters("imperial") == pytest.approx(16_093.4, abs=0.1)


@pytest.mark.parametrize("distance,penalty", [(-1.0, 30), (5.0, -1), (float("nan"), 30), (5.0, float("inf"))])
def test_rest_stop_validation(distance, penalty):
    with pytest.raises(InvalidConfigurationError):
        RestStop(distance, penalty)


def test_invalid_configuration_is_value_error():
    with pytest.raises(ValueError):
        RestStop(-1.0, 10)
    assert issubclass(InvalidConfigurationError, PacerError)


def test_plan_config_sorts_rest_stops():
    late, early = RestStop(30.0, 120, "late"), RestStop(10.0, 60, "early")
    cfg = PlanConfig(goal_time_seconds=14_400, segment_length_m=1000, rest_stops=(late, early))
    assert [s.identifier for s in cfg.rest_stops] == ["early", "late"]
    assert cfg.total_rest_seconds == 180.0


@pytest.mark.parametrize(
    "kwargs",
    [
        {"goal_time_seconds": 0, "segment_length_m": 500},
        {"goal_time_seconds": -60, "segment_length_m": 500},
        {"goal_time_seconds": 3600, "segment_length_m": 0},
        {"goal_time_seconds": 3600, "segment_length_m": float("nan")},
        {"goal_time_seconds": 3600, "segment_length_m": 500, "unit_system": "nautical"},
    ],
)
def test_plan_config_validation(kwargs):
    with pytest.raises(InvalidConfigurationError):
        PlanConfig(**kwargs)


def test_plan_config_from_inputs():
    cfg = PlanConfig.from_inputs(hours=4, minutes=30, seconds=15, segment_length_m=1609.34, unit_system="imperial")
    assert cfg.goal_time_seconds == 4 * 3600 + 30 * 60 + 15
    assert cfg.unit_system == "imperial"
    assert cfg.segment_length_m == 1609.34


def test_plan_config_from_inputs_rejects_negative_and_zero():
    with pytest.raises(InvalidConfigurationError):
        PlanConfig.from_inputs(hours=-1, minutes=90)
    with pytest.raises(InvalidConfigurationError):
        PlanConfig.from_inputs()


def test_track_point_at_distance():
    p = TrackPoint(45.0, 5.0, 100.0, 10.0)
    moved = p.at_distance(25.0)
    assert moved.distance_from_start == 25.0
    assert (moved.latitude, moved.longitude, moved.elevation) == (45.0, 5.0, 100.0)


def test_planned_segment_from_segment():
    seg = make_segment(3, 2000.0, 3000.0, gradient_pct=5.0)
    planned = PlannedSegment.from_segment(
        seg,
        combined_elevation_change=50.0,
        target_duration_seconds=420.0,
        target_pace_seconds_per_km=360.0,
        cumulative_elapsed_seconds=1500.0,
        has_rest_stop=True,
        fatigue_level_percent=40,
        rest_penalty_seconds=60.0,
    )
    assert planned.sequence_id == 3
    assert planned.distance_km == 1.0
    assert planned.running_seconds == 360.0
    with pytest.raises(dataclasses.FrozenInstanceError):
        planned.target_duration_seconds = 1.0  # type: ignore[misc]


def test_rest_stop_default_penalty():
    assert RestStop(12.0).penalty_seconds == 30
