"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

import datetime as dt

import pytest

from services.pacer.engine import calculate_race_plan
from services.pacer.models import RestStop, TrackPoint
from services.pacer.serialization import (
    PLAN_COLUMNS,
    SEGMENT_COLUMNS,
    plan_to_frame,
    plan_to_records,
    point_to_dict,
    points_to_frame,
    segments_to_frame,
)


def test_point_to_dict_timestamp_iso():
    ts = dt.datetime(2025, 6, 1, 8, 0, tzinfo=dt.timezone.utc)
    record = point_to_dict(TrackPoint(45.0, 5.0, 100.0, 12.5, ts))
    assert record["distanceM"] == 12.5
    assert record["timestamp"] == "2025-06-01T08:00:00+00:00"
    assert point_to_dict(TrackPoint(45.0, 5.0, 100.0))["timestamp"] is None


def test_points_to_frame(flat_points):
    df = points_to_frame(flat_points)
    assert len(df) == len(flat_points)
    assert df["distanceM"].iloc[-1] == 10_000.0


def test_segments_to_frame(flat_segments):
    df = segments_to_frame(flat_segments)
    assert list(df.columns) == SEGMENT_COLUMNS
    assert df["segmentId"].tolist() == list(range(1, 11))
    assert df["endKm"].iloc[-1] == 10.0


def test_plan_records_include_points_on_request(flat_segments):
    plan = calculate_race_plan(flat_segments, 3600)
    assert "points" not in plan_to_records(plan)[0]
    with_points = plan_to_records(plan, include_points=True)
    assert len(with_points[0]["points"]) == 2


def test_plan_to_frame_columns_and_totals(flat_segments):
    plan = calculate_race_plan(flat_segments, 3600, [RestStop(5.0, 60)])
    df = plan_to_frame(plan)

    assert list(df.columns) == PLAN_COLUMNS
    assert df["timeSec"].sum() == pytest.approx(3600, abs=1e-3)
    assert df["restSec"].sum() == 60
    assert df["runningTimeSec"].sum() == pytest.approx(3540, abs=1e-3)
    assert df["hasRestStop"].sum() == 1


def test_time_bank_ends_at_zero(flat_segments):
    df = plan_to_frame(calculate_race_plan(flat_segments, 3600))
    assert df["timeBankSec"].iloc[-1] == pytest.approx(0.0, abs=1e-6)
    # Conservative opener banks no time early on
    assert df["timeBankSec"].iloc[0] < 0


def test_plan_to_frame_empty():
    df = plan_to_frame([])
    assert df.empty
    assert list(df.columns) == PLAN_COLUMNS
