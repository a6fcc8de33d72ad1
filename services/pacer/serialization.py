"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Plain-data views of pacer outputs (records and DataFrames).
"""

from __future__ import annotations

from typing import Any, Dict, List, Sequence

import numpy as np
import pandas as pd

from services.pacer.models import PlannedSegment, Segment, TrackPoint

SEGMENT_COLUMNS = [
    "segmentId",
    "startKm",
    "endKm",
    "distanceKm",
    "elevGainM",
    "elevLossM",
    "avgGradePct",
    "maxEleM",
    "minEleM",
]

PLAN_COLUMNS = SEGMENT_COLUMNS + [
    "combinedElevM",
    "runningTimeSec",
    "restSec",
    "timeSec",
    "paceSecPerKm",
    "cumulativeTimeSec",
    "hasRestStop",
    "fatiguePct",
    "performanceFactor",
    "timeBankSec",
]


def point_to_dict(point: TrackPoint) -> Dict[str, Any]:
    return {
        "lat": point.latitude,
        "lon": point.longitude,
        "elevationM": point.elevation,
        "distanceM": point.distance_from_start,
        "timestamp": point.timestamp.isoformat() if point.timestamp else None,
    }


def points_to_frame(points: Sequence[TrackPoint]) -> pd.DataFrame:
    return pd.DataFrame(
        [point_to_dict(p) for p in points], columns=["lat", "lon", "elevationM", "distanceM", "timestamp"]
    )


def segment_to_dict(segment: Segment, include_points: bool = False) -> Dict[str, Any]:
    record: Dict[str, Any] = {
        "segmentId": segment.sequence_id,
        "startKm": segment.start_distance / 1000.0,
        "endKm": segment.end_distance / 1000.0,
        "distanceKm": segment.distance_km,
        "elevGainM": segment.elevation_gain,
        "elevLossM": segment.elevation_loss,
        "avgGradePct": segment.average_gradient_percent,
        "maxEleM": segment.max_elevation,
        "minEleM": segment.min_elevation,
    }
    if include_points:
        record["points"] = [point_to_dict(p) for p in segment.points]
    return record


def planned_segment_to_dict(segment: PlannedSegment, include_points: bool = False) -> Dict[str, Any]:
    record = segment_to_dict(segment, include_points=include_points)
    record.update(
        {
            "combinedElevM": segment.combined_elevation_change,
            "runningTimeSec": segment.running_seconds,
            "restSec": segment.rest_penalty_seconds,
            "timeSec": segment.target_duration_seconds,
            "paceSecPerKm": segment.target_pace_seconds_per_km,
            "cumulativeTimeSec": segment.cumulative_elapsed_seconds,
            "hasRestStop": segment.has_rest_stop,
            "fatiguePct": segment.fatigue_level_percent,
            "performanceFactor": segment.performance_factor,
        }
    )
    return record


def plan_to_records(plan: Sequence[PlannedSegment], include_points: bool = False) -> List[Dict[str, Any]]:
    return [planned_segment_to_dict(s, include_points=include_points) for s in plan]


def segments_to_frame(segments: Sequence[Segment]) -> pd.DataFrame:
    return pd.DataFrame([segment_to_dict(s) for s in segments], columns=SEGMENT_COLUMNS)


def plan_to_frame(plan: Sequence[PlannedSegment]) -> pd.DataFrame:
    """Tabular plan, one row per segment, with the even-pace time bank.

    `timeBankSec` is even-pace elapsed time minus planned elapsed time at each
    segment end: positive means the plan is ahead of a constant pace.
    """
    df = pd.DataFrame(plan_to_records(plan), columns=PLAN_COLUMNS[:-1])
    if df.empty:
        df["timeBankSec"] = pd.Series(dtype=float)
        return df

    total_km = float(df["endKm"].iloc[-1])
    total_time = float(df["cumulativeTimeSec"].iloc[-1])
    if total_km > 0:
        even_pace = total_time / total_km
        df["timeBankSec"] = df["endKm"] * even_pace - df["cumulativeTimeSec"]
    else:
        df["timeBankSec"] = np.zeros(len(df))
    return df
