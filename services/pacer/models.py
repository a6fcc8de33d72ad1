"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Plain data records exchanged between the normalizer, segmenter and pacing engine.
"""

from __future__ import annotations

import datetime as dt
import math
import uuid
from dataclasses import dataclass, field, fields
from typing import Any, Iterable, Literal, Optional

import config as constants
from services.pacer.errors import InvalidConfigurationError

UnitSystem = Literal["metric", "imperial"]
UNIT_SYSTEMS: tuple[str, ...] = ("metric", "imperial")


@dataclass(frozen=True)
class TrackPoint:
    latitude: float
    longitude: float
    elevation: float
    distance_from_start: float = 0.0
    timestamp: Optional[dt.datetime] = None

    def at_distance(self, distance: float) -> "TrackPoint":
        """Copy of this point pinned to another cumulative distance."""
        return TrackPoint(self.latitude, self.longitude, self.elevation, distance, self.timestamp)


@dataclass(frozen=True)
class TrackSummary:
    total_distance: float
    total_elevation_gain: float
    total_elevation_loss: float
    max_elevation: float
    min_elevation: float
    point_count: int
    display_name: Optional[str] = None


@dataclass(frozen=True)
class Segment:
    sequence_id: int
    start_distance: float
    end_distance: float
    elevation_gain: float
    elevation_loss: float
    average_gradient_percent: float
    max_elevation: float
    min_elevation: float
    points: tuple[TrackPoint, ...]

    @property
    def distance(self) -> float:
        return self.end_distance - self.start_distance

    @property
    def distance_km(self) -> float:
        return self.distance / 1000.0


@dataclass(frozen=True)
class PlannedSegment(Segment):
    combined_elevation_change: float
    target_duration_seconds: float
    target_pace_seconds_per_km: float
    cumulative_elapsed_seconds: float
    has_rest_stop: bool
    fatigue_level_percent: int
    rest_penalty_seconds: float = 0.0
    performance_factor: float = 1.0

    @property
    def running_seconds(self) -> float:
        """Duration spent moving, i.e. without the rest-stop penalty."""
        return self.target_duration_seconds - self.rest_penalty_seconds

    @classmethod
    def from_segment(cls, segment: Segment, **plan_fields: Any) -> "PlannedSegment":
        base = {f.name: getattr(segment, f.name) for f in fields(Segment)}
        return cls(**base, **plan_fields)


def distance_to_meters(value: float, unit_system: str) -> float:
    """Convert a course distance typed in km (metric) or miles (imperial) to meters."""
    if unit_system == "imperial":
        return (value / constants.KM_TO_MILES) * 1000.0
    return value * 1000.0


@dataclass(frozen=True)
class RestStop:
    """Aid station: fixed stop time anchored at a course distance in user units."""

    distance_from_start: float
    penalty_seconds: float = constants.DEFAULT_REST_PENALTY_SEC
    identifier: str = field(default_factory=lambda: str(uuid.uuid4()))

    def __post_init__(self) -> None:
        if not math.isfinite(self.distance_from_start) or self.distance_from_start < 0:
            raise InvalidConfigurationError(
                f"Rest stop distance must be >= 0, got {self.distance_from_start!r}"
            )
        if not math.isfinite(self.penalty_seconds) or self.penalty_seconds < 0:
            raise InvalidConfigurationError(
                f"Rest stop penalty must be >= 0 seconds, got {self.penalty_seconds!r}"
            )

    def distance_meters(self, unit_system: str) -> float:
        return distance_to_meters(self.distance_from_start, unit_system)


def is_on_course(distance_m: float, course_distance_m: float) -> bool:
    """Whether a rest stop at `distance_m` falls on a course of `course_distance_m`."""
    return distance_m <= course_distance_m + constants.REST_STOP_OVERSHOOT_TOLERANCE_M


def validate_unit_system(unit_system: str) -> str:
    if unit_system not in UNIT_SYSTEMS:
        raise InvalidConfigurationError(f"Unknown unit system: {unit_system!r}")
    return unit_system


@dataclass(frozen=True)
class PlanConfig:
    goal_time_seconds: int
    segment_length_m: float
    unit_system: UnitSystem = "metric"
    rest_stops: tuple[RestStop, ...] = ()

    def __post_init__(self) -> None:
        goal = self.goal_time_seconds
        if not isinstance(goal, (int, float)) or not math.isfinite(goal) or goal <= 0:
            raise InvalidConfigurationError(
                f"Goal time must be positive, got {self.goal_time_seconds!r}"
            )
        if not math.isfinite(self.segment_length_m) or self.segment_length_m <= 0:
            raise InvalidConfigurationError(
                f"Segment length must be positive, got {self.segment_length_m!r}"
            )
        validate_unit_system(self.unit_system)
        ordered = tuple(sorted(self.rest_stops, key=lambda stop: stop.distance_from_start))
        object.__setattr__(self, "rest_stops", ordered)

    @property
    def total_rest_seconds(self) -> float:
        return float(sum(stop.penalty_seconds for stop in self.rest_stops))

    @classmethod
    def from_inputs(
        cls,
        hours: int = 0,
        minutes: int = 0,
        seconds: int = 0,
        segment_length_m: float = constants.DEFAULT_SEGMENT_LENGTH_M,
        unit_system: str = "metric",
        rest_stops: Iterable[RestStop] = (),
    ) -> "PlanConfig":
        """Build a config from form-style H/M/S inputs."""
        for label, value in (("hours", hours), ("minutes", minutes), ("seconds", seconds)):
            if value < 0:
                raise InvalidConfigurationError(f"{label} must be >= 0, got {value!r}")
        total = int(hours) * 3600 + int(minutes) * 60 + int(seconds)
        return cls(
            goal_time_seconds=total,
            segment_length_m=float(segment_length_m),
            unit_system=unit_system,  # type: ignore[arg-type]
            rest_stops=tuple(rest_stops),
        )
