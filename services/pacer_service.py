"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Pacer service for race course segmentation and pacing calculations.

Handles time-invariant GPX routes (no timestamps required).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Optional, Sequence

import pandas as pd
from streamlit.logger import get_logger

from services.pacer.aid_station_stats import AidStationStats
from services.pacer.engine import PacingEngine
from services.pacer.errors import EmptyTrackError
from services.pacer.models import PlanConfig, PlannedSegment, RestStop, Segment, TrackPoint, TrackSummary
from services.pacer.preprocessing import RawSamples, TrackNormalizer
from services.pacer.segmentation import SegmentationService
from services.pacer.serialization import plan_to_frame
from utils.config import Config, load_config
from utils.formatting import set_locale
from utils.gpx_parser import parse_gpx_name, parse_gpx_to_timeseries

logger = get_logger(__name__)


@dataclass(frozen=True)
class PlanResult:
    summary: TrackSummary
    segments: list[Segment]
    plan: list[PlannedSegment]
    config: PlanConfig


class PacerService:
    """Service for race course segmentation and pacing."""

    def __init__(self, config: Optional[Config] = None):
        self.config = config or load_config()
        set_locale(self.config.locale)
        self.normalizer = TrackNormalizer(
            min_point_spacing_m=self.config.min_point_spacing_m,
            downsample_threshold=self.config.downsample_threshold,
        )
        self.segmentation = SegmentationService()
        self.engine = PacingEngine()
        self.aid_stations = AidStationStats()

    def make_plan_config(
        self,
        goal_time_seconds: int,
        segment_length_m: Optional[float] = None,
        unit_system: Optional[str] = None,
        rest_stops: Iterable[RestStop] = (),
    ) -> PlanConfig:
        """Build a PlanConfig, falling back to the configured segment length and units."""
        return PlanConfig(
            goal_time_seconds=goal_time_seconds,
            segment_length_m=(
                segment_length_m if segment_length_m is not None else self.config.default_segment_length_m
            ),
            unit_system=unit_system or self.config.default_unit_system,  # type: ignore[arg-type]
            rest_stops=tuple(rest_stops),
        )

    def load_track(self, gpx_bytes: bytes | str) -> tuple[list[TrackPoint], TrackSummary]:
        """Parse and normalize a GPX file.

        Raises:
            EmptyTrackError: if the file has no usable track points
        """
        timeseries_df = parse_gpx_to_timeseries(gpx_bytes)
        if timeseries_df.empty:
            raise EmptyTrackError("No track points found in GPX file")
        return self.normalizer.normalize(timeseries_df, display_name=parse_gpx_name(gpx_bytes))

    def normalize_samples(
        self, raw_samples: RawSamples, display_name: Optional[str] = None
    ) -> tuple[list[TrackPoint], TrackSummary]:
        return self.normalizer.normalize(raw_samples, display_name=display_name)

    def build_segments(
        self, points: Sequence[TrackPoint], segment_length_m: Optional[float] = None
    ) -> list[Segment]:
        length = segment_length_m if segment_length_m is not None else self.config.default_segment_length_m
        return self.segmentation.segment_course(points, length)

    def build_plan(
        self, segments: Sequence[Segment], plan_config: PlanConfig, strict: bool = False
    ) -> list[PlannedSegment]:
        return self.engine.plan(
            segments,
            plan_config.goal_time_seconds,
            plan_config.rest_stops,
            plan_config.unit_system,
            strict=strict,
        )

    def plan_from_points(
        self,
        points: Sequence[TrackPoint],
        summary: TrackSummary,
        plan_config: PlanConfig,
        strict: bool = False,
    ) -> PlanResult:
        segments = self.build_segments(points, plan_config.segment_length_m)
        plan = self.build_plan(segments, plan_config, strict=strict)
        return PlanResult(summary=summary, segments=segments, plan=plan, config=plan_config)

    def plan_from_gpx(
        self, gpx_bytes: bytes | str, plan_config: PlanConfig, strict: bool = False
    ) -> PlanResult:
        """Full pipeline: GPX -> normalized track -> segments -> plan."""
        points, summary = self.load_track(gpx_bytes)
        result = self.plan_from_points(points, summary, plan_config, strict=strict)
        logger.info(
            "Planned %s: %.2f km, %d segments, goal %ds",
            summary.display_name or "track",
            summary.total_distance / 1000.0,
            len(result.segments),
            plan_config.goal_time_seconds,
        )
        return result

    def plan_frame(self, plan: Sequence[PlannedSegment]) -> pd.DataFrame:
        return plan_to_frame(plan)

    def aid_station_table(self, result: PlanResult) -> pd.DataFrame:
        """Arrival/departure times and leg stats per aid station."""
        plan_df = plan_to_frame(result.plan)
        stops = result.config.rest_stops
        units = result.config.unit_system
        times = self.aid_stations.compute_aid_station_times(stops, units, plan_df)
        legs = self.aid_stations.compute_aid_station_stats(stops, units, plan_df)
        rows = []
        for timing, leg in zip(times, legs):
            rows.append(
                {
                    **timing,
                    "legDistanceKm": leg["distanceKm"],
                    "legElevGainM": leg["elevGainM"],
                    "legElevLossM": leg["elevLossM"],
                    "legRunningTimeSec": leg["runningTimeSec"],
                }
            )
        return pd.DataFrame(rows)

    def aggregate_summary(self, plan: Sequence[PlannedSegment]) -> dict:
        """Aggregate totals from a plan.

        Args:
            plan: Planned segments

        Returns:
            Dictionary with totals
        """
        if not plan:
            return {
                "distanceKm": 0.0,
                "elevGainM": 0.0,
                "elevLossM": 0.0,
                "runningTimeSec": 0.0,
                "stoppedTimeSec": 0.0,
                "timeSec": 0.0,
                "avgRunningPaceSecPerKm": 0.0,
                "avgPaceSecPerKm": 0.0,
            }

        distance_km = plan[-1].end_distance / 1000.0
        stopped = sum(s.rest_penalty_seconds for s in plan)
        total = plan[-1].cumulative_elapsed_seconds
        running = total - stopped
        return {
            "distanceKm": distance_km,
            "elevGainM": float(sum(s.elevation_gain for s in plan)),
            "elevLossM": float(sum(s.elevation_loss for s in plan)),
            "runningTimeSec": running,
            "stoppedTimeSec": float(stopped),
            "timeSec": total,
            "avgRunningPaceSecPerKm": running / distance_km if distance_km > 0 else 0.0,
            "avgPaceSecPerKm": total / distance_km if distance_km > 0 else 0.0,
        }
