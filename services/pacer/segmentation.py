"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

import math
from bisect import bisect_left, bisect_right
from typing import Sequence

from streamlit.logger import get_logger

from config import POSITION_MATCH_TOLERANCE_M
from services.pacer.errors import EmptyTrackError, InvalidConfigurationError
from services.pacer.models import Segment, TrackPoint

logger = get_logger(__name__)


def interpolate_point(p1: TrackPoint, p2: TrackPoint, target_distance: float) -> TrackPoint:
    """Linear interpolation of lat/lon/elevation at a cumulative distance between two points."""
    span = p2.distance_from_start - p1.distance_from_start
    if span == 0:
        return p1.at_distance(target_distance)
    fraction = (target_distance - p1.distance_from_start) / span
    return TrackPoint(
        latitude=p1.latitude + (p2.latitude - p1.latitude) * fraction,
        longitude=p1.longitude + (p2.longitude - p1.longitude) * fraction,
        elevation=p1.elevation + (p2.elevation - p1.elevation) * fraction,
        distance_from_start=target_distance,
    )


class SegmentationService:
    """Split a normalized track into fixed-length distance segments."""

    def segment_course(self, points: Sequence[TrackPoint], segment_length_m: float) -> list[Segment]:
        """Segment course every `segment_length_m` meters.

        Boundary points are interpolated exactly at each segment start/end;
        points strictly inside a segment are kept in order. A single cursor
        moves forward through the track so the whole scan is linear.

        Args:
            points: Normalized track points (non-decreasing distance)
            segment_length_m: Segment length in meters

        Returns:
            Contiguous segments covering [0, total distance]
        """
        if not math.isfinite(segment_length_m) or segment_length_m <= 0:
            raise InvalidConfigurationError(
                f"Segment length must be positive, got {segment_length_m!r}"
            )
        if not points:
            raise EmptyTrackError("No points to segment")

        distances = [p.distance_from_start for p in points]
        total_distance = distances[-1]
        count = math.ceil(total_distance / segment_length_m)

        segments: list[Segment] = []
        cursor = 0
        for i in range(count):
            start = i * segment_length_m
            end = min((i + 1) * segment_length_m, total_distance)

            start_point, start_idx = self._point_at(points, distances, start, cursor)
            cursor = max(0, start_idx - 1)
            end_point, end_idx = self._point_at(points, distances, end, cursor)

            lo = bisect_right(distances, start + POSITION_MATCH_TOLERANCE_M, lo=cursor)
            hi = bisect_left(distances, end - POSITION_MATCH_TOLERANCE_M, lo=lo)
            interior = points[lo:hi]

            segment_points = (start_point, *interior, end_point)
            segments.append(self.compute_segment_stats(i + 1, segment_points, start, end))
            cursor = max(cursor, end_idx - 1)

        logger.debug(
            "Segmented %.1f m into %d segments of %.1f m", total_distance, len(segments), segment_length_m
        )
        return segments

    def _point_at(
        self,
        points: Sequence[TrackPoint],
        distances: list[float],
        target: float,
        start_hint: int,
    ) -> tuple[TrackPoint, int]:
        """Find or interpolate the point at `target`, searching from `start_hint`."""
        if target <= distances[0]:
            return points[0].at_distance(target), 0
        last_idx = len(points) - 1
        if target >= distances[last_idx]:
            return points[last_idx].at_distance(target), last_idx

        idx = bisect_left(distances, target, lo=start_hint)
        after = points[idx]
        if abs(after.distance_from_start - target) < POSITION_MATCH_TOLERANCE_M:
            return after.at_distance(target), idx
        return interpolate_point(points[idx - 1], after, target), idx

    def compute_segment_stats(
        self,
        sequence_id: int,
        points: Sequence[TrackPoint],
        start_distance: float,
        end_distance: float,
    ) -> Segment:
        """Elevation gain/loss, extrema and average gradient over a segment's points."""
        gain = 0.0
        loss = 0.0
        for prev, cur in zip(points, points[1:]):
            diff = cur.elevation - prev.elevation
            if diff > 0:
                gain += diff
            else:
                loss -= diff

        elevations = [p.elevation for p in points]
        length = end_distance - start_distance
        net_change = points[-1].elevation - points[0].elevation
        avg_gradient = (net_change / length) * 100 if length > 0 else 0.0

        return Segment(
            sequence_id=sequence_id,
            start_distance=start_distance,
            end_distance=end_distance,
            elevation_gain=gain,
            elevation_loss=loss,
            average_gradient_percent=avg_gradient,
            max_elevation=max(elevations),
            min_elevation=min(elevations),
            points=tuple(points),
        )
