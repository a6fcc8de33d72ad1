"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Tests for distance segmentation.
"""

from __future__ import annotations

import math

import pytest

from services.pacer.errors import EmptyTrackError, InvalidConfigurationError
from services.pacer.models import TrackPoint
from services.pacer.segmentation import SegmentationService, interpolate_point
from tests.conftest import make_points


@pytest.fixture
def segmentation() -> SegmentationService:
    return SegmentationService()


def test_flat_track_ten_segments(segmentation, flat_points):
    segments = segmentation.segment_course(flat_points, 1000.0)
    assert len(segments) == 10
    assert [s.sequence_id for s in segments] == list(range(1, 11))
    assert segments[0].start_distance == 0
    assert segments[-1].end_distance == 10_000
    for seg in segments:
        assert seg.average_gradient_percent == pytest.approx(0.0)
        assert seg.elevation_gain == pytest.approx(0.0)


@pytest.mark.parametrize("segment_length", [100.0, 250.0, 333.3, 1000.0, 1609.34, 5000.0, 20_000.0])
def test_segments_cover_track_contiguously(segmentation, hilly_points, segment_length):
    total = hilly_points[-1].distance_from_start
    segments = segmentation.segment_course(hilly_points, segment_length)

    assert len(segments) == math.ceil(total / segment_length)
    assert segments[0].start_distance == 0
    assert segments[-1].end_distance == total
    for prev, nxt in zip(segments, segments[1:]):
        assert prev.end_distance == nxt.start_distance
    for seg in segments:
        assert seg.end_distance > seg.start_distance
        distances = [p.distance_from_start for p in seg.points]
        assert distances[0] == seg.start_distance
        assert distances[-1] == seg.end_distance
        assert distances == sorted(distances)
        assert all(seg.start_distance < d < seg.end_distance for d in distances[1:-1])


def test_every_track_point_lands_in_exactly_one_segment(segmentation, hilly_points):
    segments = segmentation.segment_course(hilly_points, 700.0)
    interior = [p for seg in segments for p in seg.points[1:-1]]
    boundaries = {seg.start_distance for seg in segments} | {segments[-1].end_distance}
    expected = [p for p in hilly_points if p.distance_from_start not in boundaries]
    assert [p.distance_from_start for p in interior] == [p.distance_from_start for p in expected]


def test_remainder_segment(segmentation):
    points = make_points(10_500.0, 100.0)
    segments = segmentation.segment_course(points, 1000.0)
    assert len(segments) == 11
    assert segments[-1].start_distance == 10_000
    assert segments[-1].distance == pytest.approx(500.0)


def test_boundary_interpolation_and_gradient(segmentation):
    points = [
        TrackPoint(45.0, 5.0, 100.0, 0.0),
        TrackPoint(45.01, 5.0, 200.0, 1000.0),
    ]
    segments = segmentation.segment_course(points, 250.0)
    assert len(segments) == 4

    first = segments[0]
    assert first.points[-1].elevation == pytest.approx(125.0)
    assert first.points[-1].latitude == pytest.approx(45.0025)
    assert first.average_gradient_percent == pytest.approx(10.0)
    assert first.elevation_gain == pytest.approx(25.0)
    assert first.elevation_loss == 0
    assert first.max_elevation == pytest.approx(125.0)
    assert first.min_elevation == pytest.approx(100.0)
    assert segments[2].points[0].elevation == pytest.approx(150.0)


def test_gain_and_loss_within_segment(segmentation):
    points = [
        TrackPoint(45.0, 5.0, 100.0, 0.0),
        TrackPoint(45.0, 5.0, 130.0, 300.0),
        TrackPoint(45.0, 5.0, 110.0, 600.0),
        TrackPoint(45.0, 5.0, 100.0, 1000.0),
    ]
    seg = segmentation.segment_course(points, 1000.0)[0]
    assert seg.elevation_gain == pytest.approx(30.0)
    assert seg.elevation_loss == pytest.approx(30.0)
    assert seg.average_gradient_percent == pytest.approx(0.0)
    assert seg.max_elevation == 130.0
    assert len(seg.points) == 4


def test_interpolate_point_same_distance_returns_copy():
    p1 = TrackPoint(45.0, 5.0, 100.0, 500.0)
    p2 = TrackPoint(45.1, 5.1, 200.0, 500.0)
    result = interpolate_point(p1, p2, 500.0)
    assert result.latitude == p1.latitude
    assert result.elevation == p1.elevation


def test_zero_length_track_has_no_segments(segmentation):
    points = [TrackPoint(45.0, 5.0, 100.0, 0.0)]
    assert segmentation.segment_course(points, 500.0) == []


def test_tiny_remainder_segment_stays_finite(segmentation):
    points = make_points(1000.0, 100.0) + [TrackPoint(45.0, 5.0, 150.0, 1000.0000001)]
    segments = segmentation.segment_course(points, 1000.0)
    assert len(segments) == 2
    assert segments[-1].distance < 1e-3
    assert math.isfinite(segments[-1].average_gradient_percent)


@pytest.mark.parametrize("length", [0.0, -5.0, float("nan"), float("inf")])
def test_invalid_segment_length(segmentation, flat_points, length):
    with pytest.raises(InvalidConfigurationError):
        segmentation.segment_course(flat_points, length)


def test_empty_points_raise(segmentation):
    with pytest.raises(EmptyTrackError):
        segmentation.segment_course([], 500.0)
