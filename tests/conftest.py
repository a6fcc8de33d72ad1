import math
import sys
from pathlib import Path

import pandas as pd
import pytest


# Ensure project root is importable for tests
PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))


from config import EARTH_RADIUS_M
from services.pacer.models import Segment, TrackPoint

METERS_PER_DEGREE_LAT = EARTH_RADIUS_M * math.pi / 180.0


def make_points(total_m: float, step_m: float, elevation=lambda d: 100.0) -> list[TrackPoint]:
    """Track along a meridian with exact cumulative distances."""
    count = int(round(total_m / step_m))
    points = []
    for i in range(count + 1):
        d = min(i * step_m, total_m)
        points.append(
            TrackPoint(
                latitude=45.0 + d / METERS_PER_DEGREE_LAT,
                longitude=5.0,
                elevation=float(elevation(d)),
                distance_from_start=float(d),
            )
        )
    return points


def make_segment(
    sequence_id: int,
    start: float,
    end: float,
    gradient_pct: float = 0.0,
    gain: float | None = None,
    loss: float | None = None,
    min_elevation: float = 100.0,
) -> Segment:
    """Hand-built segment for engine tests (points only carry the boundaries)."""
    net = gradient_pct / 100.0 * (end - start)
    if gain is None:
        gain = max(net, 0.0)
    if loss is None:
        loss = max(-net, 0.0)
    start_point = TrackPoint(45.0, 5.0, min_elevation, start)
    end_point = TrackPoint(45.0, 5.0, min_elevation + net, end)
    return Segment(
        sequence_id=sequence_id,
        start_distance=start,
        end_distance=end,
        elevation_gain=gain,
        elevation_loss=loss,
        average_gradient_percent=gradient_pct,
        max_elevation=max(min_elevation, min_elevation + net),
        min_elevation=min_elevation,
        points=(start_point, end_point),
    )


def make_samples(total_m: float, step_m: float, elevation=lambda d: 100.0) -> pd.DataFrame:
    """Raw samples DataFrame as produced by the GPX parser."""
    points = make_points(total_m, step_m, elevation)
    return pd.DataFrame(
        {
            "lat": [p.latitude for p in points],
            "lon": [p.longitude for p in points],
            "elevationM": [p.elevation for p in points],
        }
    )


def make_gpx(samples: pd.DataFrame, name: str | None = "Test Course", namespace: bool = True) -> bytes:
    trkpts = "".join(
        f'<trkpt lat="{row.lat}" lon="{row.lon}"><ele>{row.elevationM}</ele></trkpt>'
        for row in samples.itertuples(index=False)
    )
    name_tag = f"<name>{name}</name>" if name else ""
    xmlns = ' xmlns="http://www.topografix.com/GPX/1/1"' if namespace else ""
    return (
        f'<?xml version="1.0" encoding="UTF-8"?>'
        f'<gpx version="1.1" creator="test"{xmlns}>'
        f"<trk>{name_tag}<trkseg>{trkpts}</trkseg></trk></gpx>"
    ).encode()


@pytest.fixture
def flat_points() -> list[TrackPoint]:
    return make_points(10_000.0, 100.0)


@pytest.fixture
def hilly_points() -> list[TrackPoint]:
    # 12 km: 4 km climb at 8 %, 4 km rolling, 4 km descent at 6 %
    def elevation(d: float) -> float:
        if d <= 4000:
            return 500.0 + 0.08 * d
        if d <= 8000:
            return 820.0 + 15.0 * math.sin((d - 4000) / 150.0)
        return 820.0 + 15.0 * math.sin(4000 / 150.0) - 0.06 * (d - 8000)

    return make_points(12_000.0, 50.0, elevation)


@pytest.fixture
def flat_segments() -> list[Segment]:
    return [make_segment(i + 1, i * 1000.0, (i + 1) * 1000.0) for i in range(10)]
