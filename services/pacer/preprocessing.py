"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

from typing import Iterable, Mapping, Optional, Union

import numpy as np
import pandas as pd
from streamlit.logger import get_logger

import config as constants
from services.pacer.errors import EmptyTrackError
from services.pacer.models import TrackPoint, TrackSummary
from utils.geodesy import cumulative_distances, distance_meters

logger = get_logger(__name__)

RawSamples = Union[pd.DataFrame, Iterable[Mapping[str, object]]]


class TrackNormalizer:
    """Turn raw GPS samples into a clean, distance-referenced track."""

    def __init__(
        self,
        min_point_spacing_m: float = constants.MIN_POINT_SPACING_M,
        downsample_threshold: int = constants.DOWNSAMPLE_THRESHOLD,
    ) -> None:
        self.min_point_spacing_m = min_point_spacing_m
        self.downsample_threshold = downsample_threshold

    def normalize(
        self, raw_samples: RawSamples, display_name: Optional[str] = None
    ) -> tuple[list[TrackPoint], TrackSummary]:
        """Normalize raw samples (distance-referenced, time-invariant).

        Pipeline: downsample very long inputs, drop stationary GPS jitter,
        smooth elevation with a 3-tap weighted average, then recompute
        cumulative distance and aggregate elevation statistics.

        Args:
            raw_samples: DataFrame (or records) with lat, lon, elevationM and
                an optional timestamp column
            display_name: Optional track name carried into the summary

        Returns:
            Tuple of (points, summary)

        Raises:
            EmptyTrackError: if there are no usable samples
        """
        df = self._to_frame(raw_samples)
        if df.empty:
            raise EmptyTrackError("Track contains no samples")

        df = self._clean(df)
        if df.empty:
            raise EmptyTrackError("Track contains no samples with valid coordinates")

        if len(df) > self.downsample_threshold:
            before = len(df)
            df = self.downsample(df)
            logger.debug("Downsampled track from %d to %d points", before, len(df))

        kept = self.filter_spatial_noise(df)
        logger.debug("Noise filter kept %d of %d points", len(kept), len(df))

        elevations = smooth_elevation(kept["elevationM"].to_numpy(dtype=float))
        distances = cumulative_distances(kept["lat"].to_numpy(), kept["lon"].to_numpy())

        timestamps = kept["timestamp"].tolist() if "timestamp" in kept.columns else [None] * len(kept)
        points = [
            TrackPoint(
                latitude=float(lat),
                longitude=float(lon),
                elevation=float(ele),
                distance_from_start=float(dist),
                timestamp=_to_datetime(ts),
            )
            for lat, lon, ele, dist, ts in zip(
                kept["lat"], kept["lon"], elevations, distances, timestamps
            )
        ]
        return points, summarize(points, display_name=display_name)

    def _to_frame(self, raw_samples: RawSamples) -> pd.DataFrame:
        if isinstance(raw_samples, pd.DataFrame):
            return raw_samples.copy()
        return pd.DataFrame(list(raw_samples))

    def _clean(self, df: pd.DataFrame) -> pd.DataFrame:
        if "lat" not in df.columns or "lon" not in df.columns:
            logger.warning("Missing lat/lon columns for normalization")
            return pd.DataFrame()

        df["lat"] = pd.to_numeric(df["lat"], errors="coerce")
        df["lon"] = pd.to_numeric(df["lon"], errors="coerce")
        finite = np.isfinite(df["lat"]) & np.isfinite(df["lon"])
        df = df[finite].reset_index(drop=True)
        if df.empty:
            return df

        if "elevationM" not in df.columns:
            df["elevationM"] = 0.0
        df["elevationM"] = pd.to_numeric(df["elevationM"], errors="coerce").ffill().bfill().fillna(0.0)
        return df

    def downsample(self, df: pd.DataFrame) -> pd.DataFrame:
        """Keep first, last and every second interior point."""
        if len(df) <= 2:
            return df
        keep = np.zeros(len(df), dtype=bool)
        keep[0] = True
        keep[-1] = True
        keep[1:-1:2] = True
        return df[keep].reset_index(drop=True)

    def filter_spatial_noise(self, df: pd.DataFrame) -> pd.DataFrame:
        """Retain points at least `min_point_spacing_m` from the last retained one.

        The final point is always retained so the track still ends at the finish.
        """
        lats = df["lat"].to_numpy(dtype=float)
        lons = df["lon"].to_numpy(dtype=float)
        last = len(df) - 1
        kept_idx = [0]
        for i in range(1, len(df)):
            anchor = kept_idx[-1]
            gap = distance_meters((lats[anchor], lons[anchor]), (lats[i], lons[i]))
            if gap >= self.min_point_spacing_m or i == last:
                kept_idx.append(i)
        return df.iloc[kept_idx].reset_index(drop=True)


def smooth_elevation(
    elevations: np.ndarray, weights: tuple[float, float, float] = constants.ELEVATION_SMOOTHING_WEIGHTS
) -> np.ndarray:
    """3-tap weighted moving average; first and last values are untouched."""
    values = np.asarray(elevations, dtype=float)
    if values.size < 3:
        return values.copy()
    smoothed = values.copy()
    w_prev, w_self, w_next = weights
    smoothed[1:-1] = w_prev * values[:-2] + w_self * values[1:-1] + w_next * values[2:]
    return smoothed


def summarize(points: list[TrackPoint], display_name: Optional[str] = None) -> TrackSummary:
    """Aggregate distance, gain/loss and extrema over a normalized track."""
    if not points:
        raise EmptyTrackError("Cannot summarize an empty track")
    elevations = np.array([p.elevation for p in points], dtype=float)
    deltas = np.diff(elevations)
    return TrackSummary(
        total_distance=points[-1].distance_from_start,
        total_elevation_gain=float(deltas[deltas > 0].sum()),
        total_elevation_loss=float(np.abs(deltas[deltas < 0]).sum()),
        max_elevation=float(elevations.max()),
        min_elevation=float(elevations.min()),
        point_count=len(points),
        display_name=display_name,
    )


def _to_datetime(value: object):
    if value is None:
        return None
    ts = pd.to_datetime(value, errors="coerce", utc=True)
    if pd.isna(ts):
        return None
    return ts.to_pydatetime()
