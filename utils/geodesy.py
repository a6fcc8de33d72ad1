"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Great-circle helpers on a spherical Earth.
"""

from __future__ import annotations

import math
from typing import Sequence

import numpy as np

from config import EARTH_RADIUS_M


def distance_meters(point_a: Sequence[float], point_b: Sequence[float]) -> float:
    """Haversine distance in meters between two (lat, lon) pairs in degrees."""
    lat1, lon1 = math.radians(point_a[0]), math.radians(point_a[1])
    lat2, lon2 = math.radians(point_b[0]), math.radians(point_b[1])
    d_lat = lat2 - lat1
    d_lon = lon2 - lon1
    a = math.sin(d_lat / 2) ** 2 + math.cos(lat1) * math.cos(lat2) * math.sin(d_lon / 2) ** 2
    # Rounding can push `a` slightly outside [0, 1] at identical or antipodal points
    a = min(1.0, max(0.0, a))
    return 2 * EARTH_RADIUS_M * math.atan2(math.sqrt(a), math.sqrt(1 - a))


def step_distances(lat: np.ndarray, lon: np.ndarray) -> np.ndarray:
    """Distance in meters from each point to the previous one (0 for the first)."""
    lat = np.radians(np.asarray(lat, dtype=float))
    lon = np.radians(np.asarray(lon, dtype=float))
    if lat.size == 0:
        return np.zeros(0)
    d_lat = np.diff(lat)
    d_lon = np.diff(lon)
    a = np.sin(d_lat / 2) ** 2 + np.cos(lat[:-1]) * np.cos(lat[1:]) * np.sin(d_lon / 2) ** 2
    a = np.clip(a, 0.0, 1.0)
    steps = 2 * EARTH_RADIUS_M * np.arctan2(np.sqrt(a), np.sqrt(1 - a))
    return np.concatenate(([0.0], steps))


def cumulative_distances(lat: np.ndarray, lon: np.ndarray) -> np.ndarray:
    """Cumulative distance in meters from the first point."""
    return np.cumsum(step_distances(lat, lon))
