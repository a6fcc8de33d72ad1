"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Grade-adjusted effort model for segment pacing.
"""

from __future__ import annotations

import config as constants
from services.pacer.models import Segment


def gradient_cost(grade: float) -> float:
    """Metabolic cost multiplier for an average gradient (decimal, not percentage).

    Uphill is convex; downhill gains saturate then reverse as braking sets in.
    """
    if grade >= 0:
        return 1.0 + constants.UPHILL_LINEAR_COEF * grade + constants.UPHILL_QUADRATIC_COEF * grade**2

    descent = abs(grade)
    if descent < constants.DOWNHILL_BRAKING_ONSET:
        return 1.0 - constants.DOWNHILL_GAIN_COEF * descent
    if descent < constants.DOWNHILL_EXTREME_ONSET:
        return constants.DOWNHILL_BRAKING_BASE + constants.DOWNHILL_BRAKING_COEF * (
            descent - constants.DOWNHILL_BRAKING_ONSET
        )
    return constants.DOWNHILL_EXTREME_BASE + constants.DOWNHILL_EXTREME_COEF * (
        descent - constants.DOWNHILL_EXTREME_ONSET
    )


def technicality_penalty(
    elevation_gain: float, elevation_loss: float, distance_m: float, avg_gradient_pct: float
) -> float:
    """Penalty for up/down oscillation not explained by the net gradient."""
    if distance_m <= 0:
        return 0.0
    oscillation = (elevation_gain + elevation_loss) / distance_m
    noise = max(0.0, oscillation - abs(avg_gradient_pct) / 100.0)
    return noise * constants.TECHNICALITY_WEIGHT


def altitude_penalty(min_elevation: float) -> float:
    if min_elevation <= constants.ALTITUDE_THRESHOLD_M:
        return 0.0
    return (min_elevation - constants.ALTITUDE_THRESHOLD_M) / constants.ALTITUDE_DIVISOR_M


def segment_cost_factor(segment: Segment) -> float:
    return (
        gradient_cost(segment.average_gradient_percent / 100.0)
        + technicality_penalty(
            segment.elevation_gain,
            segment.elevation_loss,
            segment.distance,
            segment.average_gradient_percent,
        )
        + altitude_penalty(segment.min_elevation)
    )


def effort_units(segment: Segment) -> float:
    """Distance scaled by terrain, technicality and altitude cost.

    Sub-meter segments carry no effort.
    """
    if segment.distance < constants.MIN_SEGMENT_LENGTH_M:
        return 0.0
    return segment.distance * segment_cost_factor(segment)
