"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

# ==============================================================================
# GEODESY & TRACK NORMALIZATION
# ==============================================================================

EARTH_RADIUS_M = 6_371_000.0
MIN_POINT_SPACING_M = 8.0
DOWNSAMPLE_THRESHOLD = 50_000
ELEVATION_SMOOTHING_WEIGHTS = (0.2, 0.6, 0.2)

# Distances closer than this (meters) are treated as the same position
POSITION_MATCH_TOLERANCE_M = 1e-3

# ==============================================================================
# TERRAIN COST (average gradient as a fraction, not percentage)
# ==============================================================================

UPHILL_LINEAR_COEF = 3.0
UPHILL_QUADRATIC_COEF = 12.0

DOWNHILL_BRAKING_ONSET = 0.15
DOWNHILL_EXTREME_ONSET = 0.25
DOWNHILL_GAIN_COEF = 2.0
DOWNHILL_BRAKING_BASE = 0.7
DOWNHILL_BRAKING_COEF = 1.5
DOWNHILL_EXTREME_BASE = 0.85
DOWNHILL_EXTREME_COEF = 3.0

TECHNICALITY_WEIGHT = 0.5
ALTITUDE_THRESHOLD_M = 2000.0
ALTITUDE_DIVISOR_M = 10_000.0

# ==============================================================================
# STRATEGY & FATIGUE
# ==============================================================================

# Race progress bands (fraction of total distance)
STRATEGY_OPENER_END = 0.10
STRATEGY_SETTLE_END = 0.30
STRATEGY_FINISH_START = 0.85

STRATEGY_OPENER_MULTIPLIER = 0.96
STRATEGY_SETTLE_MULTIPLIER = 1.00
STRATEGY_PUSH_MULTIPLIER = 1.02
STRATEGY_FINISH_MULTIPLIER = 1.01

FATIGUE_ONSET = 0.80
FATIGUE_SLOPE = 0.25

PERFORMANCE_SMOOTHING_WEIGHTS = (0.2, 0.6, 0.2)
PENULTIMATE_PREVIOUS_WEIGHT = 0.7

# ==============================================================================
# ALLOCATION SAFETY CLAMP
# ==============================================================================

PACE_CLAMP_MIN_RATIO = 0.4
PACE_CLAMP_MAX_RATIO = 3.0
STEEP_GRADIENT_EXEMPTION_PCT = 15.0
MIN_SEGMENT_LENGTH_M = 1.0
# Rest stops typed slightly past the finish (rounding, unit conversion) still count
REST_STOP_OVERSHOOT_TOLERANCE_M = 1.0
RELAXATION_MAX_ITERATIONS = 50

# ==============================================================================
# UNITS
# ==============================================================================

KM_TO_MILES = 0.621371
METERS_TO_FEET = 3.28084

SEGMENT_LENGTH_OPTIONS_M = {
    "metric": [100.0, 250.0, 500.0, 1000.0, 2000.0, 5000.0],
    "imperial": [160.934, 402.336, 804.672, 1609.34, 3218.69, 4828.03],
}
DEFAULT_SEGMENT_LENGTH_M = 500.0
DEFAULT_REST_PENALTY_SEC = 30
