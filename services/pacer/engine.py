"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Pacing engine: distributes a goal time over course segments.

The allocation runs in passes over the whole segment list:
0. rest stops are attached to segments and removed from the running budget
1. each segment gets an effort (distance x terrain cost)
2. each segment gets a performance factor (race strategy x fatigue)
3. performance factors are smoothed along the course
4. the running budget is split proportionally to effort / performance and
   clamped to a sane pace band around the average pace
"""

from __future__ import annotations

from bisect import bisect_left
from typing import Iterable, Sequence

import numpy as np
from streamlit.logger import get_logger

import config as constants
from services.pacer.errors import (
    DegenerateBudgetError,
    EmptyTrackError,
    InvalidConfigurationError,
)
from services.pacer.models import PlannedSegment, RestStop, Segment, is_on_course, validate_unit_system
from services.pacer.terrain import effort_units

logger = get_logger(__name__)


def strategy_multiplier(progress: float) -> float:
    """Pacing strategy by race progress (>1 means run faster than terrain suggests)."""
    if progress < constants.STRATEGY_OPENER_END:
        return constants.STRATEGY_OPENER_MULTIPLIER
    if progress < constants.STRATEGY_SETTLE_END:
        return constants.STRATEGY_SETTLE_MULTIPLIER
    if progress <= constants.STRATEGY_FINISH_START:
        return constants.STRATEGY_PUSH_MULTIPLIER
    return constants.STRATEGY_FINISH_MULTIPLIER


def fatigue_factor(relative_fatigue: float) -> float:
    if relative_fatigue <= constants.FATIGUE_ONSET:
        return 1.0
    return 1.0 - (relative_fatigue - constants.FATIGUE_ONSET) * constants.FATIGUE_SLOPE


def smooth_performance_factors(factors: Sequence[float]) -> np.ndarray:
    """Smooth factors along the course, locking in the last two segments.

    Courses with fewer than three segments are returned unchanged.
    """
    raw = np.asarray(factors, dtype=float)
    n = raw.size
    if n < 3:
        return raw.copy()

    w_prev, w_self, w_next = constants.PERFORMANCE_SMOOTHING_WEIGHTS
    smoothed = raw.copy()
    for i in range(1, n - 2):
        smoothed[i] = w_prev * raw[i - 1] + w_self * raw[i] + w_next * raw[i + 1]

    prev_weight = constants.PENULTIMATE_PREVIOUS_WEIGHT
    smoothed[n - 2] = prev_weight * smoothed[n - 3] + (1.0 - prev_weight) * raw[n - 2]
    smoothed[n - 1] = smoothed[n - 2]
    return smoothed


class PacingEngine:
    """Pure, single-shot race plan computation."""

    def plan(
        self,
        segments: Sequence[Segment],
        goal_time_seconds: float,
        rest_stops: Iterable[RestStop] = (),
        unit_system: str = "metric",
        strict: bool = False,
    ) -> list[PlannedSegment]:
        """Compute the race plan for a segmented course.

        Args:
            segments: Contiguous course segments in ascending order
            goal_time_seconds: Total finish time including rest stops
            rest_stops: Aid stations, distances in `unit_system` units
            unit_system: "metric" (km) or "imperial" (mi) for rest-stop distances
            strict: Raise DegenerateBudgetError instead of clamping the budget

        Returns:
            Planned segments whose cumulative time ends at the goal time
        """
        if not segments:
            raise EmptyTrackError("No segments to plan")
        if goal_time_seconds <= 0:
            raise InvalidConfigurationError(f"Goal time must be positive, got {goal_time_seconds!r}")
        validate_unit_system(unit_system)

        # Pass 0: rest stops
        assigned = self.assign_rest_stops(segments, list(rest_stops), unit_system)
        penalties = [sum(stop.penalty_seconds for stop in stops) for stops in assigned]
        total_stopped = float(sum(penalties))
        running_budget = max(0.0, goal_time_seconds - total_stopped)
        if total_stopped >= goal_time_seconds:
            message = (
                f"Rest stops ({total_stopped:.0f}s) consume the whole goal time "
                f"({goal_time_seconds:.0f}s)"
            )
            if strict:
                raise DegenerateBudgetError(message)
            logger.warning("%s; running budget clamped to zero", message)

        # Pass 1: terrain effort
        efforts = [effort_units(segment) for segment in segments]
        total_effort = float(sum(efforts))

        # Pass 2: strategy and fatigue
        relative_fatigue, raw_factors = self._performance_factors(segments, efforts, total_effort)

        # Pass 3: smoothing
        factors = smooth_performance_factors(raw_factors)

        # Pass 4: allocation
        running_times = self.allocate_running_time(segments, efforts, factors, running_budget)
        logger.debug(
            "Planned %d segments: effort=%.1f running=%.1fs stopped=%.1fs",
            len(segments),
            total_effort,
            running_budget,
            total_stopped,
        )
        return self._compile(segments, running_times, penalties, assigned, relative_fatigue, factors)

    def assign_rest_stops(
        self, segments: Sequence[Segment], rest_stops: Sequence[RestStop], unit_system: str
    ) -> list[list[RestStop]]:
        """Attach each rest stop to the segment whose (start, end] contains it.

        A stop at distance 0 belongs to the first segment. Stops beyond the
        finish are ignored.
        """
        ends = [segment.end_distance for segment in segments]
        total_distance = ends[-1]
        assigned: list[list[RestStop]] = [[] for _ in segments]
        for stop in rest_stops:
            distance_m = stop.distance_meters(unit_system)
            if not is_on_course(distance_m, total_distance):
                logger.warning(
                    "Ignoring rest stop %s at %.0f m beyond course end (%.0f m)",
                    stop.identifier,
                    distance_m,
                    total_distance,
                )
                continue
            idx = min(bisect_left(ends, distance_m), len(segments) - 1)
            assigned[idx].append(stop)
        return assigned

    def _performance_factors(
        self, segments: Sequence[Segment], efforts: Sequence[float], total_effort: float
    ) -> tuple[list[float], list[float]]:
        total_distance = segments[-1].end_distance
        relative_fatigue: list[float] = []
        factors: list[float] = []
        effort_so_far = 0.0
        for segment, effort in zip(segments, efforts):
            effort_so_far += effort
            progress = segment.end_distance / total_distance if total_distance > 0 else 1.0
            fatigue = effort_so_far / total_effort if total_effort > 0 else 0.0
            relative_fatigue.append(fatigue)
            factors.append(strategy_multiplier(progress) * fatigue_factor(fatigue))
        return relative_fatigue, factors

    def allocate_running_time(
        self,
        segments: Sequence[Segment],
        efforts: Sequence[float],
        factors: Sequence[float],
        running_budget: float,
    ) -> np.ndarray:
        """Split the running budget proportionally to effort / performance factor."""
        n = len(segments)
        if running_budget <= 0:
            return np.zeros(n)

        distances = np.array([segment.distance for segment in segments], dtype=float)
        active = distances >= constants.MIN_SEGMENT_LENGTH_M
        if not active.any():
            # Whole course shorter than a meter: nothing meaningful to pace
            weights = distances if distances.sum() > 0 else np.ones(n)
            return running_budget * weights / weights.sum()

        weights = np.where(active, np.asarray(efforts, dtype=float) / np.asarray(factors, dtype=float), 0.0)
        total_weight = weights.sum()
        if total_weight <= 0:
            weights = np.where(active, distances, 0.0)
            total_weight = weights.sum()
        times = running_budget * weights / total_weight
        return self._clamp_to_pace_band(segments, times, distances, active, running_budget)

    def _clamp_to_pace_band(
        self,
        segments: Sequence[Segment],
        times: np.ndarray,
        distances: np.ndarray,
        active: np.ndarray,
        running_budget: float,
    ) -> np.ndarray:
        """Bound paces to [0.4x, 3.0x] of average, keeping the budget exact.

        Steep segments (|gradient| > 15 %) are exempt. Segments hitting a bound
        are fixed there and the remaining budget is respread over the others.
        """
        avg_seconds_per_m = running_budget / distances[active].sum()
        steep = np.array(
            [abs(s.average_gradient_percent) > constants.STEEP_GRADIENT_EXEMPTION_PCT for s in segments]
        )
        bounded = active & ~steep
        lower = np.where(bounded, constants.PACE_CLAMP_MIN_RATIO * avg_seconds_per_m * distances, -np.inf)
        upper = np.where(bounded, constants.PACE_CLAMP_MAX_RATIO * avg_seconds_per_m * distances, np.inf)

        times = times.copy()
        fixed = ~active
        for _ in range(constants.RELAXATION_MAX_ITERATIONS):
            clipped = np.clip(times, lower, upper)
            newly_fixed = ~fixed & (clipped != times)
            if not newly_fixed.any():
                break
            times = clipped
            fixed = fixed | newly_fixed
            free = ~fixed
            remaining = running_budget - times[fixed].sum()
            free_total = times[free].sum()
            if free_total <= 0 or remaining <= 0:
                break
            times[free] *= remaining / free_total

        total = times.sum()
        if total > 0 and abs(total - running_budget) > 1e-9 * max(1.0, running_budget):
            logger.debug("Pace band infeasible, rescaling all segments to the budget")
            times *= running_budget / total
        return times

    def _compile(
        self,
        segments: Sequence[Segment],
        running_times: np.ndarray,
        penalties: Sequence[float],
        assigned: Sequence[Sequence[RestStop]],
        relative_fatigue: Sequence[float],
        factors: np.ndarray,
    ) -> list[PlannedSegment]:
        planned: list[PlannedSegment] = []
        elapsed = 0.0
        for segment, running, penalty, stops, fatigue, factor in zip(
            segments, running_times, penalties, assigned, relative_fatigue, factors
        ):
            running = float(running)
            duration = running + penalty
            elapsed += duration
            if segment.distance >= constants.MIN_SEGMENT_LENGTH_M:
                pace = running / segment.distance_km
            else:
                pace = 0.0
            planned.append(
                PlannedSegment.from_segment(
                    segment,
                    combined_elevation_change=segment.elevation_gain + segment.elevation_loss,
                    target_duration_seconds=duration,
                    target_pace_seconds_per_km=pace,
                    cumulative_elapsed_seconds=elapsed,
                    has_rest_stop=bool(stops),
                    fatigue_level_percent=int(min(100, max(0, round(fatigue * 100)))),
                    rest_penalty_seconds=float(penalty),
                    performance_factor=float(factor),
                )
            )
        return planned


def calculate_race_plan(
    segments: Sequence[Segment],
    goal_time_seconds: float,
    rest_stops: Iterable[RestStop] = (),
    unit_system: str = "metric",
    strict: bool = False,
) -> list[PlannedSegment]:
    return PacingEngine().plan(segments, goal_time_seconds, rest_stops, unit_system, strict=strict)
