"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

from typing import Sequence

import pandas as pd

from services.pacer.models import RestStop, is_on_course


class AidStationStats:
    """Aid station statistics and timing helpers over a plan DataFrame.

    The plan DataFrame is the one produced by `plan_to_frame` (startKm, endKm,
    elevGainM, elevLossM, runningTimeSec columns).
    """

    def stops_on_course(
        self, rest_stops: Sequence[RestStop], unit_system: str, plan_df: pd.DataFrame
    ) -> list[RestStop]:
        """Rest stops the pacing engine counts, in distance order.

        Stops past the finish (beyond the overshoot tolerance) are dropped.
        """
        if plan_df.empty:
            return []
        course_m = float(plan_df["endKm"].iloc[-1]) * 1000.0
        return [
            stop
            for stop in sorted(rest_stops, key=lambda s: s.distance_from_start)
            if is_on_course(stop.distance_meters(unit_system), course_m)
        ]

    def compute_segment_stats_between(
        self, start_km: float, end_km: float, plan_df: pd.DataFrame
    ) -> dict[str, float]:
        """Compute statistics (distance, elevation gain/loss, running time) between two points."""
        stats = {
            "distanceKm": 0.0,
            "elevGainM": 0.0,
            "elevLossM": 0.0,
            "runningTimeSec": 0.0,
        }

        if start_km >= end_km:
            return stats

        for seg in plan_df.itertuples(index=False):
            seg_start = float(seg.startKm)
            seg_end = float(seg.endKm)

            if seg_end <= start_km or seg_start >= end_km:
                continue

            overlap_start = max(seg_start, start_km)
            overlap_end = min(seg_end, end_km)
            overlap_ratio = (
                (overlap_end - overlap_start) / (seg_end - seg_start)
                if (seg_end - seg_start) > 0
                else 1.0
            )

            stats["distanceKm"] += overlap_end - overlap_start
            stats["elevGainM"] += float(seg.elevGainM) * overlap_ratio
            stats["elevLossM"] += float(seg.elevLossM) * overlap_ratio
            stats["runningTimeSec"] += float(seg.runningTimeSec) * overlap_ratio

        return stats

    def compute_aid_station_times(
        self, rest_stops: Sequence[RestStop], unit_system: str, plan_df: pd.DataFrame
    ) -> list[dict[str, float]]:
        """Planned arrival and departure time at each aid station, in distance order.

        Arrival includes running time up to the station plus every earlier stop;
        departure adds the station's own penalty.
        """
        course_km = float(plan_df["endKm"].iloc[-1]) if not plan_df.empty else 0.0
        times = []
        stopped = 0.0
        for stop in self.stops_on_course(rest_stops, unit_system, plan_df):
            aid_km = min(stop.distance_meters(unit_system) / 1000.0, course_km)
            running = self.compute_segment_stats_between(0.0, aid_km, plan_df)["runningTimeSec"]
            arrival = running + stopped
            stopped += stop.penalty_seconds
            times.append(
                {
                    "identifier": stop.identifier,
                    "distanceKm": aid_km,
                    "arrivalSec": arrival,
                    "departureSec": arrival + stop.penalty_seconds,
                }
            )
        return times

    def compute_aid_station_stats(
        self, rest_stops: Sequence[RestStop], unit_system: str, plan_df: pd.DataFrame
    ) -> list[dict[str, float]]:
        """Compute stats for each leg: start to first station, between stations, last station to finish."""
        if plan_df.empty:
            return []
        course_km = float(plan_df["endKm"].iloc[-1])
        marks = sorted(
            min(stop.distance_meters(unit_system) / 1000.0, course_km)
            for stop in self.stops_on_course(rest_stops, unit_system, plan_df)
        )
        if not marks:
            return []

        bounds = [0.0, *marks, course_km]
        stats_list = []
        for leg_start, leg_end in zip(bounds, bounds[1:]):
            leg = self.compute_segment_stats_between(leg_start, leg_end, plan_df)
            leg["startKm"] = leg_start
            leg["endKm"] = leg_end
            stats_list.append(leg)
        return stats_list

    def compute_cumulative_stats_at_aid_stations(
        self, rest_stops: Sequence[RestStop], unit_system: str, plan_df: pd.DataFrame
    ) -> list[dict[str, float]]:
        """Compute cumulative statistics at each aid station (from start)."""
        cumulative_stats = []
        for stop in self.stops_on_course(rest_stops, unit_system, plan_df):
            aid_km = stop.distance_meters(unit_system) / 1000.0
            cumulative_stats.append(self.compute_segment_stats_between(0.0, aid_km, plan_df))
        return cumulative_stats
