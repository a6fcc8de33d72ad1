"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from services.pacer.engine import PacingEngine, calculate_race_plan
from services.pacer.errors import (
    DegenerateBudgetError,
    EmptyTrackError,
    InvalidConfigurationError,
    PacerError,
)
from services.pacer.models import PlanConfig, PlannedSegment, RestStop, Segment, TrackPoint, TrackSummary

if TYPE_CHECKING:
    from services.pacer_service import PacerService as PacerService


def __getattr__(name: str) -> object:
    # Lazy: the facade imports this package
    if name == "PacerService":
        from services.pacer_service import PacerService

        return PacerService
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "DegenerateBudgetError",
    "EmptyTrackError",
    "InvalidConfigurationError",
    "PacerError",
    "PacerService",
    "PacingEngine",
    "PlanConfig",
    "PlannedSegment",
    "RestStop",
    "Segment",
    "TrackPoint",
    "TrackSummary",
    "calculate_race_plan",
]
