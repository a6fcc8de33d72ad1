"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

Error taxonomy for the pacer pipeline.
"""

from __future__ import annotations


class PacerError(Exception):
    """Base class for pacer pipeline failures."""


class EmptyTrackError(PacerError):
    """Raised when a track has no usable samples or no segments."""


class InvalidConfigurationError(PacerError, ValueError):
    """Raised for non-positive goal time, segment length or bad rest stops."""


class DegenerateBudgetError(PacerError):
    """Rest-stop time consumes the whole goal time.

    Only raised in strict mode; otherwise the running budget is clamped to zero.
    """
