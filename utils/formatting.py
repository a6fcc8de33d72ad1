"""
Display helpers for distances, elevations, paces and durations.

Presentation only: the pacer core always works in meters and seconds, these
helpers convert to the user's unit system at the edges.
"""

from __future__ import annotations

import math
from typing import Optional

from babel import numbers

from config import KM_TO_MILES, METERS_TO_FEET, SEGMENT_LENGTH_OPTIONS_M

LOCALE = "en_US"

UNIT_LABELS = {
    "dist": {"metric": "km", "imperial": "mi"},
    "ele": {"metric": "m", "imperial": "ft"},
    "pace": {"metric": "min/km", "imperial": "min/mi"},
}


def set_locale(locale_str: str = "en_US") -> None:
    global LOCALE
    try:
        # Validate by formatting a simple number
        numbers.format_decimal(1.0, locale=locale_str)
        LOCALE = locale_str
    except Exception:
        LOCALE = "en_US"


def fmt_decimal(value: Optional[float], digits: int = 2) -> str:
    if value is None:
        return ""
    fmt = "0" if digits == 0 else "0." + ("0" * digits)
    return numbers.format_decimal(value, format=fmt, locale=LOCALE)


def meters_to_user_distance(meters: float, units: str) -> float:
    km = meters / 1000.0
    return km * KM_TO_MILES if units == "imperial" else km


def format_distance(meters: float, units: str, decimals: int = 2) -> str:
    return fmt_decimal(meters_to_user_distance(meters, units), decimals)


def format_elevation(meters: float, units: str) -> str:
    value = meters * METERS_TO_FEET if units == "imperial" else meters
    return fmt_decimal(round(value), 0)


def format_pace(seconds_per_km: float, units: str) -> str:
    """Format a pace as M:SS/km or M:SS/mi."""
    seconds = seconds_per_km / KM_TO_MILES if units == "imperial" else seconds_per_km
    minutes = math.floor(seconds / 60)
    secs = math.floor(seconds % 60)
    return f"{minutes}:{secs:02d}/{UNIT_LABELS['dist'][units]}"


def format_duration(seconds: float) -> str:
    """Format seconds as H:MM:SS, or M:SS under an hour."""
    h = math.floor(seconds / 3600)
    m = math.floor((seconds % 3600) / 60)
    s = math.floor(seconds % 60)
    if h > 0:
        return f"{h}:{m:02d}:{s:02d}"
    return f"{m}:{s:02d}"


def parse_duration(text: str) -> int:
    """Parse 'H:MM:SS', 'M:SS' or plain seconds into seconds."""
    parts = [p.strip() for p in text.strip().split(":")]
    if not parts or len(parts) > 3 or any(not p.isdigit() for p in parts):
        raise ValueError(f"Invalid duration: {text!r}")
    total = 0
    for part in parts:
        total = total * 60 + int(part)
    return total


def unit_label(kind: str, units: str) -> str:
    return UNIT_LABELS.get(kind, {}).get(units, "")


def segment_length_options(units: str) -> list[float]:
    """Preset segment lengths in meters for the given unit system."""
    return list(SEGMENT_LENGTH_OPTIONS_M.get(units, SEGMENT_LENGTH_OPTIONS_M["metric"]))
