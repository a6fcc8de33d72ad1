"""
Configuration loading utilities.

Loads environment variables from `.env` and returns the runtime defaults used
by the pacer pipeline. The track-processing core never reads the environment
itself; callers load a `Config` once and pass values down.
"""

from __future__ import annotations

import os
from dataclasses import dataclass

from dotenv import load_dotenv, find_dotenv
from streamlit.logger import get_logger

import config as constants

logger = get_logger(__name__)

UNIT_SYSTEMS = ("metric", "imperial")


@dataclass(frozen=True)
class Config:
    default_segment_length_m: float
    default_unit_system: str
    downsample_threshold: int
    min_point_spacing_m: float
    locale: str


def _env_float(name: str, default: float) -> float:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        value = float(raw)
    except (ValueError, TypeError):
        logger.warning("Ignoring malformed %s=%r, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %s", name, raw, default)
        return default
    return value


def _env_int(name: str, default: int) -> int:
    raw = os.getenv(name)
    if raw in (None, ""):
        return default
    try:
        value = int(float(raw))
    except (ValueError, TypeError):
        logger.warning("Ignoring malformed %s=%r, using %s", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %s", name, raw, default)
        return default
    return value


def default_config() -> Config:
    """Return the built-in defaults without touching the environment."""
    return Config(
        default_segment_length_m=constants.DEFAULT_SEGMENT_LENGTH_M,
        default_unit_system="metric",
        downsample_threshold=constants.DOWNSAMPLE_THRESHOLD,
        min_point_spacing_m=constants.MIN_POINT_SPACING_M,
        locale="en_US",
    )


def load_config() -> Config:
    """Load configuration from environment (and `.env` when present)."""
    load_dotenv(find_dotenv(usecwd=True), override=False)
    defaults = default_config()

    unit_system = os.getenv("PACER_UNIT_SYSTEM", defaults.default_unit_system).strip().lower()
    if unit_system not in UNIT_SYSTEMS:
        logger.warning("Unknown PACER_UNIT_SYSTEM=%r, using metric", unit_system)
        unit_system = "metric"

    cfg = Config(
        default_segment_length_m=_env_float(
            "PACER_SEGMENT_LENGTH_M", defaults.default_segment_length_m
        ),
        default_unit_system=unit_system,
        downsample_threshold=_env_int("PACER_DOWNSAMPLE_THRESHOLD", defaults.downsample_threshold),
        min_point_spacing_m=_env_float("PACER_MIN_POINT_SPACING_M", defaults.min_point_spacing_m),
        locale=os.getenv("PACER_LOCALE", defaults.locale) or defaults.locale,
    )
    logger.debug("Loaded pacer config: %s", cfg)
    return cfg
