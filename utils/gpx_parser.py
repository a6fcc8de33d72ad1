"""Copyright (C) 2025 Pierre Marrec
SPDX-License-Identifier: GPL-3.0-or-later

GPX file parser for route and track data.

Handles both timestamped tracks and time-invariant routes (waypoints only).
"""

from __future__ import annotations

from typing import Optional

import pandas as pd
from lxml import etree
from streamlit.logger import get_logger

logger = get_logger(__name__)

GPX_COLUMNS = ["lat", "lon", "elevationM", "timestamp"]


def _parse_root(gpx_bytes: bytes | str) -> Optional[etree._Element]:
    if isinstance(gpx_bytes, str):
        gpx_bytes = gpx_bytes.encode("utf-8")
    try:
        return etree.fromstring(gpx_bytes, parser=etree.XMLParser(resolve_entities=False))
    except etree.XMLSyntaxError as e:
        logger.warning(f"Invalid GPX XML: {e}")
        return None


def _children(node: etree._Element, tag: str) -> list[etree._Element]:
    """Descendants by local name, whatever the GPX namespace version."""
    return node.xpath(f".//*[local-name()='{tag}']")


def parse_gpx_name(gpx_bytes: bytes | str) -> Optional[str]:
    """Return the track (or file metadata) name if present."""
    root = _parse_root(gpx_bytes)
    if root is None:
        return None
    for path in ("./*[local-name()='trk']/*[local-name()='name']", ".//*[local-name()='name']"):
        names = root.xpath(path)
        for node in names:
            if node.text and node.text.strip():
                return node.text.strip()
    return None


def parse_gpx_to_timeseries(gpx_bytes: bytes | str) -> pd.DataFrame:
    """Parse GPX file into timeseries DataFrame.

    Extracts track points (trkpt) with lat/lon/elevation.
    Timestamps are optional - parser works for route-only GPX files.

    Args:
        gpx_bytes: Raw GPX file content

    Returns:
        DataFrame with columns: lat, lon, elevationM, timestamp (NaT when absent)
        Empty DataFrame if parsing fails or no track points are found
    """
    root = _parse_root(gpx_bytes)
    if root is None:
        return pd.DataFrame(columns=GPX_COLUMNS)

    trkpts = _children(root, "trkpt")
    if not trkpts:
        logger.warning("No track points found in GPX")
        return pd.DataFrame(columns=GPX_COLUMNS)

    rows = []
    for trkpt in trkpts:
        try:
            lat = trkpt.get("lat")
            lon = trkpt.get("lon")
            if lat is None or lon is None:
                continue

            lat_val = float(lat)
            lon_val = float(lon)
        except (ValueError, TypeError) as e:
            logger.debug(f"Skipping invalid track point: {e}")
            continue

        elevation_val: Optional[float] = None
        ele_elems = _children(trkpt, "ele")
        if ele_elems and ele_elems[0].text:
            try:
                elevation_val = float(ele_elems[0].text)
            except (ValueError, TypeError):
                pass

        timestamp_val: Optional[str] = None
        time_elems = _children(trkpt, "time")
        if time_elems and time_elems[0].text:
            timestamp_val = time_elems[0].text.strip()

        rows.append(
            {
                "lat": lat_val,
                "lon": lon_val,
                "elevationM": elevation_val,
                "timestamp": timestamp_val,
            }
        )

    if not rows:
        logger.warning("GPX track points carry no usable coordinates")
        return pd.DataFrame(columns=GPX_COLUMNS)

    df = pd.DataFrame(rows, columns=GPX_COLUMNS)

    # Forward-fill sparse elevation; tracks without any elevation are flat at 0
    df["elevationM"] = pd.to_numeric(df["elevationM"], errors="coerce").ffill().bfill().fillna(0.0)
    df["timestamp"] = pd.to_datetime(df["timestamp"], errors="coerce", utc=True)

    logger.debug(f"Parsed GPX: {len(df)} points")
    return df
