"""Shared input validators for the Payana client.

Form inputs arrive as loosely typed values (strings from text fields,
numbers, or None). These helpers normalize them without raising, so
callers decide whether a bad value is an error or simply "no value".
"""

from __future__ import annotations

import math
from typing import Any

from payana.shared.models import Location


def is_blank(value: Any) -> bool:
    """Check whether a form value is absent.

    Args:
        value: Raw input value.

    Returns:
        True for None and empty or whitespace-only strings.
    """
    if value is None:
        return True
    return isinstance(value, str) and not value.strip()


def parse_finite(value: Any) -> float | None:
    """Parse a value into a finite float.

    Args:
        value: Raw input (number or numeric string).

    Returns:
        The float, or None if blank, non-numeric, or not finite.
    """
    if is_blank(value) or isinstance(value, bool):
        return None
    try:
        number = float(value.strip() if isinstance(value, str) else value)
    except (TypeError, ValueError):
        return None
    if not math.isfinite(number):
        return None
    return number


def coerce_location(value: Any) -> Location | None:
    """Build a Location from a model, mapping, or (lat, lng) pair.

    Args:
        value: Location, dict with lat/lng, or two-item sequence.

    Returns:
        A valid Location, or None if either coordinate is missing,
        non-numeric, non-finite, or out of range.
    """
    if isinstance(value, Location):
        return value
    if isinstance(value, dict):
        raw_lat, raw_lng = value.get("lat"), value.get("lng")
    elif isinstance(value, (list, tuple)) and len(value) == 2:
        raw_lat, raw_lng = value
    else:
        return None
    lat, lng = parse_finite(raw_lat), parse_finite(raw_lng)
    if lat is None or lng is None:
        return None
    if not (-90.0 <= lat <= 90.0 and -180.0 <= lng <= 180.0):
        return None
    return Location(lat=lat, lng=lng)
