"""Route overlay positions for the map surface.

Only converts an existing path into polyline points; no route is ever
computed here.
"""

from collections.abc import Iterable
from typing import Any

from payana.shared.validators import coerce_location


def route_positions(path: Iterable[Any] | None) -> list[list[float]]:
    """Convert a path into ``[lat, lng]`` polyline points.

    Args:
        path: Sequence of Locations, lat/lng dicts, or pairs.

    Returns:
        Polyline points; empty when the path is missing, empty, or
        contains an unusable point.
    """
    if path is None or isinstance(path, (str, bytes, dict)):
        return []
    positions: list[list[float]] = []
    for point in path:
        location = coerce_location(point)
        if location is None:
            return []
        positions.append([location.lat, location.lng])
    return positions
