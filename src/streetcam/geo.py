"""
streetcam.geo — Coordinates, great-circle distance, and cache keys.

Distances use the haversine formula on a spherical Earth of radius
:data:`EARTH_RADIUS_M`.  Nothing here validates latitude/longitude ranges;
out-of-range values simply flow through the formula.
"""

from __future__ import annotations
import math
from dataclasses import dataclass

#: Mean Earth radius used for distances, in meters.
EARTH_RADIUS_M = 6371000.0

#: Decimal places used when turning a coordinate into a key or URL parameter.
KEY_PRECISION = 6


@dataclass(frozen=True)
class Coordinate:
    """A WGS84 position in decimal degrees."""
    lat: float
    lon: float

    def __str__(self) -> str:
        return f"({self.lat:.{KEY_PRECISION}f}, {self.lon:.{KEY_PRECISION}f})"


def distance(a: Coordinate, b: Coordinate) -> float:
    """Great-circle distance between *a* and *b* in meters.

    Symmetric, and exactly ``0.0`` for identical inputs.

    Examples
    --------
    >>> round(distance(Coordinate(0, 0), Coordinate(0.001, 0)))
    111
    """
    d_lat = math.radians(b.lat - a.lat)
    d_lon = math.radians(b.lon - a.lon)
    h = (math.sin(d_lat / 2) ** 2
         + math.cos(math.radians(a.lat)) * math.cos(math.radians(b.lat))
         * math.sin(d_lon / 2) ** 2)
    c = 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))
    return EARTH_RADIUS_M * c


def format_degrees(value: float) -> str:
    """Format one coordinate component at key precision."""
    return f"{value:.{KEY_PRECISION}f}"


def cache_key(coord: Coordinate) -> str:
    """Return the ``{lat}_{lon}`` key for *coord* at 6 decimal places.

    Coordinates that differ only beyond the 6th decimal share a key.
    """
    return f"{format_degrees(coord.lat)}_{format_degrees(coord.lon)}"
