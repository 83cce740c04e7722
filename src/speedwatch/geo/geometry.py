"""Great-circle geometry on (lat, lon) pairs in degrees.

All functions accept any object with ``lat`` and ``lon`` attributes
(:class:`GeoPoint`, hazards, position samples).  Non-finite input yields
``nan`` rather than raising.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

EARTH_RADIUS_M = 6_371_000.0


class HasLatLon(Protocol):
    lat: float
    lon: float


@dataclass(frozen=True)
class GeoPoint:
    """A WGS-84 coordinate in decimal degrees."""

    lat: float
    lon: float

    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lon)


def distance_meters(a: HasLatLon, b: HasLatLon) -> float:
    """Haversine distance between *a* and *b* in metres."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    delta_phi = math.radians(b.lat - a.lat)
    delta_lambda = math.radians(b.lon - a.lon)

    h = (math.sin(delta_phi / 2) ** 2
         + math.cos(phi1) * math.cos(phi2) * math.sin(delta_lambda / 2) ** 2)
    # rounding can push h a hair above 1 for antipodal points
    h = min(h, 1.0)
    return EARTH_RADIUS_M * 2 * math.atan2(math.sqrt(h), math.sqrt(1 - h))


def bearing_degrees(a: HasLatLon, b: HasLatLon) -> float:
    """Initial bearing from *a* to *b*, in degrees [0, 360), 0 = north."""
    phi1 = math.radians(a.lat)
    phi2 = math.radians(b.lat)
    delta_lambda = math.radians(b.lon - a.lon)

    x = math.sin(delta_lambda) * math.cos(phi2)
    y = (math.cos(phi1) * math.sin(phi2)
         - math.sin(phi1) * math.cos(phi2) * math.cos(delta_lambda))

    return math.degrees(math.atan2(x, y)) % 360.0


def angular_difference(a: float, b: float) -> float:
    """Smallest absolute separation between two bearings, in [0, 180]."""
    return abs((a - b + 180.0) % 360.0 - 180.0)
