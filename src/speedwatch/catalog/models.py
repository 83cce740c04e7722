"""Hazard catalog data models."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum

from speedwatch.geo.geometry import GeoPoint

HazardId = str
CorridorId = str

ID_PRECISION = 5
"""Decimal places kept when deriving a hazard id (≈1.1 m at the equator)."""


def hazard_id_for(lat: float, lon: float) -> HazardId:
    """Return the stable id for a hazard at (*lat*, *lon*).

    Upstream feeds carry no identifier, so identity is the rounded coordinate
    pair.  Two records closer than the rounding step collapse to one id.
    """
    return f"{lat:.{ID_PRECISION}f},{lon:.{ID_PRECISION}f}"


class HazardKind(str, Enum):
    """What kind of enforcement point a hazard is."""

    FIXED = "fixed"
    AVERAGE_ZONE_CAMERA = "average_zone_camera"

    @property
    def label(self) -> str:
        return "Average" if self is HazardKind.AVERAGE_ZONE_CAMERA else "Fixed"


@dataclass(frozen=True)
class HazardPoint:
    """A fixed or average-speed enforcement camera location."""

    id: HazardId
    lat: float
    lon: float
    kind: HazardKind = HazardKind.FIXED
    speed_unit: str = "kmh"
    """Unit the posted limit at this camera is expressed in: ``'kmh'`` or ``'mph'``."""

    @classmethod
    def at(
        cls,
        lat: float,
        lon: float,
        kind: HazardKind = HazardKind.FIXED,
        speed_unit: str = "kmh",
    ) -> HazardPoint:
        """Build a hazard whose id is derived from its coordinates."""
        return cls(id=hazard_id_for(lat, lon), lat=lat, lon=lon, kind=kind, speed_unit=speed_unit)

    def is_finite(self) -> bool:
        return math.isfinite(self.lat) and math.isfinite(self.lon)


@dataclass(frozen=True)
class AverageZoneCorridor:
    """Straight-line approximation of an average-speed enforcement corridor."""

    id: CorridorId
    start: GeoPoint
    end: GeoPoint
    speed_limit_kmh: float
