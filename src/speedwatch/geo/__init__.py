"""Geometry kernel: haversine distance, bearing and angular difference."""

from speedwatch.geo.geometry import (
    EARTH_RADIUS_M,
    GeoPoint,
    angular_difference,
    bearing_degrees,
    distance_meters,
)

__all__ = [
    "EARTH_RADIUS_M",
    "GeoPoint",
    "angular_difference",
    "bearing_degrees",
    "distance_meters",
]
