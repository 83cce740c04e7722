"""Hazard catalog: camera points and average-speed corridors.

Public API
----------
HazardPoint         - fixed or average-zone camera location
AverageZoneCorridor - start/end/limit of an average-speed corridor
HazardKind          - FIXED or AVERAGE_ZONE_CAMERA
HazardCatalog       - immutable snapshot of both
hazard_id_for       - derive a hazard id from its coordinates
"""

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.catalog.models import (
    AverageZoneCorridor,
    CorridorId,
    HazardId,
    HazardKind,
    HazardPoint,
    hazard_id_for,
)

__all__ = [
    "AverageZoneCorridor",
    "CorridorId",
    "HazardCatalog",
    "HazardId",
    "HazardKind",
    "HazardPoint",
    "hazard_id_for",
]
