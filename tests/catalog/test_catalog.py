"""Tests for HazardCatalog and the hazard models."""

from __future__ import annotations

import dataclasses

import pytest

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.catalog.models import (
    AverageZoneCorridor,
    HazardKind,
    HazardPoint,
    hazard_id_for,
)
from speedwatch.geo.geometry import GeoPoint


def _make_corridor(corridor_id: str = "z1") -> AverageZoneCorridor:
    return AverageZoneCorridor(
        id=corridor_id,
        start=GeoPoint(39.0, 35.0),
        end=GeoPoint(39.1, 35.0),
        speed_limit_kmh=100.0,
    )


def test_hazard_id_is_rounded_coordinates():
    assert hazard_id_for(39.0, 35.0) == "39.00000,35.00000"
    assert hazard_id_for(39.000001, 35.0) == hazard_id_for(39.0, 35.0)


def test_hazard_at_derives_id():
    hazard = HazardPoint.at(41.0123456, 28.9, kind=HazardKind.AVERAGE_ZONE_CAMERA)
    assert hazard.id == "41.01235,28.90000"
    assert hazard.kind is HazardKind.AVERAGE_ZONE_CAMERA
    assert hazard.speed_unit == "kmh"


def test_hazard_is_immutable():
    hazard = HazardPoint.at(39.0, 35.0)
    with pytest.raises(dataclasses.FrozenInstanceError):
        hazard.lat = 40.0  # type: ignore[misc]


def test_kind_labels():
    assert HazardKind.FIXED.label == "Fixed"
    assert HazardKind.AVERAGE_ZONE_CAMERA.label == "Average"


def test_catalog_lookup_by_id():
    hazard = HazardPoint.at(39.0, 35.0)
    catalog = HazardCatalog([hazard], [_make_corridor()])
    assert catalog.hazard(hazard.id) is hazard
    assert catalog.corridor("z1") is not None
    assert catalog.hazard("missing") is None
    assert catalog.corridor("missing") is None


def test_catalog_keeps_first_duplicate():
    first = HazardPoint.at(39.0, 35.0, kind=HazardKind.FIXED)
    second = HazardPoint.at(39.0, 35.0, kind=HazardKind.AVERAGE_ZONE_CAMERA)
    catalog = HazardCatalog([first, second])
    assert len(catalog) == 1
    assert catalog.all_hazards() == (first,)


def test_catalog_preserves_corridor_order():
    corridors = [_make_corridor("b"), _make_corridor("a"), _make_corridor("c")]
    catalog = HazardCatalog([], corridors)
    assert [c.id for c in catalog.all_corridors()] == ["b", "a", "c"]


def test_empty_catalog():
    catalog = HazardCatalog.empty()
    assert len(catalog) == 0
    assert catalog.all_hazards() == ()
    assert catalog.all_corridors() == ()
