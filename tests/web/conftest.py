"""Shared fixtures for web tests."""

from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.catalog.models import AverageZoneCorridor, HazardPoint
from speedwatch.engine.pipeline import ProximityEngine
from speedwatch.geo.geometry import GeoPoint
from speedwatch.web.app import create_app
from speedwatch.web.service import EngineService

CAMERA = HazardPoint.at(39.0, 35.0)
CORRIDOR = AverageZoneCorridor(
    id="A", start=GeoPoint(39.0, 35.0), end=GeoPoint(39.1, 35.0), speed_limit_kmh=100.0
)


@pytest.fixture
def service() -> EngineService:
    return EngineService(ProximityEngine(HazardCatalog([CAMERA], [CORRIDOR])))


@pytest.fixture
def client(service):
    """FastAPI test client around a prepared engine."""
    with TestClient(create_app(service)) as c:
        yield c


def position_payload(
    lat: float = 38.999,
    lon: float = 35.0,
    speed_kmh: float | None = 50.0,
    heading_deg: float | None = 0.0,
    timestamp_ms: int = 0,
) -> dict:
    return {
        "lat": lat,
        "lon": lon,
        "speed_kmh": speed_kmh,
        "heading_deg": heading_deg,
        "timestamp_ms": timestamp_ms,
    }
