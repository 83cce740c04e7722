"""POST /api/position, GET /api/visible, GET /api/zone."""

from __future__ import annotations

import pytest

from speedwatch.catalog.models import hazard_id_for
from tests.web.conftest import position_payload

CAMERA_ID = hazard_id_for(39.0, 35.0)


def test_position_returns_visibility_and_alert(client):
    resp = client.post("/api/position", json=position_payload())
    assert resp.status_code == 200
    events = resp.json()["events"]
    assert [e["type"] for e in events] == ["visible_set_changed", "hazard_alert"]
    assert events[0]["entered"] == [CAMERA_ID]
    assert events[1]["hazard_id"] == CAMERA_ID
    assert events[1]["kind"] == "fixed"
    assert events[1]["distance_m"] == pytest.approx(111.2, abs=0.5)


def test_position_inside_cooldown_returns_no_events(client):
    client.post("/api/position", json=position_payload(timestamp_ms=0))
    resp = client.post("/api/position", json=position_payload(timestamp_ms=1_000))
    assert resp.json() == {"events": []}


def test_position_without_speed_and_heading(client):
    resp = client.post(
        "/api/position", json=position_payload(speed_kmh=None, heading_deg=None)
    )
    assert resp.status_code == 200


@pytest.mark.parametrize("field,value", [("lat", 91.0), ("lon", -200.0)])
def test_position_out_of_range_returns_422(client, field, value):
    payload = position_payload()
    payload[field] = value
    assert client.post("/api/position", json=payload).status_code == 422


def test_position_missing_timestamp_returns_422(client):
    payload = position_payload()
    del payload["timestamp_ms"]
    assert client.post("/api/position", json=payload).status_code == 422


def test_visible_lists_hazards_with_distance(client):
    assert client.get("/api/visible").json() == {"hazards": []}
    client.post("/api/position", json=position_payload())
    hazards = client.get("/api/visible").json()["hazards"]
    assert len(hazards) == 1
    assert hazards[0]["id"] == CAMERA_ID
    assert hazards[0]["kind"] == "fixed"
    assert hazards[0]["distance_m"] == pytest.approx(111.2, abs=0.5)


def test_zone_status(client):
    assert client.get("/api/zone").json() is None

    client.post("/api/position", json=position_payload(lat=39.0, timestamp_ms=0))
    client.post("/api/position", json=position_payload(lat=39.01, speed_kmh=90.0, timestamp_ms=1_000))

    status = client.get("/api/zone").json()
    assert status["corridor_id"] == "A"
    assert status["limit_kmh"] == 100.0
    assert status["entered_at_ms"] == 0
    assert status["sample_count"] == 1
    assert status["avg_kmh"] == pytest.approx(90.0)
