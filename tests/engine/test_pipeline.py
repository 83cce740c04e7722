"""Tests for ProximityEngine — the per-sample pipeline and catalog reloads."""

from __future__ import annotations

import pytest

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.catalog.models import AverageZoneCorridor, HazardKind, HazardPoint
from speedwatch.engine.config import EngineConfig
from speedwatch.engine.models import (
    HazardAlert,
    PositionSample,
    VisibleSetChanged,
    ZoneEntered,
    ZoneExited,
    ZoneProgress,
)
from speedwatch.engine.pipeline import ProximityEngine, ReentrantIngestError
from speedwatch.geo.geometry import GeoPoint

CAMERA = HazardPoint.at(39.0, 35.0)
CORRIDOR = AverageZoneCorridor(
    id="A", start=GeoPoint(39.0, 35.0), end=GeoPoint(39.1, 35.0), speed_limit_kmh=100.0
)


def _sample(lat=38.999, lon=35.0, speed=50.0, heading=0.0, t=0) -> PositionSample:
    return PositionSample(lat=lat, lon=lon, speed_kmh=speed, heading_deg=heading, timestamp_ms=t)


def _engine(hazards=(CAMERA,), corridors=(), **cfg) -> ProximityEngine:
    return ProximityEngine(HazardCatalog(hazards, corridors), EngineConfig(**cfg))


# ---------------------------------------------------------------------------
# End-to-end
# ---------------------------------------------------------------------------

def test_first_sample_near_camera_reports_visibility_and_alert():
    engine = _engine()
    events = engine.ingest(_sample(t=0))

    assert len(events) == 2
    visible, alert = events
    assert isinstance(visible, VisibleSetChanged)
    assert visible.entered == (CAMERA.id,)
    assert visible.exited == ()
    assert isinstance(alert, HazardAlert)
    assert alert.hazard_id == CAMERA.id
    assert alert.kind is HazardKind.FIXED
    assert alert.distance_m == pytest.approx(111.0, abs=1.0)


def test_second_sample_inside_cooldown_is_quiet():
    engine = _engine()
    engine.ingest(_sample(t=0))
    events = engine.ingest(_sample(t=1_000))
    assert events == []
    assert engine.state.visible == {CAMERA.id}


def test_at_most_one_alert_within_cooldown():
    engine = _engine(per_hazard_throttle_ms=5_000)
    events = engine.ingest(_sample(t=10_000)) + engine.ingest(_sample(t=11_000))
    assert sum(isinstance(e, HazardAlert) for e in events) == 1


def test_alert_repeats_after_cooldown():
    engine = _engine()
    engine.ingest(_sample(t=0))
    events = engine.ingest(_sample(t=5_000))
    assert [type(e) for e in events] == [HazardAlert]


def test_event_order_visibility_alert_zone():
    engine = _engine(corridors=(CORRIDOR,))
    events = engine.ingest(_sample(lat=38.9999, t=0))
    assert [type(e) for e in events] == [VisibleSetChanged, HazardAlert, ZoneEntered]


def test_non_finite_hazard_is_inert():
    bad = HazardPoint(id="bad", lat=float("nan"), lon=35.0)
    engine = _engine(hazards=(bad,))
    assert engine.ingest(_sample(t=0)) == []
    assert engine.state.visible == set()


# ---------------------------------------------------------------------------
# Speed and heading backfill
# ---------------------------------------------------------------------------

def test_missing_speed_uses_last_known():
    engine = _engine(hazards=(), corridors=(CORRIDOR,))
    engine.ingest(_sample(lat=39.0, speed=80.0, t=0))
    events = engine.ingest(_sample(lat=39.01, speed=None, t=1_000))
    assert engine.last_speed_kmh == 80.0
    assert isinstance(events[-1], ZoneProgress)
    assert events[-1].current_kmh == 80.0


def test_speed_defaults_to_zero_before_any_reading():
    engine = _engine(hazards=())
    engine.ingest(_sample(speed=None))
    assert engine.last_speed_kmh == 0.0


def test_non_finite_speed_is_ignored():
    engine = _engine(hazards=())
    engine.ingest(_sample(speed=70.0, t=0))
    engine.ingest(_sample(speed=float("nan"), t=1))
    assert engine.last_speed_kmh == 70.0


def test_missing_heading_on_first_sample_is_permissive():
    behind = HazardPoint.at(38.998, 35.0)
    engine = _engine(hazards=(behind,))
    events = engine.ingest(_sample(heading=None))
    assert any(isinstance(e, HazardAlert) for e in events)


def test_missing_heading_is_derived_from_movement():
    south = HazardPoint.at(39.0, 35.0)
    engine = _engine(hazards=(south,))
    # heading north, camera ≈556 m behind
    first = engine.ingest(_sample(lat=39.005, heading=0.0, t=0))
    # still moving north, no heading reported: derived bearing keeps it behind
    second = engine.ingest(_sample(lat=39.006, heading=None, t=1_000))
    assert not any(isinstance(e, HazardAlert) for e in first + second)


def test_derived_heading_toward_camera_alerts():
    engine = _engine()
    # ≈1.1 km north of the camera: outside alert range
    engine.ingest(_sample(lat=39.010, heading=None, t=0))
    events = engine.ingest(_sample(lat=39.005, heading=None, t=1_000))
    alerts = [e for e in events if isinstance(e, HazardAlert)]
    assert len(alerts) == 1
    assert alerts[0].bearing_deg == pytest.approx(180.0, abs=1e-6)


def test_last_position_updated_after_step():
    engine = _engine()
    sample = _sample(t=42)
    engine.ingest(sample)
    assert engine.last_position is sample


# ---------------------------------------------------------------------------
# Listeners
# ---------------------------------------------------------------------------

def test_listeners_receive_events_in_order():
    engine = _engine()
    received = []
    engine.subscribe(received.append)
    events = engine.ingest(_sample())
    assert received == events


def test_unsubscribe_stops_delivery():
    engine = _engine()
    received = []
    unsubscribe = engine.subscribe(received.append)
    unsubscribe()
    engine.ingest(_sample())
    assert received == []


def test_failing_listener_is_logged_and_events_still_returned(caplog):
    engine = _engine()
    received = []

    def _broken(event):
        raise RuntimeError("display unavailable")

    engine.subscribe(_broken)
    engine.subscribe(received.append)
    with caplog.at_level("ERROR", logger="speedwatch.engine.pipeline"):
        events = engine.ingest(_sample())

    assert [type(e) for e in events] == [VisibleSetChanged, HazardAlert]
    assert received == events
    assert "display unavailable" in caplog.text


def test_reentrant_ingest_raises():
    engine = _engine()

    def _bounce(event):
        engine.ingest(_sample(t=99))

    unsubscribe = engine.subscribe(_bounce)
    with pytest.raises(ReentrantIngestError):
        engine.ingest(_sample())

    # the guard is released afterwards
    unsubscribe()
    assert engine.ingest(_sample(t=10_000)) != []


# ---------------------------------------------------------------------------
# Catalog reload
# ---------------------------------------------------------------------------

def test_reload_removing_active_corridor_forces_exit():
    engine = _engine(hazards=(), corridors=(CORRIDOR,))
    engine.ingest(_sample(lat=39.0, t=0))
    engine.ingest(_sample(lat=39.01, speed=90.0, t=1_000))

    events = engine.reload_catalog([], [])
    assert len(events) == 1
    exited = events[0]
    assert isinstance(exited, ZoneExited)
    assert exited.corridor_id == "A"
    assert exited.avg_kmh == pytest.approx(90.0)
    assert engine.zone_session is None


def test_reload_keeping_corridor_keeps_session():
    engine = _engine(hazards=(), corridors=(CORRIDOR,))
    engine.ingest(_sample(lat=39.0, t=0))
    engine.ingest(_sample(lat=39.01, speed=90.0, t=1_000))

    assert engine.reload_catalog([CAMERA], [CORRIDOR]) == [
        VisibleSetChanged(entered=(CAMERA.id,), exited=())
    ]
    assert engine.zone_session is not None
    assert list(engine.zone_session.speed_samples) == [90.0]


def test_reload_drops_removed_hazards_from_visible_set():
    engine = _engine()
    engine.ingest(_sample(t=0))
    events = engine.reload_catalog(HazardCatalog.empty())
    assert events == [VisibleSetChanged(entered=(), exited=(CAMERA.id,))]
    assert engine.visible_hazards() == []


def test_reload_keeps_cooldown_ledger():
    engine = _engine()
    engine.ingest(_sample(t=0))
    engine.reload_catalog([CAMERA])
    events = engine.ingest(_sample(t=1_000))
    assert not any(isinstance(e, HazardAlert) for e in events)


def test_reload_before_any_sample_is_silent():
    engine = _engine(hazards=())
    assert engine.reload_catalog([CAMERA]) == []
    assert engine.catalog.hazard(CAMERA.id) is CAMERA


def test_visible_hazards_sorted_with_distance():
    far = HazardPoint.at(39.02, 35.0)
    engine = _engine(hazards=(far, CAMERA))
    engine.ingest(_sample())
    listed = engine.visible_hazards()
    assert [h.id for h, _ in listed] == [CAMERA.id, far.id]
    assert listed[0][1] == pytest.approx(111.2, abs=0.1)


def test_events_serialise_to_tagged_dicts():
    engine = _engine()
    visible, alert = engine.ingest(_sample())
    assert visible.to_dict() == {"type": "visible_set_changed", "entered": [CAMERA.id], "exited": []}
    data = alert.to_dict()
    assert data["type"] == "hazard_alert"
    assert data["kind"] == "fixed"
    assert data["hazard_id"] == CAMERA.id
