"""EngineService — serialises HTTP access to one ProximityEngine."""

from __future__ import annotations

import logging
import os
import threading

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.engine.config import EngineConfig
from speedwatch.engine.models import EngineEvent, PositionSample
from speedwatch.engine.pipeline import ProximityEngine
from speedwatch.feed.loader import load_catalog
from speedwatch.feed.parser import (
    parse_speedcam_records,
    parse_speedcam_text,
    parse_zone_records,
)
from speedwatch.web.schemas import CatalogRequest, PositionRequest

_logger = logging.getLogger(__name__)


class EngineService:
    """Owns the engine for the web app.

    FastAPI runs plain ``def`` endpoints on a thread pool; the engine must
    process one call at a time, so every call goes through a lock.

    Parameters
    ----------
    engine:
        Engine to wrap.  Tests inject one with a prepared catalog.
    """

    def __init__(self, engine: ProximityEngine | None = None) -> None:
        self._engine = engine or ProximityEngine()
        self._lock = threading.Lock()

    @classmethod
    def from_env(cls) -> EngineService:
        """Build the service from ``SPEEDWATCH_*`` variables.

        ``SPEEDWATCH_CAMERAS`` / ``SPEEDWATCH_ZONES`` name feed files to load
        at startup; without them the engine starts with an empty catalog.
        """
        config = EngineConfig.from_env()
        cameras = os.environ.get("SPEEDWATCH_CAMERAS", "")
        zones = os.environ.get("SPEEDWATCH_ZONES", "") or None
        catalog = HazardCatalog.empty()
        if cameras:
            catalog, report = load_catalog(cameras, zones)
            _logger.info(
                "Startup catalog: %d hazards, %d corridors (%d rejected)",
                report.hazards,
                report.corridors,
                report.rejected,
            )
        return cls(ProximityEngine(catalog, config))

    @property
    def engine(self) -> ProximityEngine:
        return self._engine

    def ingest(self, req: PositionRequest) -> list[EngineEvent]:
        sample = PositionSample(
            lat=req.lat,
            lon=req.lon,
            speed_kmh=req.speed_kmh,
            heading_deg=req.heading_deg,
            timestamp_ms=req.timestamp_ms,
        )
        with self._lock:
            return self._engine.ingest(sample)

    def reload(self, req: CatalogRequest) -> tuple[HazardCatalog, int, list[EngineEvent]]:
        """Validate the uploaded records and swap them in.

        Returns ``(catalog, rejected_count, events)``.

        Raises
        ------
        FeedError
            If ``cameras_text`` cannot be parsed.
        """
        if req.cameras_text is not None:
            cameras = parse_speedcam_text(req.cameras_text)
        else:
            cameras = parse_speedcam_records(req.cameras)
        zones = parse_zone_records(req.zones)

        catalog = HazardCatalog(cameras.records, zones.records)
        with self._lock:
            events = self._engine.reload_catalog(catalog)
        return catalog, cameras.rejected + zones.rejected, events

    def visible(self) -> list[dict]:
        with self._lock:
            pairs = self._engine.visible_hazards()
        return [
            {
                "id": hazard.id,
                "lat": hazard.lat,
                "lon": hazard.lon,
                "kind": hazard.kind.value,
                "distance_m": distance,
            }
            for hazard, distance in pairs
        ]

    def zone(self) -> dict | None:
        """Summary of the active zone session, or None when idle."""
        with self._lock:
            session = self._engine.zone_session
            if session is None:
                return None
            return {
                "corridor_id": session.corridor_id,
                "limit_kmh": session.limit_kmh,
                "entered_at_ms": session.entered_at_ms,
                "sample_count": len(session.speed_samples),
                "avg_kmh": session.average_kmh(),
            }
