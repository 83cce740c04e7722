"""FastAPI Web application — HTTP front for the proximity engine."""

from __future__ import annotations

from dotenv import load_dotenv
from fastapi import FastAPI, HTTPException

from speedwatch.feed.parser import FeedError
from speedwatch.web.schemas import (
    CatalogRequest,
    CatalogResponse,
    EventsResponse,
    HealthResponse,
    PositionRequest,
    VisibleHazard,
    VisibleResponse,
    ZoneStatus,
)
from speedwatch.web.service import EngineService

load_dotenv()  # loads .env from project root; must run before env vars are consumed

VERSION = "0.1.0"


def create_app(service: EngineService | None = None) -> FastAPI:
    """Build the app around *service* (defaults to :meth:`EngineService.from_env`)."""
    svc = service if service is not None else EngineService.from_env()
    app = FastAPI(title="Speedwatch", version=VERSION)
    app.state.service = svc

    # ------------------------------------------------------------------
    # Endpoints
    # ------------------------------------------------------------------

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok", version=VERSION)

    @app.post("/api/position", response_model=EventsResponse)
    def position(req: PositionRequest) -> EventsResponse:
        """Feed one position sample to the engine and return its events."""
        events = svc.ingest(req)
        return EventsResponse(events=[e.to_dict() for e in events])

    @app.post("/api/catalog", response_model=CatalogResponse)
    def reload_catalog(req: CatalogRequest) -> CatalogResponse:
        """Replace the hazard catalog with the uploaded records."""
        try:
            catalog, rejected, events = svc.reload(req)
        except FeedError as exc:
            raise HTTPException(status_code=422, detail=str(exc)) from exc

        return CatalogResponse(
            hazard_count=len(catalog.all_hazards()),
            corridor_count=len(catalog.all_corridors()),
            rejected=rejected,
            events=[e.to_dict() for e in events],
        )

    @app.get("/api/visible", response_model=VisibleResponse)
    def visible() -> VisibleResponse:
        """Hazards inside the visibility radius, nearest first."""
        return VisibleResponse(hazards=[VisibleHazard(**h) for h in svc.visible()])

    @app.get("/api/zone", response_model=ZoneStatus | None)
    def zone() -> ZoneStatus | None:
        status = svc.zone()
        return ZoneStatus(**status) if status is not None else None

    return app


app = create_app()
