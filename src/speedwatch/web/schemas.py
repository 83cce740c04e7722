"""Pydantic request/response schemas for the Web API."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field


class HealthResponse(BaseModel):
    status: str
    version: str


class PositionRequest(BaseModel):
    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    speed_kmh: float | None = None
    heading_deg: float | None = None
    timestamp_ms: int


class EventsResponse(BaseModel):
    events: list[dict[str, Any]]


class CatalogRequest(BaseModel):
    cameras: list[Any] = Field(default_factory=list)
    """Decoded camera records (``lat``, ``lon``, ``flg``, ``unt``)."""
    cameras_text: str | None = None
    """Raw SCDB dump; parsed with concatenated-object repair.  Takes precedence over ``cameras``."""
    zones: list[Any] = Field(default_factory=list)


class CatalogResponse(BaseModel):
    hazard_count: int
    corridor_count: int
    rejected: int
    events: list[dict[str, Any]]


class VisibleHazard(BaseModel):
    id: str
    lat: float
    lon: float
    kind: str
    distance_m: float


class VisibleResponse(BaseModel):
    hazards: list[VisibleHazard]


class ZoneStatus(BaseModel):
    corridor_id: str
    limit_kmh: float
    entered_at_ms: int
    sample_count: int
    avg_kmh: float
