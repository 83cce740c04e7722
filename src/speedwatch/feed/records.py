"""Pydantic schemas for raw upstream feed records."""

from __future__ import annotations

import math

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from speedwatch.catalog.models import HazardKind, HazardPoint

AVERAGE_ZONE_FLAG = 2

_UNITS = {"kmh": "kmh", "km/h": "kmh", "kph": "kmh", "mph": "mph"}


class SpeedcamRecord(BaseModel):
    """One camera entry of the SCDB dump: ``{"lat", "lon", "flg", "unt"}``."""

    model_config = ConfigDict(extra="ignore")

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)
    flg: int = 0
    unt: str | None = None

    @field_validator("lat", "lon")
    @classmethod
    def require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value

    @field_validator("unt")
    @classmethod
    def normalise_unit(cls, value: str | None) -> str | None:
        if value is None:
            return None
        unit = _UNITS.get(value.strip().lower())
        if unit is None:
            raise ValueError(f"unknown speed unit {value!r}")
        return unit

    def to_hazard(self) -> HazardPoint:
        kind = HazardKind.AVERAGE_ZONE_CAMERA if self.flg == AVERAGE_ZONE_FLAG else HazardKind.FIXED
        return HazardPoint.at(self.lat, self.lon, kind=kind, speed_unit=self.unt or "kmh")


class ZoneEndpoint(BaseModel):
    """``{"lat", "lng"}``; ``lon`` is accepted as well."""

    model_config = ConfigDict(extra="ignore")

    lat: float = Field(ge=-90.0, le=90.0)
    lon: float = Field(ge=-180.0, le=180.0)

    @model_validator(mode="before")
    @classmethod
    def accept_lng(cls, data):
        if isinstance(data, dict) and "lon" not in data and "lng" in data:
            data = {**data, "lon": data["lng"]}
        return data

    @field_validator("lat", "lon")
    @classmethod
    def require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value


class ZoneRecord(BaseModel):
    """One average-speed zone: ``{"id"?, "type"?, "start", "end", "limit"}``."""

    model_config = ConfigDict(extra="ignore")

    id: str | None = None
    type: str | None = None
    start: ZoneEndpoint
    end: ZoneEndpoint
    limit: float = Field(gt=0)

    @field_validator("id", mode="before")
    @classmethod
    def id_as_text(cls, value):
        return None if value is None else str(value)

    @field_validator("limit")
    @classmethod
    def require_finite(cls, value: float) -> float:
        if not math.isfinite(value):
            raise ValueError("must be a finite number")
        return value

    def is_average(self) -> bool:
        return self.type is None or self.type.strip().lower() == "average"
