"""FixParser — converts raw geolocation fixes to :class:`PositionSample`."""

from __future__ import annotations

import math

from speedwatch.engine.models import PositionSample

_MPS_TO_KMH = 3.6

# raw key → accepted aliases, first present wins
_LAT_KEYS = ("latitude", "lat")
_LON_KEYS = ("longitude", "lon", "lng")
_SPEED_KEYS = ("speed",)
_HEADING_KEYS = ("heading", "course")
_TIME_KEYS = ("timestamp", "time_ms", "t")


def _first(raw: dict, keys: tuple[str, ...]):
    for key in keys:
        value = raw.get(key)
        if value is not None and value != "":
            return value
    return None


def _to_float(value) -> float | None:
    """Return *value* as a finite float, or None if missing or not a number."""
    if value is None:
        return None
    try:
        f = float(value)
    except (TypeError, ValueError):
        return None
    return f if math.isfinite(f) else None


class FixParser:
    """Parses a geolocation-style dict into a :class:`PositionSample`.

    Expected keys: ``latitude``, ``longitude`` (degrees), ``speed`` (m/s),
    ``heading`` (degrees), ``timestamp`` (ms).  Speed is converted to km/h
    and rounded to a whole number, as the speed readout shows it.  Negative,
    missing or non-finite speed/heading become ``None`` so the engine's
    fallbacks apply.

    Raises
    ------
    ValueError
        If latitude or longitude is missing or not finite, or the fix has no
        usable timestamp.
    """

    def __init__(self, round_speed: bool = True) -> None:
        self._round_speed = round_speed

    def parse(self, raw: dict) -> PositionSample:
        lat = _to_float(_first(raw, _LAT_KEYS))
        lon = _to_float(_first(raw, _LON_KEYS))
        if lat is None or lon is None:
            raise ValueError(f"fix without usable coordinates: {raw!r}")

        speed_kmh = None
        speed_mps = _to_float(_first(raw, _SPEED_KEYS))
        if speed_mps is not None and speed_mps >= 0:
            speed_kmh = speed_mps * _MPS_TO_KMH
            if self._round_speed:
                speed_kmh = float(round(speed_kmh))

        heading = _to_float(_first(raw, _HEADING_KEYS))
        if heading is not None:
            heading = None if heading < 0 else heading % 360.0

        timestamp = _to_float(_first(raw, _TIME_KEYS))
        if timestamp is None or timestamp < 0:
            raise ValueError(f"fix without usable timestamp: {raw!r}")

        return PositionSample(
            lat=lat,
            lon=lon,
            speed_kmh=speed_kmh,
            heading_deg=heading,
            timestamp_ms=int(timestamp),
        )
