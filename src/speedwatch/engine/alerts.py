"""Directional alert evaluation with per-hazard and global cool-downs."""

from __future__ import annotations

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.catalog.models import HazardId, HazardPoint
from speedwatch.engine.config import EngineConfig
from speedwatch.engine.models import EngineState, HazardAlert
from speedwatch.geo.geometry import (
    HasLatLon,
    angular_difference,
    bearing_degrees,
    distance_meters,
)


def in_cooldown(last_ms: int | None, now_ms: int, cooldown_ms: int) -> bool:
    """Return True if *now_ms* is still inside the cool-down started at *last_ms*."""
    return last_ms is not None and now_ms - last_ms < cooldown_ms


def hazards_in_range(
    position: HasLatLon,
    catalog: HazardCatalog,
    radius_m: float,
) -> list[tuple[float, HazardPoint]]:
    """Return ``(distance, hazard)`` pairs within *radius_m*, nearest first."""
    found = []
    for hazard in catalog.all_hazards():
        d = distance_meters(position, hazard)
        if d <= radius_m:
            found.append((d, hazard))
    found.sort(key=lambda pair: (pair[0], pair[1].id))
    return found


class AlertEvaluator:
    """Decides which hazard, if any, should alert for the current sample.

    A hazard qualifies when it is within ``alert_distance_m``, lies within
    ``ahead_angle_deg`` of the heading, and is out of its own cool-down.
    Hazards are scanned nearest first.  With the ``'nearest'`` policy the
    first qualifying hazard alerts and the scan stops; with ``'every'`` all
    qualifying hazards alert, except while the global cool-down is running,
    when at most one may.

    Without a heading every hazard counts as ahead.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._cfg = config or EngineConfig()

    def evaluate(
        self,
        position: HasLatLon,
        heading: float | None,
        catalog: HazardCatalog,
        state: EngineState,
        now_ms: int,
    ) -> list[HazardAlert]:
        cfg = self._cfg
        global_cooldown = in_cooldown(state.last_global_alert_ms, now_ms, cfg.global_throttle_ms)
        max_alerts = 1 if cfg.alert_policy == "nearest" or global_cooldown else None

        alerts: list[HazardAlert] = []
        for distance, hazard in hazards_in_range(position, catalog, cfg.alert_distance_m):
            bearing = bearing_degrees(position, hazard)
            if heading is not None and angular_difference(bearing, heading) > cfg.ahead_angle_deg:
                continue
            if self._hazard_cooling_down(state, hazard.id, now_ms):
                continue

            state.record_alert(hazard.id, now_ms)
            alerts.append(
                HazardAlert(
                    hazard_id=hazard.id,
                    kind=hazard.kind,
                    distance_m=distance,
                    bearing_deg=bearing,
                )
            )
            if max_alerts is not None and len(alerts) >= max_alerts:
                break

        return alerts

    def _hazard_cooling_down(self, state: EngineState, hazard_id: HazardId, now_ms: int) -> bool:
        last = state.per_hazard_last_alert_ms.get(hazard_id)
        return in_cooldown(last, now_ms, self._cfg.per_hazard_throttle_ms)
