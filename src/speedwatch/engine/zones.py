"""Average-speed corridor tracking: Idle / InZone state machine."""

from __future__ import annotations

import logging
from collections import deque

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.catalog.models import AverageZoneCorridor
from speedwatch.engine.config import EngineConfig
from speedwatch.engine.models import (
    EngineEvent,
    EngineState,
    ZoneEntered,
    ZoneExited,
    ZoneProgress,
    ZoneSession,
)
from speedwatch.geo.geometry import HasLatLon, distance_meters

_logger = logging.getLogger(__name__)


def corridor_progress(
    corridor: AverageZoneCorridor,
    position: HasLatLon,
    gap_epsilon_m: float,
    overrun_epsilon_m: float,
) -> float | None:
    """Return progress through *corridor* in [0, 1], or None if *position* is off it.

    "On the corridor" means the detour via *position* is less than
    *gap_epsilon_m* longer than the corridor itself, and the user is no more
    than *overrun_epsilon_m* past its length from the start.  This tolerates
    GPS jitter and mild curvature without a point-to-segment projection.
    """
    total = distance_meters(corridor.start, corridor.end)
    d_start = distance_meters(corridor.start, position)
    d_end = distance_meters(corridor.end, position)
    gap = abs(d_start + d_end - total)

    if not (gap < gap_epsilon_m and d_start <= total + overrun_epsilon_m):
        return None
    if total <= 0:
        return 0.0
    return min(1.0, max(0.0, d_start / total))


class ZoneTracker:
    """Drives ``EngineState.zone_session`` from successive positions.

    Per sample the tracker emits:

    * Idle, corridor matches → ``ZoneEntered``
    * InZone, same corridor matches → ``ZoneProgress`` (speed sample recorded)
    * InZone, nothing matches → ``ZoneExited``
    * InZone, a different corridor matches → ``ZoneExited`` then ``ZoneEntered``

    The active corridor is tested before the rest of the catalog so that
    overlapping corridors do not hand the session back and forth.
    """

    def __init__(self, config: EngineConfig | None = None) -> None:
        self._cfg = config or EngineConfig()

    def update(
        self,
        position: HasLatLon,
        speed_kmh: float,
        catalog: HazardCatalog,
        state: EngineState,
        now_ms: int,
    ) -> list[EngineEvent]:
        events: list[EngineEvent] = []
        session = state.zone_session

        if session is not None:
            active = catalog.corridor(session.corridor_id)
            pct = self._progress(active, position) if active is not None else None
            if pct is not None:
                session.speed_samples.append(speed_kmh)
                events.append(
                    ZoneProgress(
                        corridor_id=session.corridor_id,
                        pct=pct,
                        current_kmh=speed_kmh,
                        limit_kmh=session.limit_kmh,
                        over_by=speed_kmh - session.limit_kmh,
                    )
                )
                return events
            events.append(self.force_exit(state, now_ms))

        match = self._find_corridor(position, catalog)
        if match is not None:
            state.zone_session = ZoneSession(
                corridor_id=match.id,
                limit_kmh=match.speed_limit_kmh,
                entered_at_ms=now_ms,
                speed_samples=deque(maxlen=self._cfg.zone_speed_sample_cap),
            )
            _logger.debug("Entered corridor %s (limit %.0f km/h)", match.id, match.speed_limit_kmh)
            events.append(ZoneEntered(corridor_id=match.id, limit_kmh=match.speed_limit_kmh))

        return events

    def force_exit(self, state: EngineState, now_ms: int) -> ZoneExited:
        """End the active session and return its summary.

        Raises
        ------
        ValueError
            If there is no active session.
        """
        session = state.zone_session
        if session is None:
            raise ValueError("no active zone session to exit")

        summary = ZoneExited(
            corridor_id=session.corridor_id,
            avg_kmh=session.average_kmh(),
            limit_kmh=session.limit_kmh,
            duration_ms=max(0, now_ms - session.entered_at_ms),
            sample_count=len(session.speed_samples),
        )
        session.speed_samples.clear()
        state.zone_session = None
        _logger.debug(
            "Exited corridor %s: avg %.1f km/h over %d samples",
            summary.corridor_id,
            summary.avg_kmh,
            summary.sample_count,
        )
        return summary

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _progress(self, corridor: AverageZoneCorridor, position: HasLatLon) -> float | None:
        return corridor_progress(
            corridor,
            position,
            self._cfg.zone_gap_epsilon_m,
            self._cfg.zone_overrun_epsilon_m,
        )

    def _find_corridor(
        self, position: HasLatLon, catalog: HazardCatalog
    ) -> AverageZoneCorridor | None:
        for corridor in catalog.all_corridors():
            if self._progress(corridor, position) is not None:
                return corridor
        return None
