"""ProximityEngine — one atomic evaluation step per position sample."""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.catalog.models import AverageZoneCorridor, HazardPoint
from speedwatch.engine.alerts import AlertEvaluator
from speedwatch.engine.config import EngineConfig
from speedwatch.engine.models import (
    EngineEvent,
    EngineState,
    PositionSample,
    VisibleSetChanged,
    ZoneSession,
)
from speedwatch.engine.visibility import VisibilityWindow
from speedwatch.engine.zones import ZoneTracker
from speedwatch.geo.geometry import bearing_degrees, distance_meters

_logger = logging.getLogger(__name__)

EventListener = Callable[[EngineEvent], None]


class ReentrantIngestError(RuntimeError):
    """Raised when the engine is called again from inside one of its own listeners."""


class ProximityEngine:
    """Evaluates a stream of :class:`PositionSample` against a hazard catalog.

    Each :meth:`ingest` call runs, in order: speed/heading backfill, the
    visibility window, the directional alert evaluator and the average-zone
    tracker, and returns the events they produced in that order.  The engine
    has no timers or threads; cool-downs are compared against the sample
    timestamps.

    Parameters
    ----------
    catalog:
        Initial hazard snapshot.  Replace it with :meth:`reload_catalog`.
    config:
        Thresholds; defaults to :class:`EngineConfig`.
    """

    def __init__(
        self,
        catalog: HazardCatalog | None = None,
        config: EngineConfig | None = None,
    ) -> None:
        self._cfg = config or EngineConfig()
        self._catalog = catalog if catalog is not None else HazardCatalog.empty()
        self._state = EngineState()
        self._visibility = VisibilityWindow(self._state.visible)
        self._alerts = AlertEvaluator(self._cfg)
        self._zones = ZoneTracker(self._cfg)
        self._listeners: list[EventListener] = []
        self._busy = False

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def config(self) -> EngineConfig:
        return self._cfg

    @property
    def catalog(self) -> HazardCatalog:
        return self._catalog

    @property
    def state(self) -> EngineState:
        """The engine's state.  Callers must treat it as read-only."""
        return self._state

    @property
    def last_position(self) -> PositionSample | None:
        return self._state.last_position

    @property
    def last_speed_kmh(self) -> float:
        return self._state.last_speed_kmh

    @property
    def zone_session(self) -> ZoneSession | None:
        return self._state.zone_session

    def visible_hazards(self) -> list[tuple[HazardPoint, float]]:
        """Return visible hazards with their distance from the last position, nearest first."""
        position = self._state.last_position
        if position is None:
            return []
        pairs = []
        for hazard_id in self._state.visible:
            hazard = self._catalog.hazard(hazard_id)
            if hazard is not None:
                pairs.append((hazard, distance_meters(position, hazard)))
        pairs.sort(key=lambda pair: (pair[1], pair[0].id))
        return pairs

    # ------------------------------------------------------------------
    # Listeners
    # ------------------------------------------------------------------

    def subscribe(self, listener: EventListener) -> Callable[[], None]:
        """Register *listener* for every emitted event; returns an unsubscribe callable.

        Listeners run synchronously inside :meth:`ingest` and must not call
        back into the engine.  An exception raised by a listener is logged and
        does not stop delivery to the others or the return of the events.
        """
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    # ------------------------------------------------------------------
    # Mutating entry points
    # ------------------------------------------------------------------

    def ingest(self, sample: PositionSample) -> list[EngineEvent]:
        """Process one position sample and return the resulting events.

        Raises
        ------
        ReentrantIngestError
            If called from inside a listener of this engine.
        """
        self._enter()
        try:
            events = self._step(sample)
            self._dispatch(events)
        finally:
            self._busy = False
        return events

    def reload_catalog(
        self,
        hazards: Iterable[HazardPoint] | HazardCatalog,
        corridors: Iterable[AverageZoneCorridor] = (),
    ) -> list[EngineEvent]:
        """Swap in a new catalog snapshot.

        Cool-down ledgers are kept.  If the active zone's corridor is not in
        the new snapshot the session is closed first (``ZoneExited``).  The
        visible set is then re-evaluated around the last position so it only
        ever names hazards of the current catalog.
        """
        catalog = hazards if isinstance(hazards, HazardCatalog) else HazardCatalog(hazards, corridors)

        self._enter()
        try:
            events: list[EngineEvent] = []
            state = self._state
            now_ms = state.last_position.timestamp_ms if state.last_position else 0

            session = state.zone_session
            if session is not None and catalog.corridor(session.corridor_id) is None:
                _logger.info("Corridor %s removed by reload; closing zone session", session.corridor_id)
                events.append(self._zones.force_exit(state, now_ms))

            self._catalog = catalog
            diff = self._visibility.refresh(
                state.last_position, catalog, self._cfg.camera_visible_radius_m
            )
            if not diff.is_empty():
                events.append(VisibleSetChanged(entered=diff.entered, exited=diff.exited))

            _logger.info(
                "Catalog reloaded: %d hazards, %d corridors",
                len(catalog.all_hazards()),
                len(catalog.all_corridors()),
            )
            self._dispatch(events)
        finally:
            self._busy = False
        return events

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _enter(self) -> None:
        if self._busy:
            raise ReentrantIngestError("ProximityEngine called re-entrantly from an event listener")
        self._busy = True

    def _step(self, sample: PositionSample) -> list[EngineEvent]:
        state = self._state
        now_ms = sample.timestamp_ms

        if sample.has_speed():
            state.last_speed_kmh = float(sample.speed_kmh)
        speed_kmh = state.last_speed_kmh

        heading = self._resolve_heading(sample)

        events: list[EngineEvent] = []

        diff = self._visibility.refresh(sample, self._catalog, self._cfg.camera_visible_radius_m)
        if not diff.is_empty():
            events.append(VisibleSetChanged(entered=diff.entered, exited=diff.exited))

        events.extend(self._alerts.evaluate(sample, heading, self._catalog, state, now_ms))
        events.extend(self._zones.update(sample, speed_kmh, self._catalog, state, now_ms))

        state.last_position = sample
        return events

    def _resolve_heading(self, sample: PositionSample) -> float | None:
        if sample.has_heading():
            return float(sample.heading_deg) % 360.0
        previous = self._state.last_position
        if previous is None:
            return None
        if (previous.lat, previous.lon) == (sample.lat, sample.lon):
            # no movement: bearing is undefined
            return None
        return bearing_degrees(previous, sample)

    def _dispatch(self, events: list[EngineEvent]) -> None:
        for event in events:
            for listener in list(self._listeners):
                try:
                    listener(event)
                except ReentrantIngestError:
                    raise
                except Exception:
                    _logger.exception("Event listener %r failed on %s", listener, event.type)
