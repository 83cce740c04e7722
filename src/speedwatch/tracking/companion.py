"""DriveCompanion — connects a position stream to the engine and event sinks."""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable

from speedwatch.engine.models import (
    EngineEvent,
    HazardAlert,
    VisibleSetChanged,
    ZoneEntered,
    ZoneExited,
    ZoneProgress,
)
from speedwatch.engine.pipeline import ProximityEngine

EventSink = Callable[[EngineEvent], None]


def format_event(event: EngineEvent) -> str:
    """Return a one-line, human-readable description of *event*."""
    if isinstance(event, HazardAlert):
        return f"{event.kind.label} Radar — {round(event.distance_m)} m"
    if isinstance(event, ZoneEntered):
        return f"Average speed zone {event.corridor_id} — limit {event.limit_kmh:.0f} km/h"
    if isinstance(event, ZoneProgress):
        status = f"+{event.over_by:.0f}" if event.over_by > 0 else "ok"
        return (
            f"Zone {event.corridor_id} {round(event.pct * 100)}% — "
            f"{event.current_kmh:.0f}/{event.limit_kmh:.0f} km/h ({status})"
        )
    if isinstance(event, ZoneExited):
        return (
            f"Left zone {event.corridor_id} — average {event.avg_kmh:.1f} km/h "
            f"(limit {event.limit_kmh:.0f})"
        )
    if isinstance(event, VisibleSetChanged):
        return f"Cameras in view: +{len(event.entered)} / -{len(event.exited)}"
    return repr(event)


class RecordingSink:
    """Sink that keeps every event it receives; used by tests and dry runs."""

    def __init__(self) -> None:
        self.events: list[EngineEvent] = []

    def __call__(self, event: EngineEvent) -> None:
        self.events.append(event)


class DriveCompanion:
    """Integrates the position stream, the proximity engine and event sinks.

    Parameters
    ----------
    stream:
        A :class:`~speedwatch.tracking.event_stream.PositionEventStream`.
    engine:
        The :class:`~speedwatch.engine.pipeline.ProximityEngine` to feed.
    sinks:
        Callables receiving every event, in order (UI, log, audio, ...).
    """

    def __init__(
        self,
        stream,
        engine: ProximityEngine,
        sinks: Iterable[EventSink] = (),
    ) -> None:
        self._stream = stream
        self._engine = engine
        self._sinks = list(sinks)
        self.samples = 0
        self.alerts = 0

    def start(self) -> None:
        """Start the underlying position stream."""
        self._stream.start()

    def stop(self) -> None:
        """Stop the underlying position stream."""
        self._stream.stop()

    def tick(self) -> int:
        """Process one queued sample and hand its events to the sinks.

        Returns the number of events produced (0 if no sample was available).
        """
        event = self._stream.get_event(timeout=0.0)
        if event is None:
            return 0

        produced = self._engine.ingest(event.sample)
        self.samples += 1
        for engine_event in produced:
            if isinstance(engine_event, HazardAlert):
                self.alerts += 1
            for sink in self._sinks:
                sink(engine_event)
        return len(produced)

    def run(self, idle_s: float = 0.005) -> int:
        """Tick until the stream is drained; returns the number of samples processed.

        Sleeps *idle_s* between empty ticks.  A live stream never drains, so
        callers stop it with :meth:`stop` or KeyboardInterrupt.
        """
        start = self.samples
        while not self._stream.is_drained():
            before = self.samples
            self.tick()
            if self.samples == before:
                time.sleep(idle_s)
        return self.samples - start
