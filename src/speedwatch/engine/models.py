"""Engine data models: position samples, output events and engine state."""

from __future__ import annotations

import dataclasses
import math
from collections import deque
from dataclasses import dataclass, field
from typing import ClassVar, Union

from speedwatch.catalog.models import CorridorId, HazardId, HazardKind


@dataclass(frozen=True)
class PositionSample:
    """One position fix delivered by the device (or a replay).

    ``speed_kmh`` and ``heading_deg`` may be missing; the engine backfills
    them (sticky last speed, bearing from the previous fix).
    """

    lat: float
    lon: float
    speed_kmh: float | None = None
    heading_deg: float | None = None
    timestamp_ms: int = 0

    def has_speed(self) -> bool:
        return self.speed_kmh is not None and math.isfinite(self.speed_kmh)

    def has_heading(self) -> bool:
        return self.heading_deg is not None and math.isfinite(self.heading_deg)


# ---------------------------------------------------------------------------
# Events
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class _Event:
    type: ClassVar[str] = ""

    def to_dict(self) -> dict:
        """Return a JSON-serializable dict tagged with the event ``type``."""
        data = dataclasses.asdict(self)
        for key, value in data.items():
            if isinstance(value, tuple):
                data[key] = list(value)
            elif isinstance(value, HazardKind):
                data[key] = value.value
        return {"type": self.type, **data}


@dataclass(frozen=True)
class VisibleSetChanged(_Event):
    """Hazards that entered or left the visibility radius on this sample."""

    type: ClassVar[str] = "visible_set_changed"

    entered: tuple[HazardId, ...] = ()
    exited: tuple[HazardId, ...] = ()


@dataclass(frozen=True)
class HazardAlert(_Event):
    """A hazard ahead of the direction of travel is within alert range."""

    type: ClassVar[str] = "hazard_alert"

    hazard_id: HazardId
    kind: HazardKind
    distance_m: float
    bearing_deg: float
    """Bearing from the user's position to the hazard."""


@dataclass(frozen=True)
class ZoneEntered(_Event):
    type: ClassVar[str] = "zone_entered"

    corridor_id: CorridorId
    limit_kmh: float


@dataclass(frozen=True)
class ZoneProgress(_Event):
    """Progress through the active corridor.  ``over_by`` is negative when under the limit."""

    type: ClassVar[str] = "zone_progress"

    corridor_id: CorridorId
    pct: float
    current_kmh: float
    limit_kmh: float
    over_by: float


@dataclass(frozen=True)
class ZoneExited(_Event):
    """Summary of a finished corridor traversal."""

    type: ClassVar[str] = "zone_exited"

    corridor_id: CorridorId
    avg_kmh: float
    limit_kmh: float
    duration_ms: int = 0
    sample_count: int = 0


EngineEvent = Union[VisibleSetChanged, HazardAlert, ZoneEntered, ZoneProgress, ZoneExited]


# ---------------------------------------------------------------------------
# State
# ---------------------------------------------------------------------------


@dataclass
class ZoneSession:
    """An in-progress corridor traversal."""

    corridor_id: CorridorId
    limit_kmh: float
    entered_at_ms: int
    speed_samples: deque[float] = field(default_factory=deque)

    def average_kmh(self) -> float:
        if not self.speed_samples:
            return 0.0
        return sum(self.speed_samples) / len(self.speed_samples)


@dataclass
class EngineState:
    """Mutable state owned by one :class:`ProximityEngine`.

    Only the engine writes to it; other collaborators may read it.
    """

    last_position: PositionSample | None = None
    last_speed_kmh: float = 0.0
    visible: set[HazardId] = field(default_factory=set)
    per_hazard_last_alert_ms: dict[HazardId, int] = field(default_factory=dict)
    last_global_alert_ms: int | None = None
    zone_session: ZoneSession | None = None

    def record_alert(self, hazard_id: HazardId, now_ms: int) -> None:
        """Stamp both cool-down ledgers; stored timestamps never move backwards."""
        previous = self.per_hazard_last_alert_ms.get(hazard_id)
        if previous is None or now_ms > previous:
            self.per_hazard_last_alert_ms[hazard_id] = now_ms
        if self.last_global_alert_ms is None or now_ms > self.last_global_alert_ms:
            self.last_global_alert_ms = now_ms
