"""Real-time proximity and average-zone evaluation engine.

Public API
----------
ProximityEngine     - ingest(sample) -> events; reload_catalog(...)
EngineConfig        - thresholds and cool-downs
PositionSample      - one position fix
VisibleSetChanged, HazardAlert, ZoneEntered, ZoneProgress, ZoneExited - events
ReentrantIngestError - engine called from inside its own listener
"""

from speedwatch.engine.config import EngineConfig
from speedwatch.engine.models import (
    EngineEvent,
    EngineState,
    HazardAlert,
    PositionSample,
    VisibleSetChanged,
    ZoneEntered,
    ZoneExited,
    ZoneProgress,
    ZoneSession,
)
from speedwatch.engine.pipeline import ProximityEngine, ReentrantIngestError

__all__ = [
    "EngineConfig",
    "EngineEvent",
    "EngineState",
    "HazardAlert",
    "PositionSample",
    "ProximityEngine",
    "ReentrantIngestError",
    "VisibleSetChanged",
    "ZoneEntered",
    "ZoneExited",
    "ZoneProgress",
    "ZoneSession",
]
