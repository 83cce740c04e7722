"""Position sources and the loop that feeds them to the engine.

Public API
----------
FixParser           - raw geolocation dict → PositionSample
ReplaySource        - recorded CSV / JSON-lines track
PositionEventStream - paced polling, stale/unusable fix filtering, drop-oldest queue
DriveCompanion      - stream → engine → sinks
format_event        - one-line text for an engine event
"""

from speedwatch.tracking.companion import DriveCompanion, RecordingSink, format_event
from speedwatch.tracking.event_stream import (
    PositionEvent,
    PositionEventStream,
    StreamStats,
)
from speedwatch.tracking.fix_parser import FixParser
from speedwatch.tracking.replay import ReplaySource

__all__ = [
    "DriveCompanion",
    "FixParser",
    "PositionEvent",
    "PositionEventStream",
    "RecordingSink",
    "ReplaySource",
    "StreamStats",
    "format_event",
]
