"""Upstream feed ingestion: tolerant parsing and validation of camera/zone data.

Public API
----------
parse_speedcam_text  - SCDB camera dump → hazards
parse_zone_text      - zones document → corridors
parse_speedcam_records / parse_zone_records - same, from decoded objects
load_catalog         - both files → HazardCatalog + FeedReport
FeedError            - raised when a document cannot be parsed at all
"""

from speedwatch.feed.loader import FeedReport, load_catalog
from speedwatch.feed.parser import (
    FeedError,
    FeedResult,
    parse_speedcam_records,
    parse_speedcam_text,
    parse_zone_records,
    parse_zone_text,
    repair_concatenated_json,
)

__all__ = [
    "FeedError",
    "FeedReport",
    "FeedResult",
    "load_catalog",
    "parse_speedcam_records",
    "parse_speedcam_text",
    "parse_zone_records",
    "parse_zone_text",
    "repair_concatenated_json",
]
