"""Feed parsing: raw camera / zone documents → validated catalog records.

The SCDB camera dump is not valid JSON: it is a run of objects written back
to back (``{...}{...}`` or one object per line) without an enclosing array.
:func:`repair_concatenated_json` turns it into an array before parsing.
Individual records that fail validation are skipped and counted; only a
document that cannot be parsed at all raises :class:`FeedError`.
"""

from __future__ import annotations

import json
import logging
import re
from collections.abc import Iterable
from dataclasses import dataclass, field
from typing import Any, Generic, TypeVar

from pydantic import ValidationError

from speedwatch.catalog.models import AverageZoneCorridor, HazardPoint
from speedwatch.feed.records import SpeedcamRecord, ZoneRecord
from speedwatch.geo.geometry import GeoPoint

_logger = logging.getLogger(__name__)

T = TypeVar("T")

# Each pattern matches a whole JSON string literal first (group 1) so the
# repairs never rewrite text inside string values.
_JSON_STRING = r'("(?:[^"\\]|\\.)*")'
_OBJECT_BOUNDARY = re.compile(_JSON_STRING + r"|}\s*,?\s*{")
_TRAILING_COMMA = re.compile(_JSON_STRING + r"|,\s*([\]}])")


class FeedError(ValueError):
    """Raised when a feed document cannot be parsed even after repair."""


@dataclass
class FeedResult(Generic[T]):
    """Records accepted from one feed document plus what was rejected and why."""

    records: list[T] = field(default_factory=list)
    rejected: int = 0
    reasons: list[str] = field(default_factory=list)

    def reject(self, index: int, reason: str) -> None:
        self.rejected += 1
        self.reasons.append(f"record {index}: {reason}")


def repair_concatenated_json(text: str) -> str:
    """Return *text* rewritten as a JSON array.

    Back-to-back objects get a comma between them, trailing commas are
    dropped, and the whole run is wrapped in ``[...]`` unless it already is
    an array.  String values are left untouched.
    """
    body = text.lstrip("\ufeff").strip()
    if not body:
        return "[]"
    body = _OBJECT_BOUNDARY.sub(lambda m: m.group(1) or "},{", body)
    body = _TRAILING_COMMA.sub(lambda m: m.group(1) or m.group(2), body)
    if not body.startswith("["):
        body = f"[{body.rstrip(',')}]"
    return body


def _load_array(text: str, what: str) -> list[Any]:
    try:
        data = json.loads(repair_concatenated_json(text))
    except json.JSONDecodeError as exc:
        raise FeedError(f"{what} feed is not parseable: {exc}") from exc
    if isinstance(data, dict):
        data = [data]
    if not isinstance(data, list):
        raise FeedError(f"{what} feed must contain objects, got {type(data).__name__}")
    return data


def _short_reason(exc: ValidationError) -> str:
    err = exc.errors()[0]
    loc = ".".join(str(part) for part in err.get("loc", ())) or "record"
    return f"{loc}: {err.get('msg', 'invalid')}"


def parse_speedcam_records(items: Iterable[Any]) -> FeedResult[HazardPoint]:
    """Validate already-decoded camera records."""
    result: FeedResult[HazardPoint] = FeedResult()
    for index, item in enumerate(items):
        try:
            record = SpeedcamRecord.model_validate(item)
        except ValidationError as exc:
            result.reject(index, _short_reason(exc))
            continue
        result.records.append(record.to_hazard())

    if result.rejected:
        _logger.warning("Rejected %d camera record(s); first: %s", result.rejected, result.reasons[0])
    _logger.info("Loaded %d cameras", len(result.records))
    return result


def parse_speedcam_text(text: str) -> FeedResult[HazardPoint]:
    """Parse the SCDB camera dump (concatenated objects or a JSON array).

    Raises
    ------
    FeedError
        If the text cannot be decoded even after repair.
    """
    return parse_speedcam_records(_load_array(text, "camera"))


def _corridor_id(record: ZoneRecord) -> str:
    if record.id:
        return record.id
    return (
        f"{record.start.lat:.5f},{record.start.lon:.5f}"
        f"->{record.end.lat:.5f},{record.end.lon:.5f}"
    )


def parse_zone_records(items: Iterable[Any]) -> FeedResult[AverageZoneCorridor]:
    """Validate decoded zone records, keeping only average-speed zones."""
    result: FeedResult[AverageZoneCorridor] = FeedResult()
    skipped = 0
    for index, item in enumerate(items):
        try:
            record = ZoneRecord.model_validate(item)
        except ValidationError as exc:
            result.reject(index, _short_reason(exc))
            continue
        if not record.is_average():
            skipped += 1
            continue
        result.records.append(
            AverageZoneCorridor(
                id=_corridor_id(record),
                start=GeoPoint(record.start.lat, record.start.lon),
                end=GeoPoint(record.end.lat, record.end.lon),
                speed_limit_kmh=record.limit,
            )
        )

    if result.rejected:
        _logger.warning("Rejected %d zone record(s); first: %s", result.rejected, result.reasons[0])
    if skipped:
        _logger.debug("Skipped %d non-average zone(s)", skipped)
    _logger.info("Loaded %d average-speed zones", len(result.records))
    return result


def parse_zone_text(text: str) -> FeedResult[AverageZoneCorridor]:
    """Parse the zones document (a JSON array of zone objects).

    Raises
    ------
    FeedError
        If the text cannot be decoded.
    """
    return parse_zone_records(_load_array(text, "zone"))
