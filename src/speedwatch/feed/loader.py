"""Load camera and zone feed files into a :class:`HazardCatalog`."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from speedwatch.catalog.catalog import HazardCatalog
from speedwatch.feed.parser import parse_speedcam_text, parse_zone_text


@dataclass
class FeedReport:
    """Counts from one catalog load."""

    hazards: int
    corridors: int
    rejected: int
    reasons: list[str]


def load_catalog(
    cameras_path: str | Path,
    zones_path: str | Path | None = None,
) -> tuple[HazardCatalog, FeedReport]:
    """Read both feed files and build a catalog snapshot.

    Raises
    ------
    FileNotFoundError
        If a given path does not exist.
    FeedError
        If a file cannot be decoded even after repair.
    """
    cameras = parse_speedcam_text(Path(cameras_path).read_text(encoding="utf-8"))
    hazards = cameras.records
    reasons = list(cameras.reasons)
    rejected = cameras.rejected

    corridors = []
    if zones_path is not None:
        zones = parse_zone_text(Path(zones_path).read_text(encoding="utf-8"))
        corridors = zones.records
        reasons.extend(zones.reasons)
        rejected += zones.rejected

    catalog = HazardCatalog(hazards, corridors)
    report = FeedReport(
        hazards=len(catalog.all_hazards()),
        corridors=len(catalog.all_corridors()),
        rejected=rejected,
        reasons=reasons,
    )
    return catalog, report
