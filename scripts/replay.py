"""Replay a recorded drive through the proximity engine.

Prints every alert and zone event as it would be shown to the driver.

Usage:
    uv run python scripts/replay.py --cameras SCDB_SpeedCams.json --zones avg_zones.json --track drive.csv
    uv run python scripts/replay.py ... --all-events      # include visibility changes
    uv run python scripts/replay.py ... --realtime --hz 1 # pace fixes like a live GPS
    uv run python scripts/replay.py ... --verbose         # engine debug logging
"""

from __future__ import annotations

import argparse
import logging
import sys

from dotenv import load_dotenv

load_dotenv()

from speedwatch.engine.config import EngineConfig  # noqa: E402
from speedwatch.engine.models import EngineEvent, VisibleSetChanged  # noqa: E402
from speedwatch.engine.pipeline import ProximityEngine  # noqa: E402
from speedwatch.feed.loader import load_catalog  # noqa: E402
from speedwatch.feed.parser import FeedError  # noqa: E402
from speedwatch.tracking.companion import DriveCompanion, format_event  # noqa: E402
from speedwatch.tracking.event_stream import PositionEventStream  # noqa: E402
from speedwatch.tracking.fix_parser import FixParser  # noqa: E402
from speedwatch.tracking.replay import ReplaySource  # noqa: E402


def _printer(engine: ProximityEngine, all_events: bool):
    """Return a sink that prints events stamped with the current fix time."""

    def _print(event: EngineEvent) -> None:
        if isinstance(event, VisibleSetChanged) and not all_events:
            return
        stamp = engine.last_position.timestamp_ms if engine.last_position else 0
        print(f"  [{stamp:>10d}] {format_event(event)}", flush=True)

    return _print


def _replay_direct(source: ReplaySource, engine: ProximityEngine, sink) -> tuple[int, int]:
    parser = FixParser()
    samples = 0
    alerts = 0
    for raw in source:
        try:
            sample = parser.parse(raw)
        except ValueError as exc:
            print(f"  skipping fix: {exc}", file=sys.stderr)
            continue
        samples += 1
        for event in engine.ingest(sample):
            if event.type == "hazard_alert":
                alerts += 1
            sink(event)
    return samples, alerts


def _replay_realtime(
    source: ReplaySource, engine: ProximityEngine, sink, hz: float
) -> tuple[int, int]:
    stream = PositionEventStream(source, FixParser(), target_hz=hz, stop_when_exhausted=True)
    companion = DriveCompanion(stream, engine, [sink])
    companion.start()
    print("Replaying in real time. Press Ctrl+C to stop.", flush=True)
    try:
        companion.run()
    except KeyboardInterrupt:
        pass
    finally:
        companion.stop()
    stats = stream.stats
    if stats.rejected or stats.stale or stats.dropped:
        print(
            f"  dropped fixes: {stats.rejected} unusable, {stats.stale} stale, "
            f"{stats.dropped} overrun",
            file=sys.stderr,
        )
    return companion.samples, companion.alerts


def main() -> int:
    ap = argparse.ArgumentParser(description="Speedwatch — replay a recorded track")
    ap.add_argument("--cameras", required=True, help="SCDB camera dump")
    ap.add_argument("--zones", default=None, help="Average-speed zones JSON")
    ap.add_argument("--track", required=True, help="Track file (.csv or JSON lines)")
    ap.add_argument("--all-events", action="store_true", help="Also print visibility changes")
    ap.add_argument("--realtime", action="store_true", help="Pace fixes through the live stream")
    ap.add_argument("--hz", type=float, default=1.0, help="Fix rate for --realtime")
    ap.add_argument("--verbose", action="store_true", help="Debug logging")
    args = ap.parse_args()

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    if args.hz <= 0:
        print("ERROR: --hz must be > 0", file=sys.stderr)
        return 1

    try:
        catalog, report = load_catalog(args.cameras, args.zones)
        config = EngineConfig.from_env()
        source = ReplaySource(args.track)
    except (OSError, FeedError, ValueError) as exc:
        print(f"ERROR: {exc}", file=sys.stderr)
        return 1

    print(f"Loaded {report.hazards} camera(s), {report.corridors} zone(s); {report.rejected} rejected.")
    if source.skipped:
        print(f"  skipped {source.skipped} malformed track line(s)", file=sys.stderr)

    engine = ProximityEngine(catalog, config)
    sink = _printer(engine, args.all_events)
    if args.realtime:
        samples, alerts = _replay_realtime(source, engine, sink, args.hz)
    else:
        samples, alerts = _replay_direct(source, engine, sink)

    print(f"\nReplayed {samples} fix(es), {alerts} alert(s).")
    return 0


if __name__ == "__main__":
    sys.exit(main())
