"""Validate camera / zone feed files and report what would be loaded.

Usage:
    uv run python scripts/check_feed.py --cameras SCDB_SpeedCams.json
    uv run python scripts/check_feed.py --cameras SCDB_SpeedCams.json --zones avg_zones.json
"""

from __future__ import annotations

import argparse
import sys
from collections import Counter

from speedwatch.feed.loader import load_catalog
from speedwatch.feed.parser import FeedError


def main() -> int:
    ap = argparse.ArgumentParser(description="Speedwatch — feed file check")
    ap.add_argument("--cameras", required=True, help="SCDB camera dump")
    ap.add_argument("--zones", default=None, help="Average-speed zones JSON")
    ap.add_argument("--show", type=int, default=10, help="Rejection reasons to print")
    args = ap.parse_args()

    try:
        catalog, report = load_catalog(args.cameras, args.zones)
    except (OSError, FeedError) as exc:
        print(f"× {exc}", file=sys.stderr)
        return 1

    kinds = Counter(h.kind.label for h in catalog.all_hazards())
    print(f"Cameras : {report.hazards}  ({', '.join(f'{k}: {n}' for k, n in sorted(kinds.items()))})")
    print(f"Zones   : {report.corridors}")
    print(f"Rejected: {report.rejected}")
    for reason in report.reasons[: args.show]:
        print(f"  - {reason}")
    if len(report.reasons) > args.show:
        print(f"  ... {len(report.reasons) - args.show} more")
    return 0 if report.hazards else 2


if __name__ == "__main__":
    sys.exit(main())
