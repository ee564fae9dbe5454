#!/usr/bin/env python3
"""CLI script to validate a HUBZone source and record the load in reload history."""
import argparse
import json
import sys
from pathlib import Path
from hubzone.core.config import HISTORY_DB_PATH, HUBZONE_SOURCE, LOG_LEVEL
from hubzone.core.history_store import ReloadHistoryStore
from hubzone.core.loader import DatasetLoader
from hubzone.core.lookup import LookupService
from hubzone.core.snapshots import SnapshotManager
from hubzone.utils.error_tracking import setup_error_tracking
from hubzone.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Load and validate HUBZone boundaries")
    parser.add_argument("source", nargs="?", default=HUBZONE_SOURCE,
                       help="GeoJSON/shapefile path or http(s) URL")
    parser.add_argument("--close-rings", action="store_true",
                       help="Close rings whose last vertex differs from the first")
    parser.add_argument("--db-path", type=Path, default=HISTORY_DB_PATH,
                       help="Reload history DuckDB path")
    parser.add_argument("--no-history", action="store_true", help="Do not record the load")
    parser.add_argument("--show-warnings", action="store_true", help="Print dropped records")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)
    setup_error_tracking()

    history = None if args.no_history else ReloadHistoryStore(args.db_path)
    manager = SnapshotManager(DatasetLoader(close_rings=args.close_rings), history=history)

    print(f"Loading {args.source}...")
    result = manager.reload(args.source)

    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        if history:
            history.close()
        sys.exit(1)

    print(f"✅ Loaded {result.total_zones} zones (snapshot v{result.version}) in {result.processing_ms} ms")
    print(f"   Dropped records: {result.dropped_records}")
    if args.show_warnings:
        for warning in result.warnings:
            print(f"   - #{warning.record_index} {warning.record_id or '?'}: {warning.code} ({warning.message})")

    stats = LookupService(manager).statistics()
    print(json.dumps({"by_zone_type": stats["by_zone_type"], "by_status": stats["by_status"]}, indent=2))

    if history:
        history.close()


if __name__ == "__main__":
    main()
