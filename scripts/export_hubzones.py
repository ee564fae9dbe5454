#!/usr/bin/env python3
"""CLI script to export HUBZone boundaries as GeoJSON or CSV."""
import argparse
import sys
from pathlib import Path
from hubzone.core.config import HUBZONE_SOURCE, LOG_LEVEL
from hubzone.core.export import EXPORT_FORMATS, export_csv, export_filename, export_geojson
from hubzone.core.snapshots import SnapshotManager
from hubzone.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Export HUBZone boundaries")
    parser.add_argument("--source", default=HUBZONE_SOURCE, help="HUBZone boundary source")
    parser.add_argument("--format", choices=EXPORT_FORMATS, default="geojson", help="Output format")
    parser.add_argument("--state", help="Only zones in this state (code or name)")
    parser.add_argument("--county", help="Only zones in this county")
    parser.add_argument("--output-dir", type=Path, default=Path("."), help="Output directory")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)

    manager = SnapshotManager()
    result = manager.reload(args.source)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        sys.exit(1)

    args.output_dir.mkdir(parents=True, exist_ok=True)
    path = args.output_dir / export_filename(args.format, args.state, args.county)

    exporter = export_geojson if args.format == "geojson" else export_csv
    exporter(manager.current(), path, state=args.state, county=args.county)
    print(f"✅ Exported to {path}")


if __name__ == "__main__":
    main()
