#!/usr/bin/env python3
"""CLI script to check whether a coordinate lies in a HUBZone."""
import argparse
import json
import sys
from hubzone.core.config import HUBZONE_SOURCE, LOG_LEVEL
from hubzone.core.errors import HubzoneError
from hubzone.core.lookup import LookupService
from hubzone.core.snapshots import SnapshotManager
from hubzone.utils.logging import setup_logging


def main():
    parser = argparse.ArgumentParser(description="Check a location against HUBZone boundaries")
    parser.add_argument("latitude", type=float, help="Latitude in degrees")
    parser.add_argument("longitude", type=float, help="Longitude in degrees")
    parser.add_argument("--source", default=HUBZONE_SOURCE, help="HUBZone boundary source")
    parser.add_argument("--radius", type=float, help="Also list zones within this many miles")
    parser.add_argument("--geometry", action="store_true", help="Include zone geometry in output")

    args = parser.parse_args()
    setup_logging(LOG_LEVEL)

    manager = SnapshotManager()
    result = manager.reload(args.source)
    if not result.success:
        print(f"Error: {result.error}", file=sys.stderr)
        sys.exit(1)

    service = LookupService(manager)
    try:
        check = service.check_location(args.latitude, args.longitude)
        output = check.to_dict(include_geometry=args.geometry)
        if args.radius:
            output["nearby"] = service.find_nearby(args.latitude, args.longitude, args.radius).to_dict()
    except HubzoneError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(2)

    print(json.dumps(output, indent=2))
    print("✅ In a HUBZone" if check.is_in_hubzone else "❌ Not in a HUBZone", file=sys.stderr)


if __name__ == "__main__":
    main()
