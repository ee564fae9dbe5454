"""Export the zone catalog as GeoJSON or CSV."""
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional

import geopandas as gpd
import pandas as pd
from shapely.geometry import MultiPolygon, Polygon

from hubzone.core.models import Boundary, Snapshot, ZoneRecord
from hubzone.core.normalization import normalize_text

EXPORT_FORMATS = ("geojson", "csv")


def boundary_to_shape(boundary: Boundary) -> MultiPolygon:
    """Build a shapely MultiPolygon (x=lon, y=lat) from a (lat, lon) boundary."""
    polygons = []
    for part in boundary:
        outer = [(lon, lat) for lat, lon in part[0]]
        holes = [[(lon, lat) for lat, lon in ring] for ring in part[1:]]
        polygons.append(Polygon(outer, holes))
    return MultiPolygon(polygons)


def filter_zones(zones: Iterable[ZoneRecord], state: Optional[str] = None,
                 county: Optional[str] = None) -> List[ZoneRecord]:
    """Keep zones in a state (code or name) and/or county, compared normalized."""
    state_key = normalize_text(state) if state else ""
    county_key = normalize_text(county) if county else ""
    selected = []
    for zone in zones:
        if state_key and state_key not in (normalize_text(zone.state), normalize_text(zone.state_name)):
            continue
        if county_key and county_key != normalize_text(zone.county):
            continue
        selected.append(zone)
    return selected


def _zone_row(zone: ZoneRecord) -> dict:
    row = zone.to_dict()
    bbox = row.pop("bbox")
    for key in ("min_lat", "min_lon", "max_lat", "max_lon", "crosses_antimeridian"):
        row[f"bbox_{key}"] = bbox[key]
    return row


def snapshot_to_geodataframe(snapshot: Snapshot, state: Optional[str] = None,
                             county: Optional[str] = None) -> gpd.GeoDataFrame:
    """
    Convert (a filtered part of) a snapshot into a WGS84 GeoDataFrame.

    Args:
        snapshot: Snapshot to export
        state: Optional state code or name filter
        county: Optional county filter

    Returns:
        GeoDataFrame with one row per zone, in catalog order
    """
    zones = filter_zones(snapshot.zones, state, county)
    rows = [_zone_row(zone) for zone in zones]
    geometries = [boundary_to_shape(zone.boundary) for zone in zones]
    return gpd.GeoDataFrame(rows, geometry=geometries, crs="EPSG:4326")


def export_geojson(snapshot: Snapshot, path: Optional[Path] = None,
                   state: Optional[str] = None, county: Optional[str] = None) -> str:
    """
    Export zones as a GeoJSON FeatureCollection.

    Args:
        snapshot: Snapshot to export
        path: Optional file to write
        state: Optional state filter
        county: Optional county filter

    Returns:
        GeoJSON text
    """
    gdf = snapshot_to_geodataframe(snapshot, state, county)
    text = gdf.to_json(default=str)
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
    return text


def export_csv(snapshot: Snapshot, path: Optional[Path] = None,
               state: Optional[str] = None, county: Optional[str] = None) -> str:
    """
    Export zone attributes and bounding boxes as CSV (no geometry).

    Returns:
        CSV text
    """
    zones = filter_zones(snapshot.zones, state, county)
    df = pd.DataFrame([_zone_row(zone) for zone in zones])
    text = df.to_csv(index=False)
    if path is not None:
        Path(path).write_text(text, encoding="utf-8")
    return text


def export_filename(fmt: str, state: Optional[str] = None, county: Optional[str] = None,
                    on: Optional[date] = None) -> str:
    """
    Build an export file name like ``hubzones_dc_district_of_columbia_2024-01-31.geojson``.

    Raises:
        ValueError: If the format is not supported
    """
    if fmt not in EXPORT_FORMATS:
        raise ValueError(f"Unsupported export format: {fmt}")
    on = on or datetime.now(timezone.utc).date()
    parts = ["hubzones"]
    for value in (state, county):
        if value:
            parts.append(normalize_text(value).replace(" ", "_"))
    parts.append(on.isoformat())
    return "_".join(parts) + f".{fmt}"
