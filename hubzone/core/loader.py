"""Parse raw HUBZone boundary data into validated zone records and snapshots."""
import math
from datetime import date, datetime, timezone
from types import MappingProxyType
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from shapely.geometry import LinearRing

from hubzone.core.errors import LoadError
from hubzone.core.geometry import (
    bbox_area_km2,
    close_ring,
    compute_bounding_box,
    distinct_vertex_count,
    part_frame,
    ring_is_closed,
)
from hubzone.core.models import LoadWarning, PolygonRings, Ring, Snapshot, ZoneRecord
from hubzone.core.normalization import (
    clean_label,
    map_zone_status,
    map_zone_type,
    normalize_state,
    normalize_text,
)
from hubzone.core.sources import read_source
from hubzone.core.spatial_index import SpatialIndex
from hubzone.utils.logging import log_structured

# Property names seen across SBA, Census TIGER/Line and converted exports
ID_FIELDS = ["id", "hubzone_id", "ID"]
GEOID_FIELDS = ["geoid", "GEOID", "external_id", "fips_code"]
NAME_FIELDS = ["name", "NAME", "Name", "NAMELSAD"]
TYPE_FIELDS = ["zone_type", "zoneType", "type", "designation_type", "TYPE"]
STATE_FIELDS = ["state", "STATE", "State", "STATEFP", "state_fips"]
COUNTY_FIELDS = ["county", "COUNTY", "County", "COUNTYFP", "county_name"]
STATUS_FIELDS = ["status", "STATUS", "Status"]
EFFECTIVE_FIELDS = ["effective_date", "effectiveDate", "designation_date"]
EXPIRATION_FIELDS = ["expiration_date", "expirationDate"]
GRACE_FIELDS = ["grace_period_end_date", "gracePeriodEndDate"]
REDESIGNATED_FIELDS = ["is_redesignated", "isRedesignated"]

MIN_DISTINCT_VERTICES = 3


class RecordRejected(Exception):
    """A single source record failed validation."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code
        self.message = message


def _first_field(properties: Dict[str, Any], fields: List[str]):
    for field in fields:
        value = properties.get(field)
        if value is not None and value != "":
            return value
    return None


def _parse_date(value, field: str) -> Optional[date]:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return date.fromisoformat(str(value).strip()[:10])
    except ValueError:
        raise RecordRejected("invalid_date", f"{field} is not an ISO date: {value!r}")


def _parse_bool(value) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in ("true", "1", "yes", "y", "t")
    return bool(value)


def _parse_position(position) -> Tuple[float, float]:
    """GeoJSON [lon, lat(, alt)] -> validated (lat, lon)."""
    if not isinstance(position, (list, tuple)) or len(position) < 2:
        raise RecordRejected("malformed_coordinates", f"position is not [lon, lat]: {position!r}")

    lon, lat = position[0], position[1]
    for value in (lon, lat):
        if isinstance(value, bool) or not isinstance(value, (int, float)):
            raise RecordRejected("malformed_coordinates", f"non-numeric coordinate: {value!r}")
        if not math.isfinite(value):
            raise RecordRejected("non_finite_coordinate", f"coordinate is NaN or infinite: {value!r}")

    lat, lon = float(lat), float(lon)
    if not -90.0 <= lat <= 90.0:
        raise RecordRejected("coordinate_out_of_range", f"latitude out of range: {lat}")
    if not -180.0 <= lon <= 180.0:
        raise RecordRejected("coordinate_out_of_range", f"longitude out of range: {lon}")
    return lat, lon


class DatasetLoader:
    """
    Build validated snapshots from GeoJSON-style zone features.

    Records that fail validation are dropped with a structured warning; only an
    unreadable source as a whole raises LoadError.
    """

    def __init__(self, close_rings: bool = False):
        """
        Initialize loader.

        Args:
            close_rings: Accept rings whose last vertex differs from the first
                and close them, instead of rejecting the record
        """
        self.close_rings = close_rings

    def load(self, source, version: int = 0) -> Snapshot:
        """
        Load a snapshot from a source.

        Args:
            source: FeatureCollection dict, GeoDataFrame, local path or URL
            version: Version number stamped on the snapshot

        Returns:
            Snapshot with all valid zones and their spatial index

        Raises:
            LoadError: If the source as a whole cannot be read
        """
        collection, label = read_source(source)
        zones, warnings = self.parse_collection(collection, source_label=label)
        return build_snapshot(zones, warnings=warnings, source=label, version=version)

    def parse_collection(self, collection, source_label: str = "") -> Tuple[List[ZoneRecord], List[LoadWarning]]:
        """
        Validate every feature of a FeatureCollection.

        Args:
            collection: Parsed GeoJSON FeatureCollection
            source_label: Source description used in log entries

        Returns:
            Tuple of (valid zones, warnings for dropped records)

        Raises:
            LoadError: If the container is malformed or no record is valid
        """
        if not isinstance(collection, dict) or collection.get("type") != "FeatureCollection":
            raise LoadError("Source is not a GeoJSON FeatureCollection", source=source_label)
        features = collection.get("features")
        if not isinstance(features, list):
            raise LoadError("FeatureCollection has no features array", source=source_label)

        zones: List[ZoneRecord] = []
        warnings: List[LoadWarning] = []
        seen_ids = set()

        for index, feature in enumerate(features):
            record_id = None
            try:
                if not isinstance(feature, dict):
                    raise RecordRejected("malformed_feature", "feature is not an object")
                record_id = self._record_id(feature)
                if record_id in seen_ids:
                    raise RecordRejected("duplicate_id", f"duplicate zone id {record_id}")
                zone = self.parse_feature(feature)
            except RecordRejected as rejection:
                warning = LoadWarning(index, record_id, rejection.code, rejection.message)
                warnings.append(warning)
                log_structured(
                    "warning",
                    "Dropped invalid zone record",
                    source=source_label,
                    **warning.to_dict()
                )
                continue
            seen_ids.add(zone.id)
            zones.append(zone)

        if features and not zones:
            raise LoadError(
                f"No valid zone records among {len(features)} features",
                source=source_label,
            )

        log_structured(
            "info",
            "Parsed zone records",
            source=source_label,
            features=len(features),
            valid=len(zones),
            dropped=len(warnings),
        )
        return zones, warnings

    @staticmethod
    def _record_id(feature: Dict[str, Any]) -> Optional[str]:
        properties = feature.get("properties") or {}
        value = feature.get("id")
        if value is None or value == "":
            value = _first_field(properties, ID_FIELDS)
        if value is None:
            value = _first_field(properties, GEOID_FIELDS)
        if value is None:
            raise RecordRejected("missing_id", "feature has no id or geoid")
        return str(value).strip()

    def parse_feature(self, feature: Dict[str, Any]) -> ZoneRecord:
        """
        Validate one feature and build its ZoneRecord.

        Raises:
            RecordRejected: If any field or ring fails validation
        """
        properties = feature.get("properties") or {}
        if not isinstance(properties, dict):
            raise RecordRejected("malformed_feature", "properties is not an object")

        zone_id = self._record_id(feature)
        geoid = _first_field(properties, GEOID_FIELDS)
        geoid = clean_label(geoid) if geoid is not None else None

        raw_type = _first_field(properties, TYPE_FIELDS)
        zone_type = map_zone_type(raw_type)
        if zone_type is None:
            raise RecordRejected("unknown_zone_type", f"unknown zone type: {raw_type!r}")

        raw_status = _first_field(properties, STATUS_FIELDS)
        status = map_zone_status(raw_status)
        if status is None:
            raise RecordRejected("unknown_status", f"unknown status: {raw_status!r}")

        state, state_name = normalize_state(_first_field(properties, STATE_FIELDS))
        county = clean_label(_first_field(properties, COUNTY_FIELDS))

        name = clean_label(_first_field(properties, NAME_FIELDS))
        if not name:
            name = f"Census Tract {geoid[-6:]}" if geoid else zone_id

        boundary = self.parse_geometry(feature.get("geometry"))
        bbox = compute_bounding_box(boundary)

        return ZoneRecord(
            id=zone_id,
            name=name,
            zone_type=zone_type,
            state=state,
            county=county,
            boundary=boundary,
            bbox=bbox,
            status=status,
            effective_date=_parse_date(_first_field(properties, EFFECTIVE_FIELDS), "effective_date"),
            expiration_date=_parse_date(_first_field(properties, EXPIRATION_FIELDS), "expiration_date"),
            state_name=state_name,
            geoid=geoid,
            is_redesignated=(
                _parse_bool(_first_field(properties, REDESIGNATED_FIELDS))
                or status == "redesignated"
                or zone_type == "redesignated"
            ),
            grace_period_end_date=_parse_date(_first_field(properties, GRACE_FIELDS), "grace_period_end_date"),
            bbox_area_km2=bbox_area_km2(bbox),
        )

    def parse_geometry(self, geometry) -> Tuple[PolygonRings, ...]:
        """
        Convert a GeoJSON Polygon/MultiPolygon into validated (lat, lon) parts.

        Raises:
            RecordRejected: On unsupported geometry or invalid rings
        """
        if not isinstance(geometry, dict):
            raise RecordRejected("missing_geometry", "feature has no geometry")

        geometry_type = geometry.get("type")
        coordinates = geometry.get("coordinates")
        if geometry_type == "Polygon":
            polygons = [coordinates]
        elif geometry_type == "MultiPolygon":
            polygons = coordinates
        else:
            raise RecordRejected("unsupported_geometry", f"unsupported geometry type: {geometry_type!r}")

        if not isinstance(polygons, list) or not polygons:
            raise RecordRejected("malformed_coordinates", "geometry has no polygons")

        parts = []
        for polygon in polygons:
            if not isinstance(polygon, list) or not polygon:
                raise RecordRejected("malformed_coordinates", "polygon has no rings")
            part = tuple(self.parse_ring(ring) for ring in polygon)
            validate_part(part)
            parts.append(part)
        return tuple(parts)

    def parse_ring(self, ring) -> Ring:
        if not isinstance(ring, list):
            raise RecordRejected("malformed_coordinates", "ring is not an array of positions")

        vertices = tuple(_parse_position(position) for position in ring)
        if distinct_vertex_count(vertices) < MIN_DISTINCT_VERTICES:
            raise RecordRejected(
                "too_few_vertices",
                f"ring has fewer than {MIN_DISTINCT_VERTICES} distinct vertices",
            )
        if not ring_is_closed(vertices):
            if not self.close_rings:
                raise RecordRejected("ring_not_closed", "ring first and last vertices differ")
            vertices = close_ring(vertices)
        return vertices


def validate_part(part: PolygonRings):
    """
    Reject polygon parts with self-intersecting rings.

    Rings are checked in the part's own longitude frame so antimeridian
    polygons are not mistaken for self-intersecting ones.
    """
    rings, _ = part_frame(part)
    for ring_number, ring in enumerate(rings):
        if not LinearRing([(lon, lat) for lat, lon in ring]).is_simple:
            kind = "outer ring" if ring_number == 0 else f"hole {ring_number}"
            raise RecordRejected("self_intersection", f"{kind} is self-intersecting")


def _catalog_frame(zones: Sequence[ZoneRecord]) -> pd.DataFrame:
    """Search frame aligned with the snapshot's zone order."""
    rows = []
    for zone in zones:
        rows.append({
            "id": zone.id,
            "name": zone.name,
            "zone_type": zone.zone_type,
            "status": zone.status,
            "state": zone.state,
            "county": zone.county,
            "search_text": " | ".join(
                normalize_text(value)
                for value in (zone.name, zone.state, zone.state_name, zone.county, zone.geoid or "")
            ),
        })
    return pd.DataFrame(
        rows,
        columns=["id", "name", "zone_type", "status", "state", "county", "search_text"],
    )


def build_snapshot(
    zones: Iterable[ZoneRecord],
    warnings: Iterable[LoadWarning] = (),
    source: str = "",
    version: int = 0,
    loaded_at: Optional[datetime] = None,
) -> Snapshot:
    """
    Assemble an immutable snapshot: catalog order, id table, search frame, index.

    Args:
        zones: Validated zone records
        warnings: Warnings for dropped records
        source: Source description
        version: Snapshot version
        loaded_at: Load timestamp (defaults to now, UTC)

    Returns:
        Snapshot
    """
    ordered = tuple(sorted(zones, key=lambda z: (normalize_text(z.name), z.name, z.id)))
    return Snapshot(
        version=version,
        loaded_at=loaded_at or datetime.now(timezone.utc),
        zones=ordered,
        index=SpatialIndex.build(ordered),
        source=source,
        warnings=tuple(warnings),
        by_id=MappingProxyType({zone.id: zone for zone in ordered}),
        catalog=_catalog_frame(ordered),
    )
