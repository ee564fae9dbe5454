"""Data models for HUBZone zones, snapshots and lookup results."""
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Optional, List, Dict, Any, Tuple, Mapping

# Vertices are (latitude, longitude) in WGS84 degrees
Coordinate = Tuple[float, float]
Ring = Tuple[Coordinate, ...]
PolygonRings = Tuple[Ring, ...]   # outer ring first, then holes
Boundary = Tuple[PolygonRings, ...]


def _iso(value: Optional[date]) -> Optional[str]:
    return value.isoformat() if value is not None else None


@dataclass(frozen=True)
class BoundingBox:
    """
    Axis-aligned bounding box in degrees.

    When ``crosses_antimeridian`` is set the box wraps around ±180°, so
    ``min_lon`` is greater than ``max_lon`` and the longitude span is
    ``[min_lon, 180] ∪ [-180, max_lon]``.
    """
    min_lat: float
    min_lon: float
    max_lat: float
    max_lon: float
    crosses_antimeridian: bool = False

    @property
    def lon_width(self) -> float:
        if self.crosses_antimeridian:
            return (180.0 - self.min_lon) + (self.max_lon + 180.0)
        return self.max_lon - self.min_lon

    def lon_spans(self) -> List[Tuple[float, float]]:
        """Longitude intervals that never wrap, one or two of them."""
        if self.crosses_antimeridian:
            return [(self.min_lon, 180.0), (-180.0, self.max_lon)]
        return [(self.min_lon, self.max_lon)]

    def contains(self, lat: float, lon: float) -> bool:
        """Inclusive containment test, treating -180 and 180 as the same meridian."""
        if not (self.min_lat <= lat <= self.max_lat):
            return False
        candidates = (lon, -lon) if abs(lon) == 180.0 else (lon,)
        return any(
            lo <= candidate <= hi
            for candidate in candidates
            for lo, hi in self.lon_spans()
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "min_lat": self.min_lat,
            "min_lon": self.min_lon,
            "max_lat": self.max_lat,
            "max_lon": self.max_lon,
            "crosses_antimeridian": self.crosses_antimeridian,
        }


def boundary_to_geojson(boundary: Boundary) -> Dict[str, Any]:
    """Convert a (lat, lon) boundary into a GeoJSON MultiPolygon geometry."""
    return {
        "type": "MultiPolygon",
        "coordinates": [
            [[[lon, lat] for lat, lon in ring] for ring in part]
            for part in boundary
        ],
    }


@dataclass(frozen=True)
class ZoneSummary:
    """Reduced projection of a zone for list views (no geometry)."""
    id: str
    name: str
    zone_type: str
    state: str
    county: str
    status: str
    state_name: str = ""
    geoid: Optional[str] = None
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    is_redesignated: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "id": self.id,
            "name": self.name,
            "zone_type": self.zone_type,
            "state": self.state,
            "state_name": self.state_name,
            "county": self.county,
            "status": self.status,
            "geoid": self.geoid,
            "effective_date": _iso(self.effective_date),
            "expiration_date": _iso(self.expiration_date),
            "is_redesignated": self.is_redesignated,
        }


@dataclass(frozen=True)
class ZoneRecord:
    """One designated HUBZone polygon and its metadata."""
    id: str
    name: str
    zone_type: str
    state: str
    county: str
    boundary: Boundary = field(repr=False)
    bbox: BoundingBox
    status: str = "active"
    effective_date: Optional[date] = None
    expiration_date: Optional[date] = None
    state_name: str = ""
    geoid: Optional[str] = None
    is_redesignated: bool = False
    grace_period_end_date: Optional[date] = None
    bbox_area_km2: float = 0.0

    def effective_status(self, on: date) -> str:
        """
        Status of the designation on a given day.

        Explicit ``expired`` and ``pending`` statuses are kept as-is. Otherwise a
        future effective date means pending, and a passed expiration date (or
        passed grace period for redesignated areas) means expired.

        Args:
            on: Day to evaluate

        Returns:
            One of active, pending, expired, redesignated
        """
        if self.status in ("expired", "pending"):
            return self.status
        if self.effective_date is not None and self.effective_date > on:
            return "pending"
        if self.expiration_date is not None and self.expiration_date < on:
            return "expired"
        if self.status == "redesignated" and self.grace_period_end_date is not None:
            if self.grace_period_end_date < on:
                return "expired"
        return self.status

    def summary(self) -> ZoneSummary:
        return ZoneSummary(
            id=self.id,
            name=self.name,
            zone_type=self.zone_type,
            state=self.state,
            county=self.county,
            status=self.status,
            state_name=self.state_name,
            geoid=self.geoid,
            effective_date=self.effective_date,
            expiration_date=self.expiration_date,
            is_redesignated=self.is_redesignated,
        )

    def to_dict(self, include_geometry: bool = False) -> Dict[str, Any]:
        """
        Convert to dictionary for serialization.

        Args:
            include_geometry: Include the full boundary as GeoJSON

        Returns:
            Dictionary with zone metadata, bbox and optionally geometry
        """
        data = self.summary().to_dict()
        data["grace_period_end_date"] = _iso(self.grace_period_end_date)
        data["bbox"] = self.bbox.to_dict()
        if include_geometry:
            data["geometry"] = boundary_to_geojson(self.boundary)
        return data


@dataclass(frozen=True)
class LoadWarning:
    """A source record that was dropped during load."""
    record_index: int
    record_id: Optional[str]
    code: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {
            "record_index": self.record_index,
            "record_id": self.record_id,
            "code": self.code,
            "message": self.message,
        }


@dataclass(frozen=True, eq=False)
class Snapshot:
    """
    Immutable, versioned copy of the zone dataset plus its spatial index.

    ``zones`` is in catalog order (name, then id). ``catalog`` is a pandas
    frame aligned with ``zones`` and used for text search.
    """
    version: int
    loaded_at: datetime
    zones: Tuple[ZoneRecord, ...]
    index: Any = field(repr=False)
    source: str = ""
    warnings: Tuple[LoadWarning, ...] = ()
    by_id: Mapping[str, ZoneRecord] = field(default_factory=dict, repr=False)
    catalog: Any = field(default=None, repr=False)

    @property
    def zone_count(self) -> int:
        return len(self.zones)

    def get(self, zone_id: str) -> Optional[ZoneRecord]:
        return self.by_id.get(zone_id)


@dataclass(frozen=True)
class Pagination:
    page: int
    limit: int
    total: int
    total_pages: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "page": self.page,
            "limit": self.limit,
            "total": self.total,
            "totalPages": self.total_pages,
        }


@dataclass(frozen=True)
class ZoneListResult:
    data: Tuple[ZoneSummary, ...]
    pagination: Pagination
    snapshot_version: int = 0

    def to_dict(self) -> Dict[str, Any]:
        return {
            "data": [summary.to_dict() for summary in self.data],
            "pagination": self.pagination.to_dict(),
        }


@dataclass(frozen=True)
class LocationCheckResult:
    """Result of checking one coordinate against the zone catalog."""
    latitude: float
    longitude: float
    matching_zones: Tuple[ZoneRecord, ...]
    checked_at: datetime
    snapshot_version: int = 0

    @property
    def is_in_hubzone(self) -> bool:
        return len(self.matching_zones) > 0

    def to_dict(self, include_geometry: bool = False) -> Dict[str, Any]:
        return {
            "isInHubzone": self.is_in_hubzone,
            "coordinates": {"latitude": self.latitude, "longitude": self.longitude},
            "matchingZones": [z.to_dict(include_geometry=include_geometry) for z in self.matching_zones],
            "checkedAt": self.checked_at.isoformat(),
            "snapshotVersion": self.snapshot_version,
        }


@dataclass(frozen=True)
class NearbyZone:
    zone: ZoneRecord
    distance_miles: float

    def to_dict(self) -> Dict[str, Any]:
        data = self.zone.summary().to_dict()
        data["distance_miles"] = self.distance_miles
        return data


@dataclass(frozen=True)
class NearbySearchResult:
    latitude: float
    longitude: float
    radius_miles: float
    results: Tuple[NearbyZone, ...]

    @property
    def total_count(self) -> int:
        return len(self.results)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "center": {"latitude": self.latitude, "longitude": self.longitude},
            "radiusMiles": self.radius_miles,
            "results": [r.to_dict() for r in self.results],
            "totalCount": self.total_count,
        }
