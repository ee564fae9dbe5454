"""Read-only lookups against the current HUBZone snapshot."""
import math
from collections import Counter
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Tuple, Union

from hubzone.core.cancellation import CancellationToken, Cancelled, is_cancelled
from hubzone.core.config import (
    DEFAULT_PAGE,
    DEFAULT_PAGE_LIMIT,
    MATCH_STATUSES,
    MAX_PAGE_LIMIT,
    MAX_RADIUS_MILES,
    MAX_RADIUS_RESULTS,
    MILES_TO_KM,
)
from hubzone.core.errors import InvalidCoordinates, InvalidRadius, ZoneNotFound
from hubzone.core.geometry import canonical_longitude, contains
from hubzone.core.models import (
    LocationCheckResult,
    NearbySearchResult,
    NearbyZone,
    Pagination,
    ZoneListResult,
    ZoneRecord,
)
from hubzone.core.normalization import ZONE_STATUSES, ZONE_TYPE_PRIORITY, ZONE_TYPES, normalize_text
from hubzone.core.proximity import EARTH_RADIUS_KM, distance_to_boundary_km

KM_PER_DEGREE = EARTH_RADIUS_KM * math.pi / 180.0


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def validate_coordinates(latitude, longitude) -> Tuple[float, float]:
    """
    Check a latitude/longitude pair.

    Args:
        latitude: Degrees in [-90, 90]
        longitude: Degrees in [-180, 180]

    Returns:
        Tuple of (latitude, longitude) as floats

    Raises:
        InvalidCoordinates: If either value is non-numeric, non-finite or out of range
    """
    if not _is_number(latitude) or not _is_number(longitude):
        raise InvalidCoordinates(f"Coordinates must be numbers: {latitude!r}, {longitude!r}")
    try:
        latitude, longitude = float(latitude), float(longitude)
    except OverflowError as e:
        raise InvalidCoordinates(f"Coordinates out of range: {e}") from e
    if not (math.isfinite(latitude) and math.isfinite(longitude)):
        raise InvalidCoordinates(f"Coordinates must be finite: {latitude}, {longitude}")
    if not -90.0 <= latitude <= 90.0:
        raise InvalidCoordinates(f"Latitude out of range: {latitude}")
    if not -180.0 <= longitude <= 180.0:
        raise InvalidCoordinates(f"Longitude out of range: {longitude}")
    return latitude, longitude


def match_sort_key(zone: ZoneRecord):
    """Tie-break for overlapping matches: zone type priority, smaller bbox, id."""
    return (ZONE_TYPE_PRIORITY.get(zone.zone_type, len(ZONE_TYPES)), zone.bbox_area_km2, zone.id)


def _to_int(value, default: int) -> int:
    try:
        return int(value)
    except (TypeError, ValueError):
        return default


class LookupService:
    """
    Catalog search and point lookups over the manager's current snapshot.

    Each call grabs the current snapshot once and works on that reference
    until it returns, so a concurrent reload never changes results mid-call.
    """

    def __init__(
        self,
        manager,
        match_statuses: Iterable[str] = MATCH_STATUSES,
        max_page_limit: int = MAX_PAGE_LIMIT,
    ):
        """
        Initialize lookup service.

        Args:
            manager: SnapshotManager providing ``current()``
            match_statuses: Effective statuses that count as a HUBZone match
            max_page_limit: Upper bound for ``limit`` in catalog pages
        """
        self.manager = manager
        self.match_statuses = frozenset(match_statuses)
        self.max_page_limit = max_page_limit

    def _today(self, as_of: Optional[date]) -> date:
        return as_of or datetime.now(timezone.utc).date()

    def _matches_status(self, zone: ZoneRecord, on: date) -> bool:
        return zone.effective_status(on) in self.match_statuses

    def find_all(
        self,
        page: int = DEFAULT_PAGE,
        limit: int = DEFAULT_PAGE_LIMIT,
        search: Optional[str] = None,
        cancel_token: Optional[CancellationToken] = None,
    ) -> Union[ZoneListResult, Cancelled]:
        """
        Page through the zone catalog, optionally filtered by text.

        Args:
            page: 1-indexed page number (values below 1 mean 1)
            limit: Page size, clamped to [1, max_page_limit]
            search: Case- and accent-insensitive substring matched against
                name, state, county and geoid
            cancel_token: Optional cancellation signal

        Returns:
            ZoneListResult ordered by name then id, or Cancelled
        """
        snapshot = self.manager.current()
        if is_cancelled(cancel_token):
            return Cancelled("find_all", cancel_token.reason)

        page = max(1, _to_int(page, DEFAULT_PAGE))
        limit = min(max(1, _to_int(limit, DEFAULT_PAGE_LIMIT)), self.max_page_limit)

        needle = normalize_text(search) if search else ""
        if needle:
            catalog = snapshot.catalog
            mask = catalog["search_text"].str.contains(needle, regex=False)
            positions = catalog.index[mask].tolist()
        else:
            positions = range(len(snapshot.zones))

        if is_cancelled(cancel_token):
            return Cancelled("find_all", cancel_token.reason)

        total = len(positions)
        start = (page - 1) * limit
        data = tuple(snapshot.zones[p].summary() for p in positions[start:start + limit])

        return ZoneListResult(
            data=data,
            pagination=Pagination(
                page=page,
                limit=limit,
                total=total,
                total_pages=math.ceil(total / limit),
            ),
            snapshot_version=snapshot.version,
        )

    def find_by_id(self, zone_id) -> ZoneRecord:
        """
        Fetch one zone by id.

        Raises:
            ZoneNotFound: If the current snapshot has no such zone
        """
        snapshot = self.manager.current()
        zone = snapshot.get(str(zone_id))
        if zone is None:
            raise ZoneNotFound(str(zone_id))
        return zone

    def check_location(
        self,
        latitude,
        longitude,
        cancel_token: Optional[CancellationToken] = None,
        as_of: Optional[date] = None,
    ) -> Union[LocationCheckResult, Cancelled]:
        """
        Find every zone containing a point.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees
            cancel_token: Optional cancellation signal
            as_of: Day used to evaluate designation status (defaults to today, UTC)

        Returns:
            LocationCheckResult with all matching zones sorted by zone type
            priority, bounding box area and id (possibly empty), or Cancelled

        Raises:
            InvalidCoordinates: On non-numeric, non-finite or out-of-range input
            ServiceUnavailable: If no snapshot has been loaded
        """
        latitude, longitude = validate_coordinates(latitude, longitude)
        snapshot = self.manager.current()
        on = self._today(as_of)

        matches: List[ZoneRecord] = []
        for zone in snapshot.index.candidates(latitude, longitude):
            if is_cancelled(cancel_token):
                return Cancelled("check_location", cancel_token.reason)
            if not self._matches_status(zone, on):
                continue
            if contains((latitude, longitude), zone.boundary):
                matches.append(zone)

        if is_cancelled(cancel_token):
            return Cancelled("check_location", cancel_token.reason)

        matches.sort(key=match_sort_key)
        return LocationCheckResult(
            latitude=latitude,
            longitude=longitude,
            matching_zones=tuple(matches),
            checked_at=datetime.now(timezone.utc),
            snapshot_version=snapshot.version,
        )

    def find_nearby(
        self,
        latitude,
        longitude,
        radius_miles,
        cancel_token: Optional[CancellationToken] = None,
        as_of: Optional[date] = None,
    ) -> Union[NearbySearchResult, Cancelled]:
        """
        Find qualifying zones within a radius of a point.

        Args:
            latitude: Latitude in degrees
            longitude: Longitude in degrees
            radius_miles: Search radius, capped at MAX_RADIUS_MILES
            cancel_token: Optional cancellation signal
            as_of: Day used to evaluate designation status

        Returns:
            NearbySearchResult ordered by distance to the zone boundary
            (0 when inside), at most MAX_RADIUS_RESULTS entries, or Cancelled

        Raises:
            InvalidCoordinates: On invalid latitude/longitude
            InvalidRadius: If the radius is not a positive finite number
        """
        latitude, longitude = validate_coordinates(latitude, longitude)
        if not _is_number(radius_miles) or not math.isfinite(radius_miles) or radius_miles <= 0:
            raise InvalidRadius(f"Radius must be a positive number of miles: {radius_miles!r}")
        radius_miles = min(float(radius_miles), MAX_RADIUS_MILES)

        snapshot = self.manager.current()
        on = self._today(as_of)
        radius_km = radius_miles * MILES_TO_KM

        delta_lat = radius_km / KM_PER_DEGREE
        min_lat = max(-90.0, latitude - delta_lat)
        max_lat = min(90.0, latitude + delta_lat)
        cos_lat = math.cos(math.radians(max(abs(min_lat), abs(max_lat))))
        delta_lon = delta_lat / cos_lat if cos_lat > 1e-12 else 180.0
        if delta_lon >= 180.0:
            min_lon, max_lon = -180.0, 180.0
        else:
            min_lon = canonical_longitude(longitude - delta_lon)
            max_lon = canonical_longitude(longitude + delta_lon)

        results: List[NearbyZone] = []
        for zone in snapshot.index.candidates_in_bbox(min_lat, min_lon, max_lat, max_lon):
            if is_cancelled(cancel_token):
                return Cancelled("find_nearby", cancel_token.reason)
            if not self._matches_status(zone, on):
                continue
            distance_km = distance_to_boundary_km(latitude, longitude, zone.boundary)
            if distance_km <= radius_km:
                results.append(NearbyZone(zone, round(distance_km / MILES_TO_KM, 2)))

        if is_cancelled(cancel_token):
            return Cancelled("find_nearby", cancel_token.reason)

        results.sort(key=lambda r: (r.distance_miles, match_sort_key(r.zone)))
        return NearbySearchResult(
            latitude=latitude,
            longitude=longitude,
            radius_miles=radius_miles,
            results=tuple(results[:MAX_RADIUS_RESULTS]),
        )

    def statistics(self, as_of: Optional[date] = None) -> Dict[str, Any]:
        """
        Summary counts for the current snapshot.

        Returns:
            Dictionary with totals by zone type and by effective status
        """
        snapshot = self.manager.current()
        on = self._today(as_of)

        by_type = Counter(zone.zone_type for zone in snapshot.zones)
        by_status = Counter(zone.effective_status(on) for zone in snapshot.zones)

        return {
            "snapshot_version": snapshot.version,
            "loaded_at": snapshot.loaded_at.isoformat(),
            "source": snapshot.source,
            "total_zones": snapshot.zone_count,
            "designated_zones": sum(by_status[s] for s in self.match_statuses),
            "dropped_records": len(snapshot.warnings),
            "by_zone_type": {zone_type: by_type.get(zone_type, 0) for zone_type in ZONE_TYPES},
            "by_status": {status: by_status.get(status, 0) for status in ZONE_STATUSES},
        }
