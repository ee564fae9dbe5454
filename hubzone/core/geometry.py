"""
Point-in-polygon and bounding box geometry for zone boundaries.

Pure functions over (lat, lon) rings. Longitude is treated as the x axis and
latitude as the y axis of a plate carrée plane; no reprojection is done.

Boundary policy: a point on an edge or vertex of any ring (outer or hole) is
inside the polygon, within ``BOUNDARY_TOLERANCE_DEG``.

Antimeridian policy: a ring with an edge spanning more than 180° of longitude
is taken to cross ±180°. Such polygons are unwrapped into a continuous
longitude frame anchored at the outer ring's first vertex (its reference
meridian), and query points are shifted by ±360° into that frame.
"""
import math
from typing import List, Sequence, Tuple

from pyproj import Geod

from hubzone.core.models import BoundingBox, Boundary, Coordinate, PolygonRings, Ring

# ~0.1 mm at the equator
BOUNDARY_TOLERANCE_DEG = 1e-9

OUTSIDE = -1
ON_BOUNDARY = 0
INSIDE = 1

_GEOD = Geod(ellps="WGS84")


def canonical_longitude(lon: float) -> float:
    """Wrap a longitude into [-180, 180)."""
    return ((lon + 180.0) % 360.0) - 180.0


def wrap_longitude_delta(delta: float) -> float:
    """Shortest signed longitude difference, in [-180, 180)."""
    return ((delta + 180.0) % 360.0) - 180.0


def ring_is_closed(ring: Sequence[Coordinate]) -> bool:
    return len(ring) > 1 and tuple(ring[0]) == tuple(ring[-1])


def close_ring(ring: Sequence[Coordinate]) -> Ring:
    ring = tuple(tuple(v) for v in ring)
    if ring and not ring_is_closed(ring):
        ring = ring + (ring[0],)
    return ring


def distinct_vertex_count(ring: Sequence[Coordinate]) -> int:
    return len({tuple(v) for v in ring})


def ring_crosses_antimeridian(ring: Sequence[Coordinate]) -> bool:
    """True when any edge of the ring spans more than 180° of longitude."""
    return any(
        abs(b[1] - a[1]) > 180.0
        for a, b in zip(ring, ring[1:])
    )


def part_crosses_antimeridian(part: PolygonRings) -> bool:
    return any(ring_crosses_antimeridian(ring) for ring in part)


def unwrap_ring(ring: Sequence[Coordinate], reference_lon: float) -> Ring:
    """
    Rewrite ring longitudes as a continuous sequence near ``reference_lon``.

    The first vertex is moved to within 180° of the reference meridian and
    each following vertex to within 180° of its predecessor, so edges never
    jump across ±180°.
    """
    if not ring:
        return ()
    lat0, lon0 = ring[0]
    current = reference_lon + wrap_longitude_delta(lon0 - reference_lon)
    unwrapped = [(lat0, current)]
    previous = lon0
    for lat, lon in ring[1:]:
        current += wrap_longitude_delta(lon - previous)
        previous = lon
        unwrapped.append((lat, current))
    return tuple(unwrapped)


def part_frame(part: PolygonRings) -> Tuple[PolygonRings, bool]:
    """
    Rings of a polygon part in the longitude frame used for testing.

    Returns:
        Tuple of (rings, crosses_antimeridian). Rings are unchanged unless the
        part crosses the antimeridian.
    """
    if not part_crosses_antimeridian(part):
        return part, False
    reference_lon = part[0][0][1]
    return tuple(unwrap_ring(ring, reference_lon) for ring in part), True


def shift_into_frame(lon: float, ring: Ring) -> float:
    """Pick lon, lon+360 or lon-360, whichever falls in the ring's longitude range."""
    lons = [v[1] for v in ring]
    lo, hi = min(lons), max(lons)
    for candidate in (lon, lon + 360.0, lon - 360.0):
        if lo - BOUNDARY_TOLERANCE_DEG <= candidate <= hi + BOUNDARY_TOLERANCE_DEG:
            return candidate
    return lon


def _on_segment(lat: float, lon: float, a: Coordinate, b: Coordinate,
                tolerance: float = BOUNDARY_TOLERANCE_DEG) -> bool:
    lat1, lon1 = a
    lat2, lon2 = b
    if lon < min(lon1, lon2) - tolerance or lon > max(lon1, lon2) + tolerance:
        return False
    if lat < min(lat1, lat2) - tolerance or lat > max(lat1, lat2) + tolerance:
        return False
    length = math.hypot(lon2 - lon1, lat2 - lat1)
    if length == 0.0:
        return abs(lat - lat1) <= tolerance and abs(lon - lon1) <= tolerance
    cross = (lon2 - lon1) * (lat - lat1) - (lat2 - lat1) * (lon - lon1)
    return abs(cross) <= tolerance * length


def ring_position(point: Coordinate, ring: Sequence[Coordinate]) -> int:
    """
    Classify a point against a single ring using the even-odd rule.

    Args:
        point: (lat, lon) in the same longitude frame as the ring
        ring: Ring vertices; closed or implicitly closed

    Returns:
        INSIDE, ON_BOUNDARY or OUTSIDE
    """
    lat, lon = point
    inside = False
    edges = zip(ring, tuple(ring[1:]) + (ring[0],))
    for a, b in edges:
        if _on_segment(lat, lon, a, b):
            return ON_BOUNDARY
        lat1, lon1 = a
        lat2, lon2 = b
        if (lat1 > lat) != (lat2 > lat):
            crossing_lon = lon1 + (lat - lat1) * (lon2 - lon1) / (lat2 - lat1)
            if lon < crossing_lon:
                inside = not inside
    return INSIDE if inside else OUTSIDE


def part_contains(point: Coordinate, part: PolygonRings) -> bool:
    """True if the point is inside the outer ring and not strictly inside a hole."""
    rings, crosses = part_frame(part)
    lat, lon = point
    # +180 and -180 are the same meridian
    candidates = (lon, -lon) if abs(lon) == 180.0 else (lon,)
    for candidate in candidates:
        if crosses:
            candidate = shift_into_frame(candidate, rings[0])
        test_point = (lat, candidate)

        outer = ring_position(test_point, rings[0])
        if outer == OUTSIDE:
            continue
        if outer == ON_BOUNDARY:
            return True
        if not any(ring_position(test_point, hole) == INSIDE for hole in rings[1:]):
            return True
    return False


def contains(point: Coordinate, boundary: Boundary) -> bool:
    """
    Test whether a (lat, lon) point lies inside a zone boundary.

    Args:
        point: (lat, lon) in degrees
        boundary: Polygon parts, each an outer ring followed by hole rings

    Returns:
        True if the point is inside or on the boundary of any part
    """
    return any(part_contains(point, part) for part in boundary)


def _longitude_extent(intervals: List[Tuple[float, float]]) -> Tuple[float, float]:
    """
    Smallest arc of the circle covering every (start, end) longitude interval.

    Returns:
        (start, end) with start in [-180, 180); end may exceed 180 when the
        arc wraps past the antimeridian.
    """
    spans = sorted(
        (canonical_longitude(start), canonical_longitude(start) + (end - start))
        for start, end in intervals
    )
    merged: List[List[float]] = []
    for start, end in spans:
        if merged and start <= merged[-1][1]:
            merged[-1][1] = max(merged[-1][1], end)
        else:
            merged.append([start, end])

    # An interval running past +180 may overlap the first ones again
    while len(merged) > 1 and merged[-1][1] >= merged[0][0] + 360.0:
        last_start, last_end = merged.pop()
        merged[0] = [last_start, max(last_end, merged[0][1] + 360.0)]
        merged.sort()

    if len(merged) == 1:
        return merged[0][0], merged[0][1]

    # Drop the largest uncovered gap; the arc is everything else
    best_gap, best_index = -1.0, 0
    for i, (_, end) in enumerate(merged):
        next_start = merged[(i + 1) % len(merged)][0]
        if i == len(merged) - 1:
            next_start += 360.0
        gap = next_start - end
        if gap > best_gap:
            best_gap, best_index = gap, i

    arc_start = merged[(best_index + 1) % len(merged)][0]
    return canonical_longitude(arc_start), canonical_longitude(arc_start) + (360.0 - best_gap)


def compute_bounding_box(boundary: Boundary) -> BoundingBox:
    """
    Tight bounding box of a boundary, flagging antimeridian wrap.

    Args:
        boundary: Polygon parts of (lat, lon) rings

    Returns:
        BoundingBox; for wrapping boxes min_lon > max_lon
    """
    lats = [lat for part in boundary for ring in part for lat, _ in ring]
    intervals = []
    for part in boundary:
        rings, _ = part_frame(part)
        lons = [lon for ring in rings for _, lon in ring]
        intervals.append((min(lons), max(lons)))

    start, end = _longitude_extent(intervals)
    if end - start >= 360.0:
        return BoundingBox(min(lats), -180.0, max(lats), 180.0)
    if end > 180.0:
        return BoundingBox(min(lats), start, max(lats), end - 360.0, crosses_antimeridian=True)
    return BoundingBox(min(lats), start, max(lats), end)


def bbox_area_km2(bbox: BoundingBox) -> float:
    """Geodesic area of a bounding box on the WGS84 ellipsoid, in km²."""
    min_lon = bbox.min_lon
    max_lon = bbox.min_lon + bbox.lon_width
    lons = [min_lon, max_lon, max_lon, min_lon]
    lats = [bbox.min_lat, bbox.min_lat, bbox.max_lat, bbox.max_lat]
    area, _ = _GEOD.polygon_area_perimeter(lons, lats)
    return abs(area) / 1_000_000.0
