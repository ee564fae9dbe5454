"""Distance calculations between query points and zone boundaries."""
import math
from typing import Sequence, Tuple

from hubzone.core.geometry import contains, wrap_longitude_delta
from hubzone.core.models import Boundary, Coordinate

EARTH_RADIUS_KM = 6371.0


def calculate_distance_km(lon1: float, lat1: float, lon2: float, lat2: float) -> float:
    """
    Calculate distance between two points using Haversine formula.

    Args:
        lon1: Longitude of first point
        lat1: Latitude of first point
        lon2: Longitude of second point
        lat2: Latitude of second point

    Returns:
        Distance in kilometers
    """
    lat1_rad = math.radians(lat1)
    lat2_rad = math.radians(lat2)
    dlat = math.radians(lat2 - lat1)
    dlon = math.radians(lon2 - lon1)

    a = math.sin(dlat/2)**2 + math.cos(lat1_rad) * math.cos(lat2_rad) * math.sin(dlon/2)**2
    c = 2 * math.asin(min(1.0, math.sqrt(a)))

    return EARTH_RADIUS_KM * c


def _segment_distance_km(origin: Coordinate, a: Coordinate, b: Coordinate) -> float:
    """
    Distance from origin to segment a-b in a local equirectangular plane.

    Accurate for the short distances radius search works with; longitudes are
    scaled by the cosine of the origin's latitude and measured the short way
    around the antimeridian.
    """
    lat0, lon0 = origin
    scale = math.cos(math.radians(lat0))

    def project(vertex: Coordinate) -> Tuple[float, float]:
        lat, lon = vertex
        return (
            math.radians(wrap_longitude_delta(lon - lon0)) * scale * EARTH_RADIUS_KM,
            math.radians(lat - lat0) * EARTH_RADIUS_KM,
        )

    ax, ay = project(a)
    bx, by = project(b)
    dx, dy = bx - ax, by - ay
    length_sq = dx * dx + dy * dy
    if length_sq == 0.0:
        t = 0.0
    else:
        t = max(0.0, min(1.0, -(ax * dx + ay * dy) / length_sq))
    return math.hypot(ax + t * dx, ay + t * dy)


def _ring_distance_km(origin: Coordinate, ring: Sequence[Coordinate]) -> float:
    edges = zip(ring, tuple(ring[1:]) + (ring[0],))
    return min(_segment_distance_km(origin, a, b) for a, b in edges)


def distance_to_boundary_km(lat: float, lon: float, boundary: Boundary) -> float:
    """
    Shortest distance from a point to a zone boundary.

    Args:
        lat: Latitude of query point
        lon: Longitude of query point
        boundary: Zone boundary parts

    Returns:
        0.0 when the point is inside the zone, otherwise the distance in km
        to the nearest edge
    """
    if contains((lat, lon), boundary):
        return 0.0

    best = math.inf
    for part in boundary:
        for ring in part:
            best = min(best, _ring_distance_km((lat, lon), ring))
    return best
