"""R-tree index over zone bounding boxes."""
from typing import Iterable, List, Sequence, Tuple

import shapely
from shapely import STRtree
from shapely.geometry import Point

from hubzone.core.models import ZoneRecord
from hubzone.utils.timing import time_function


class SpatialIndex:
    """
    Read-only STR-packed R-tree of zone bounding boxes.

    Zones whose box wraps the antimeridian are inserted as two boxes that map
    back to the same zone. ``candidates`` returns every zone whose box contains
    the query point (edges inclusive); exact containment is left to the
    point-in-polygon test.
    """

    def __init__(self, zones: Sequence[ZoneRecord], boxes: Sequence, owners: Sequence[int]):
        self._zones: Tuple[ZoneRecord, ...] = tuple(zones)
        self._owners: Tuple[int, ...] = tuple(owners)
        self._tree = STRtree(list(boxes))

    @classmethod
    @time_function
    def build(cls, zones: Iterable[ZoneRecord]) -> "SpatialIndex":
        """
        Build the index for a set of zones.

        Args:
            zones: Zones in the order candidates should be reported

        Returns:
            SpatialIndex
        """
        zones = tuple(zones)
        boxes = []
        owners: List[int] = []
        for position, zone in enumerate(zones):
            for min_lon, max_lon in zone.bbox.lon_spans():
                # shapely boxes are (xmin, ymin, xmax, ymax) = (lon, lat, lon, lat)
                boxes.append(shapely.box(min_lon, zone.bbox.min_lat, max_lon, zone.bbox.max_lat))
                owners.append(position)
        return cls(zones, boxes, owners)

    def __len__(self) -> int:
        return len(self._zones)

    def _resolve(self, hits) -> List[ZoneRecord]:
        positions = sorted({self._owners[int(i)] for i in hits})
        return [self._zones[p] for p in positions]

    def candidates(self, lat: float, lon: float) -> List[ZoneRecord]:
        """
        Zones whose bounding box contains the point.

        Args:
            lat: Latitude in degrees
            lon: Longitude in degrees

        Returns:
            Candidate zones in index order, without duplicates
        """
        if not self._zones:
            return []
        hits = set(int(i) for i in self._tree.query(Point(lon, lat)))
        # ±180 is one meridian; boxes store whichever side the data used
        if abs(lon) == 180.0:
            hits.update(int(i) for i in self._tree.query(Point(-lon, lat)))
        return self._resolve(hits)

    def candidates_in_bbox(self, min_lat: float, min_lon: float,
                           max_lat: float, max_lon: float) -> List[ZoneRecord]:
        """
        Zones whose bounding box intersects a query box.

        A query box with min_lon > max_lon is taken to wrap the antimeridian.
        """
        if not self._zones:
            return []
        if min_lon > max_lon:
            spans = [(min_lon, 180.0), (-180.0, max_lon)]
        else:
            spans = [(min_lon, max_lon)]
        hits = set()
        for lo, hi in spans:
            hits.update(int(i) for i in self._tree.query(shapely.box(lo, min_lat, hi, max_lat)))
        return self._resolve(hits)
