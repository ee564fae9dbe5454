"""Pytest configuration and fixtures."""
import pytest
import tempfile
import shutil
from pathlib import Path
from hubzone.core.history_store import ReloadHistoryStore
from hubzone.core.handlers import HubzoneHandlers
from hubzone.core.lookup import LookupService
from hubzone.core.snapshots import SnapshotManager


def square(min_lon, min_lat, max_lon, max_lat):
    """Closed GeoJSON ring ([lon, lat] positions) for an axis-aligned box."""
    return [
        [min_lon, min_lat],
        [max_lon, min_lat],
        [max_lon, max_lat],
        [min_lon, max_lat],
        [min_lon, min_lat],
    ]


def feature(zone_id, name, rings, zone_type="qct", geometry_type="Polygon", **properties):
    """GeoJSON feature with HUBZone attributes."""
    props = {
        "name": name,
        "zone_type": zone_type,
        "state": "DC",
        "county": "District of Columbia",
        "status": "active",
    }
    props.update(properties)
    return {
        "type": "Feature",
        "id": zone_id,
        "properties": props,
        "geometry": {"type": geometry_type, "coordinates": rings},
    }


def collection(*features):
    return {"type": "FeatureCollection", "features": list(features)}


@pytest.fixture
def make_square():
    return square


@pytest.fixture
def make_feature():
    return feature


@pytest.fixture
def make_collection():
    return collection


@pytest.fixture
def dc_feature():
    """Census tract polygon covering downtown Washington, DC."""
    return feature(
        "11001010800",
        "Census Tract 108",
        [square(-77.045, 38.900, -77.030, 38.915)],
        geoid="11001010800",
        state="11",
    )


@pytest.fixture
def zone_collection(dc_feature):
    """Mixed fixture dataset: DC, overlapping zones, a hole, an expired zone and an antimeridian zone."""
    return collection(
        dc_feature,
        feature("ovl-qct", "Overlap Tract", [square(10, 10, 11, 11)],
                state="VA", county="Arlington"),
        feature("ovl-disaster", "Overlap Disaster Area", [square(9, 9, 12, 12)],
                zone_type="disaster_area", state="VA", county="Arlington"),
        feature("ovl-qct-big", "Overlap Tract Wide", [square(9.5, 9.5, 11.5, 11.5)],
                state="VA", county="Arlington"),
        feature("hole-zone", "Ring County", [square(20, 20, 24, 24), square(21, 21, 23, 23)],
                zone_type="qnmc", state="MD", county="Ring"),
        feature("expired-zone", "Old Base", [square(30, 30, 31, 31)],
                zone_type="base_closure_area", status="expired", state="MD", county="Old"),
        feature("anti-zone", "Taveuni Indian Lands",
                [[[179.0, -17.0], [-179.0, -17.0], [-179.0, -16.0], [179.0, -16.0], [179.0, -17.0]]],
                zone_type="indian_lands", state="Fiji", county="Taveuni"),
    )


@pytest.fixture
def catalog_25():
    """25 disjoint zones named Zone 01 .. Zone 25."""
    return collection(*[
        feature(f"z{i:02d}", f"Zone {i:02d}", [square(i * 2, 40, i * 2 + 1, 41)],
                state="TX", county=f"County {i:02d}")
        for i in range(1, 26)
    ])


@pytest.fixture
def manager(zone_collection):
    """Snapshot manager with the mixed fixture dataset loaded."""
    manager = SnapshotManager()
    result = manager.reload(zone_collection)
    assert result.success
    return manager


@pytest.fixture
def service(manager):
    return LookupService(manager)


@pytest.fixture
def handlers(service):
    return HubzoneHandlers(service)


@pytest.fixture
def empty_service():
    """Lookup service before any snapshot has been loaded."""
    return LookupService(SnapshotManager())


@pytest.fixture
def temp_history():
    """Create temporary reload history database."""
    temp_dir = tempfile.mkdtemp()
    db_path = Path(temp_dir) / "history.duckdb"
    store = ReloadHistoryStore(db_path)
    yield store
    store.close()
    shutil.rmtree(temp_dir)
