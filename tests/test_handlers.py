"""Tests for the REST handlers."""
import pytest
from hubzone.core.cancellation import CancellationToken
from hubzone.core.handlers import HubzoneHandlers
from hubzone.core.lookup import LookupService
from hubzone.core.schemas import CheckLocationRequest, ListZonesQuery
from hubzone.core.errors import InvalidCoordinates
from hubzone.core.snapshots import SnapshotManager


def test_list_zones_pagination(catalog_25):
    """GET /api/hubzones?page=2&limit=10 over 25 zones returns zones 11-20."""
    manager = SnapshotManager()
    manager.reload(catalog_25)
    status, body = HubzoneHandlers(LookupService(manager)).list_zones({"page": "2", "limit": "10"})

    assert status == 200
    assert [zone["name"] for zone in body["data"]] == [f"Zone {i:02d}" for i in range(11, 21)]
    assert body["pagination"] == {"page": 2, "limit": 10, "total": 25, "totalPages": 3}


def test_list_zones_omits_geometry(handlers):
    status, body = handlers.list_zones({})
    assert status == 200
    assert body["data"]
    assert all("geometry" not in zone for zone in body["data"])


@pytest.mark.parametrize("params", [
    {"page": "abc", "limit": "xyz"},
    {"page": "-1", "limit": "0"},
    {"page": "", "limit": None},
    None,
])
def test_list_zones_malformed_params_default(handlers, params):
    status, body = handlers.list_zones(params)
    assert status == 200
    assert body["pagination"]["page"] == 1
    assert body["pagination"]["limit"] == 20


def test_list_zones_search(handlers):
    status, body = handlers.list_zones({"search": "taveuni"})
    assert status == 200
    assert [zone["id"] for zone in body["data"]] == ["anti-zone"]


def test_get_zone(handlers):
    status, body = handlers.get_zone("11001010800")
    assert status == 200
    assert body["id"] == "11001010800"
    assert body["zone_type"] == "qualified_census_tract"
    assert body["geometry"]["type"] == "MultiPolygon"
    # GeoJSON order is [lon, lat]
    assert body["geometry"]["coordinates"][0][0][0] == [-77.045, 38.9]


def test_get_zone_not_found(handlers):
    assert handlers.get_zone("nope") == (404, {"error": "HUBZone not found"})


def test_check_location_dc(handlers):
    status, body = handlers.check_location({"latitude": 38.9072, "longitude": -77.0369})
    assert status == 200
    assert body["isInHubzone"] is True
    assert body["coordinates"] == {"latitude": 38.9072, "longitude": -77.0369}
    assert [zone["id"] for zone in body["matchingZones"]] == ["11001010800"]
    assert "geometry" not in body["matchingZones"][0]
    assert body["checkedAt"]


def test_check_location_with_geometry(handlers):
    status, body = handlers.check_location(
        {"latitude": 38.9072, "longitude": -77.0369, "includeGeometry": True}
    )
    assert status == 200
    assert "geometry" in body["matchingZones"][0]


def test_check_location_empty_result(handlers):
    status, body = handlers.check_location({"latitude": 0, "longitude": 0})
    assert status == 200
    assert body["matchingZones"] == []
    assert body["isInHubzone"] is False


@pytest.mark.parametrize("body", [
    {"latitude": 95, "longitude": 0},
    {"latitude": 0, "longitude": -200},
    {"latitude": "abc", "longitude": 0},
    {"latitude": 38.9},
    {"latitude": 10**400, "longitude": 0},
    [],
    None,
])
def test_check_location_invalid(handlers, body):
    assert handlers.check_location(body) == (400, {"error": "Invalid coordinates"})


def test_unavailable_before_first_load(empty_service):
    handlers = HubzoneHandlers(empty_service)
    unavailable = (503, {"error": "HUBZone data unavailable"})

    assert handlers.list_zones({}) == unavailable
    assert handlers.get_zone("11001010800") == unavailable
    assert handlers.check_location({"latitude": 38.9, "longitude": -77.0}) == unavailable


def test_cancelled_request(handlers):
    token = CancellationToken()
    token.cancel()
    status, body = handlers.check_location({"latitude": 10.5, "longitude": 10.5}, cancel_token=token)
    assert status == 499
    assert body["cancelled"] is True


def test_list_zones_query_parsing():
    query = ListZonesQuery.from_params({"page": " 3 ", "limit": "15", "search": "  dc "})
    assert query == ListZonesQuery(page=3, limit=15, search="dc")
    assert ListZonesQuery.from_params({"search": "   "}).search is None


def test_check_location_request_parsing():
    request = CheckLocationRequest.from_body({"latitude": 1, "longitude": 2, "includeGeometry": "yes"})
    assert request == CheckLocationRequest(1.0, 2.0, include_geometry=False)
    with pytest.raises(InvalidCoordinates):
        CheckLocationRequest.from_body({"latitude": True, "longitude": 2})
