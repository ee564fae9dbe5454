"""Tests for catalog export."""
import json
from datetime import date
import pytest
from hubzone.core.export import (
    export_csv,
    export_filename,
    export_geojson,
    filter_zones,
    snapshot_to_geodataframe,
)


def test_snapshot_to_geodataframe(manager):
    gdf = snapshot_to_geodataframe(manager.current())

    assert len(gdf) == 7
    assert gdf.crs == "EPSG:4326"
    dc = gdf[gdf["id"] == "11001010800"].iloc[0]
    assert dc.geometry.covers(dc.geometry.centroid)
    assert dc["state_name"] == "District of Columbia"


def test_hole_survives_export(manager):
    gdf = snapshot_to_geodataframe(manager.current())
    ring_zone = gdf[gdf["id"] == "hole-zone"].iloc[0].geometry
    assert len(ring_zone.geoms[0].interiors) == 1


def test_filter_by_state_and_county(manager):
    zones = manager.current().zones
    assert {z.id for z in filter_zones(zones, state="Virginia")} == {"ovl-qct", "ovl-disaster", "ovl-qct-big"}
    assert {z.id for z in filter_zones(zones, state="md", county="ring")} == {"hole-zone"}
    assert filter_zones(zones, state="TX") == []


def test_export_geojson(manager, tmp_path):
    path = tmp_path / "zones.geojson"
    text = export_geojson(manager.current(), path, state="DC")

    data = json.loads(path.read_text())
    assert data == json.loads(text)
    assert data["type"] == "FeatureCollection"
    assert [f["properties"]["id"] for f in data["features"]] == ["11001010800"]


def test_export_csv(manager):
    text = export_csv(manager.current(), county="Arlington")
    lines = text.strip().splitlines()

    assert len(lines) == 4
    assert "bbox_min_lat" in lines[0]
    assert "geometry" not in lines[0]


def test_export_filename():
    assert export_filename("geojson", on=date(2024, 1, 31)) == "hubzones_2024-01-31.geojson"
    assert export_filename("csv", "DC", "District of Columbia", on=date(2024, 1, 31)) == \
        "hubzones_dc_district_of_columbia_2024-01-31.csv"
    with pytest.raises(ValueError):
        export_filename("shp")
