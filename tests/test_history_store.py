"""Tests for DuckDB reload history."""
from hubzone.core.models import LoadWarning
from hubzone.core.snapshots import ReloadResult


def test_record_and_read_reloads(temp_history):
    """Test storing reload outcomes."""
    temp_history.record_reload(ReloadResult(
        success=True, version=1, source="a.geojson", total_zones=10, new=10,
        warnings=(LoadWarning(3, "z3", "ring_not_closed", "ring first and last vertices differ"),),
        dropped_records=1,
    ))
    temp_history.record_reload(ReloadResult(success=False, version=1, source="b.geojson", error="boom"))

    reloads = temp_history.recent_reloads()
    assert [r["source"] for r in reloads] == ["b.geojson", "a.geojson"]
    assert reloads[0]["error"] == "boom"
    assert reloads[1]["warnings"][0]["code"] == "ring_not_closed"

    last = temp_history.last_successful()
    assert last["version"] == 1
    assert last["new_zones"] == 10
    assert last["dropped_records"] == 1


def test_recent_reloads_limit(temp_history):
    for version in range(1, 6):
        temp_history.record_reload(ReloadResult(success=True, version=version, source="x"))
    assert [r["version"] for r in temp_history.recent_reloads(limit=2)] == [5, 4]


def test_empty_history(temp_history):
    assert temp_history.recent_reloads() == []
    assert temp_history.last_successful() is None
    assert temp_history.get_stats() == {"total_reloads": 0, "successful_reloads": 0, "failed_reloads": 0}
