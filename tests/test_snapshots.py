"""Tests for snapshot publication, reloads and scheduled refresh."""
import copy
import logging
import time
import pytest
from hubzone.core.errors import ServiceUnavailable
from hubzone.core.loader import DatasetLoader
from hubzone.core.snapshots import RefreshScheduler, SnapshotManager


def test_reload_publishes_snapshot(zone_collection):
    """Test first reload."""
    manager = SnapshotManager()
    assert not manager.is_ready

    result = manager.reload(zone_collection)

    assert result.success
    assert result.version == 1
    assert result.total_zones == 7
    assert result.new == 7
    assert result.updated == 0
    assert result.removed == 0
    assert result.processing_ms >= 0
    assert manager.is_ready
    assert manager.current().version == 1


def test_reload_statistics(manager, zone_collection, make_feature, make_square):
    changed = copy.deepcopy(zone_collection)
    changed["features"][0]["properties"]["name"] = "Census Tract 108 (renamed)"
    changed["features"] = [f for f in changed["features"] if f["id"] != "expired-zone"]
    changed["features"].append(make_feature("new-zone", "New Tract", [make_square(50, 50, 51, 51)]))

    result = manager.reload(changed)

    assert result.success
    assert result.version == 2
    assert (result.new, result.updated, result.removed) == (1, 1, 1)


def test_versions_strictly_increase(manager, zone_collection):
    versions = [manager.current().version]
    for _ in range(3):
        versions.append(manager.reload(zone_collection).version)
    assert versions == [1, 2, 3, 4]


def test_failed_reload_keeps_previous_snapshot(manager):
    """A LoadError aborts the reload and leaves the current snapshot authoritative."""
    before = manager.current()

    result = manager.reload({"type": "NotAFeatureCollection"})

    assert not result.success
    assert result.error
    assert result.version == before.version
    assert manager.current() is before


def test_failed_first_reload_stays_unavailable(tmp_path):
    manager = SnapshotManager()
    result = manager.reload(tmp_path / "missing.geojson")

    assert not result.success
    with pytest.raises(ServiceUnavailable):
        manager.current()


def test_failed_reload_reported_to_error_tracking(manager, monkeypatch):
    captured = []
    monkeypatch.setattr(
        "hubzone.core.snapshots.capture_exception",
        lambda error, context=None: captured.append((error, context)) or True,
    )

    manager.reload({"type": "FeatureCollection"})

    assert len(captured) == 1
    assert captured[0][1]["source"] == "<memory>"


def test_failed_reload_logged_below_error_level(manager, monkeypatch, caplog):
    """Only capture_exception reports the failure; the log record stays a warning."""
    monkeypatch.setattr("hubzone.core.snapshots.capture_exception", lambda error, context=None: True)

    with caplog.at_level(logging.DEBUG, logger="hubzone"):
        manager.reload({"type": "FeatureCollection"})

    records = [r for r in caplog.records if r.name == "hubzone"]
    assert any("Snapshot reload failed" in r.getMessage() for r in records)
    assert all(r.levelno < logging.ERROR for r in records)


def test_reload_with_corrupt_record(manager, zone_collection, make_feature):
    """One corrupt record is dropped; the reload still succeeds with a warning."""
    corrupted = copy.deepcopy(zone_collection)
    corrupted["features"].append(make_feature("corrupt", "Corrupt", [[[0, 0], [1, 0], [1, 1], [0, 1]]]))

    result = manager.reload(corrupted)

    assert result.success
    assert result.dropped_records == 1
    assert result.warnings[0].code == "ring_not_closed"
    assert manager.current().get("corrupt") is None
    assert manager.current().warnings == result.warnings


def test_readers_keep_their_snapshot(manager, catalog_25):
    """A reference taken before a reload still sees the old data."""
    held = manager.current()
    manager.reload(catalog_25)

    assert held.get("11001010800") is not None
    assert held.zone_count == 7
    assert manager.current().zone_count == 25


def test_publish_bumps_stale_versions(manager, catalog_25):
    snapshot = DatasetLoader().load(catalog_25, version=0)

    published = manager.publish(snapshot)

    assert published.version == 2
    assert manager.current() is published
    assert snapshot.version == 0


def test_reload_history_recorded(temp_history, zone_collection):
    manager = SnapshotManager(history=temp_history)
    manager.reload(zone_collection)
    manager.reload({"type": "FeatureCollection", "features": None})

    reloads = temp_history.recent_reloads()
    assert [r["success"] for r in reloads] == [False, True]
    assert temp_history.last_successful()["total_zones"] == 7


def test_scheduler_trigger(manager, zone_collection):
    scheduler = RefreshScheduler(manager, zone_collection, interval_seconds=0)

    result = scheduler.trigger()

    assert result.success
    assert result.version == 2
    assert scheduler.last_result is result


def test_scheduler_skips_overlapping_runs(manager, zone_collection):
    scheduler = RefreshScheduler(manager, zone_collection, interval_seconds=0)
    scheduler._running.acquire()
    try:
        assert scheduler.trigger() is None
    finally:
        scheduler._running.release()
    assert manager.version == 1


def test_scheduler_disabled_with_zero_interval(manager, zone_collection):
    scheduler = RefreshScheduler(manager, zone_collection, interval_seconds=0)
    assert not scheduler.start()
    assert not scheduler.is_running


def test_scheduler_runs_in_background(manager, zone_collection):
    scheduler = RefreshScheduler(manager, zone_collection, interval_seconds=0.05)
    assert scheduler.start()
    try:
        deadline = time.time() + 5
        while manager.version < 2 and time.time() < deadline:
            time.sleep(0.01)
    finally:
        scheduler.stop(timeout=5)

    assert manager.version >= 2
    assert not scheduler.is_running
