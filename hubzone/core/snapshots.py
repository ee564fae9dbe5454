"""Snapshot lifecycle: atomic publication, reloads and scheduled refresh."""
import threading
from dataclasses import dataclass, field, replace
from typing import Any, Dict, Optional, Tuple

import duckdb

from hubzone.core.config import HUBZONE_SOURCE, REFRESH_INTERVAL_SECONDS
from hubzone.core.errors import LoadError, ServiceUnavailable
from hubzone.core.loader import DatasetLoader
from hubzone.core.models import LoadWarning, Snapshot
from hubzone.core.sources import describe_source
from hubzone.utils.error_tracking import capture_exception
from hubzone.utils.logging import log_error, log_structured
from hubzone.utils.timing import Timer


@dataclass(frozen=True)
class ReloadResult:
    """Outcome of one reload attempt."""
    success: bool
    version: int
    source: str
    total_zones: int = 0
    new: int = 0
    updated: int = 0
    removed: int = 0
    dropped_records: int = 0
    processing_ms: int = 0
    error: Optional[str] = None
    warnings: Tuple[LoadWarning, ...] = field(default=(), repr=False)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for serialization."""
        return {
            "success": self.success,
            "version": self.version,
            "source": self.source,
            "total_zones": self.total_zones,
            "new": self.new,
            "updated": self.updated,
            "removed": self.removed,
            "dropped_records": self.dropped_records,
            "processing_ms": self.processing_ms,
            "error": self.error,
            "warnings": [w.to_dict() for w in self.warnings],
        }


def diff_snapshots(previous: Optional[Snapshot], current: Snapshot) -> Tuple[int, int, int]:
    """
    Count zones added, changed and removed between two snapshots.

    Returns:
        Tuple of (new, updated, removed)
    """
    old = previous.by_id if previous is not None else {}
    new = updated = 0
    for zone_id, zone in current.by_id.items():
        before = old.get(zone_id)
        if before is None:
            new += 1
        elif before != zone:
            updated += 1
    removed = sum(1 for zone_id in old if zone_id not in current.by_id)
    return new, updated, removed


class SnapshotManager:
    """
    Holds the current snapshot and replaces it atomically.

    Readers call ``current()`` and keep the returned reference for the rest of
    their request; they never take the lock. Reloads and publishes are
    serialized, build the new snapshot off to the side and then swap a single
    attribute.
    """

    def __init__(self, loader: Optional[DatasetLoader] = None, history=None):
        """
        Initialize snapshot manager.

        Args:
            loader: DatasetLoader used by ``reload`` (defaults to a strict loader)
            history: Optional ReloadHistoryStore recording each reload
        """
        self.loader = loader or DatasetLoader()
        self.history = history
        self._lock = threading.Lock()
        self._snapshot: Optional[Snapshot] = None
        self._version = 0

    @property
    def is_ready(self) -> bool:
        return self._snapshot is not None

    @property
    def version(self) -> int:
        """Version of the current snapshot (0 before the first load)."""
        return self._version

    def current(self) -> Snapshot:
        """
        Return the active snapshot.

        Raises:
            ServiceUnavailable: If no snapshot has been loaded yet
        """
        snapshot = self._snapshot
        if snapshot is None:
            raise ServiceUnavailable("No HUBZone snapshot loaded")
        return snapshot

    def _publish_locked(self, snapshot: Snapshot) -> Snapshot:
        if snapshot.version <= self._version:
            snapshot = replace(snapshot, version=self._version + 1)
        self._version = snapshot.version
        self._snapshot = snapshot
        return snapshot

    def publish(self, snapshot: Snapshot) -> Snapshot:
        """
        Make a pre-built snapshot current.

        Args:
            snapshot: Snapshot to publish; its version is bumped if it does not
                exceed the current one

        Returns:
            The published snapshot
        """
        with self._lock:
            published = self._publish_locked(snapshot)
        log_structured(
            "info",
            "Published HUBZone snapshot",
            version=published.version,
            zones=published.zone_count,
            source=published.source,
        )
        return published

    def reload(self, source) -> ReloadResult:
        """
        Load a new snapshot from a source and publish it.

        A LoadError leaves the current snapshot in place and is reported in the
        returned result instead of being raised.

        Args:
            source: Anything DatasetLoader.load accepts

        Returns:
            ReloadResult describing the attempt
        """
        label = describe_source(source)
        with self._lock:
            previous = self._snapshot
            error = None
            snapshot = None
            with Timer("snapshot_reload", source=label) as timer:
                try:
                    snapshot = self.loader.load(source, version=self._version + 1)
                except LoadError as e:
                    error = e

            if error is not None:
                # Sentry gets this failure once, via capture_exception; an
                # ERROR record would also become an event through LoggingIntegration.
                log_structured(
                    "warning",
                    "Snapshot reload failed",
                    module="snapshots",
                    source=label,
                    error=str(error),
                    error_type=type(error).__name__,
                    current_version=self._version,
                )
                capture_exception(error, {"source": label, "current_version": self._version})
                result = ReloadResult(
                    success=False,
                    version=self._version,
                    source=label,
                    total_zones=previous.zone_count if previous is not None else 0,
                    processing_ms=timer.elapsed_ms,
                    error=str(error),
                )
            else:
                snapshot = self._publish_locked(snapshot)
                new, updated, removed = diff_snapshots(previous, snapshot)
                result = ReloadResult(
                    success=True,
                    version=snapshot.version,
                    source=snapshot.source,
                    total_zones=snapshot.zone_count,
                    new=new,
                    updated=updated,
                    removed=removed,
                    dropped_records=len(snapshot.warnings),
                    processing_ms=timer.elapsed_ms,
                    warnings=snapshot.warnings,
                )
                log_structured("info", "HUBZone snapshot reloaded", **{
                    k: v for k, v in result.to_dict().items() if k != "warnings"
                })

            self._record(result)
        return result

    def _record(self, result: ReloadResult):
        if self.history is None:
            return
        try:
            self.history.record_reload(result)
        except duckdb.Error as e:
            log_error(e, {"module": "snapshots", "operation": "record_reload"})


class RefreshScheduler:
    """
    Re-runs ``SnapshotManager.reload`` on a fixed interval in a daemon thread.

    Runs never overlap: a trigger while a reload is in progress is skipped.
    """

    def __init__(
        self,
        manager: SnapshotManager,
        source=HUBZONE_SOURCE,
        interval_seconds: float = REFRESH_INTERVAL_SECONDS,
    ):
        self.manager = manager
        self.source = source
        self.interval_seconds = interval_seconds
        self.last_result: Optional[ReloadResult] = None
        self._running = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

    @property
    def is_running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> bool:
        """
        Start the background refresh loop.

        Returns:
            False if refresh is disabled (interval <= 0) or already started
        """
        if self.interval_seconds <= 0:
            log_structured("info", "Scheduled HUBZone refresh disabled")
            return False
        if self.is_running:
            return False
        self._stop.clear()
        self._thread = threading.Thread(target=self._loop, name="hubzone-refresh", daemon=True)
        self._thread.start()
        log_structured("info", "Scheduled HUBZone refresh started", interval_seconds=self.interval_seconds)
        return True

    def stop(self, timeout: Optional[float] = None):
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None

    def _loop(self):
        while not self._stop.wait(self.interval_seconds):
            self.trigger()

    def trigger(self) -> Optional[ReloadResult]:
        """
        Run one reload now in the calling thread.

        Returns:
            ReloadResult, or None if another refresh is already running
        """
        if not self._running.acquire(blocking=False):
            log_structured("warning", "HUBZone refresh already in progress, skipping", source=describe_source(self.source))
            return None
        try:
            self.last_result = self.manager.reload(self.source)
            return self.last_result
        finally:
            self._running.release()
