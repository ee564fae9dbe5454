"""DuckDB storage for snapshot reload history."""
import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

import duckdb

from hubzone.core.config import HISTORY_DB_PATH

_COLUMNS = [
    "id",
    "version",
    "source",
    "success",
    "total_zones",
    "new_zones",
    "updated_zones",
    "removed_zones",
    "dropped_records",
    "processing_ms",
    "error",
    "warnings",
    "created_at",
]


class ReloadHistoryStore:
    """DuckDB storage manager for reload outcomes."""

    def __init__(self, db_path: Optional[Path] = None):
        """
        Initialize DuckDB connection.

        Args:
            db_path: Path to DuckDB database file (":memory:" for a throwaway store)
        """
        self.db_path = db_path or HISTORY_DB_PATH
        if str(self.db_path) != ":memory:":
            Path(self.db_path).parent.mkdir(parents=True, exist_ok=True)
        self.conn = duckdb.connect(str(self.db_path))
        self._init_schema()

    def _init_schema(self):
        """Initialize database schema."""
        self.conn.execute("CREATE SEQUENCE IF NOT EXISTS snapshot_reloads_seq START 1")
        self.conn.execute("""
            CREATE TABLE IF NOT EXISTS snapshot_reloads (
                id INTEGER PRIMARY KEY DEFAULT nextval('snapshot_reloads_seq'),
                version INTEGER,
                source VARCHAR,
                success BOOLEAN,
                total_zones INTEGER,
                new_zones INTEGER,
                updated_zones INTEGER,
                removed_zones INTEGER,
                dropped_records INTEGER,
                processing_ms INTEGER,
                error TEXT,
                warnings TEXT,
                created_at TIMESTAMP DEFAULT CURRENT_TIMESTAMP
            )
        """)
        self.conn.execute(
            "CREATE INDEX IF NOT EXISTS idx_reloads_success ON snapshot_reloads(success)"
        )

    def record_reload(self, result) -> None:
        """
        Store one reload outcome.

        Args:
            result: ReloadResult from SnapshotManager.reload
        """
        self.conn.execute(
            """
            INSERT INTO snapshot_reloads
            (version, source, success, total_zones, new_zones, updated_zones, removed_zones,
             dropped_records, processing_ms, error, warnings, created_at)
            VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
            """,
            [
                result.version,
                result.source,
                result.success,
                result.total_zones,
                result.new,
                result.updated,
                result.removed,
                result.dropped_records,
                result.processing_ms,
                result.error,
                json.dumps([w.to_dict() for w in result.warnings]),
                datetime.now(timezone.utc).replace(tzinfo=None),
            ],
        )

    def _rows_to_dicts(self, rows) -> List[Dict[str, Any]]:
        records = []
        for row in rows:
            record = dict(zip(_COLUMNS, row))
            record["warnings"] = json.loads(record["warnings"]) if record["warnings"] else []
            records.append(record)
        return records

    def recent_reloads(self, limit: int = 10) -> List[Dict[str, Any]]:
        """
        Most recent reloads, newest first.

        Args:
            limit: Maximum number of rows

        Returns:
            List of reload dictionaries
        """
        rows = self.conn.execute(
            f"SELECT {', '.join(_COLUMNS)} FROM snapshot_reloads ORDER BY id DESC LIMIT ?",
            [limit],
        ).fetchall()
        return self._rows_to_dicts(rows)

    def last_successful(self) -> Optional[Dict[str, Any]]:
        """Most recent successful reload, or None."""
        rows = self.conn.execute(
            f"""
            SELECT {', '.join(_COLUMNS)} FROM snapshot_reloads
            WHERE success ORDER BY id DESC LIMIT 1
            """
        ).fetchall()
        records = self._rows_to_dicts(rows)
        return records[0] if records else None

    def get_stats(self) -> Dict[str, Any]:
        """Get reload counts."""
        total, succeeded = self.conn.execute(
            "SELECT COUNT(*), COUNT(*) FILTER (WHERE success) FROM snapshot_reloads"
        ).fetchone()
        return {"total_reloads": total, "successful_reloads": succeeded, "failed_reloads": total - succeeded}

    def close(self):
        """Close database connection."""
        self.conn.close()
