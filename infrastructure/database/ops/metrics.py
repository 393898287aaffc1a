from __future__ import annotations

import logging
import sqlite3
from typing import Any

logger = logging.getLogger(__name__)

METRIC_COLUMNS = ("temp_value", "hum_value", "sound_value", "weight_value")


class MetricOperations:
    """Sensor readings reported by hive monitoring devices."""

    def insert_metric(
        self,
        hive_id: str,
        timestamp: str,
        temp_value: float | None = None,
        hum_value: float | None = None,
        sound_value: float | None = None,
        weight_value: float | None = None,
    ) -> int | None:
        try:
            with self.connection() as db:
                cur = db.execute(
                    """
                    INSERT INTO HiveMetrics (hive_id, timestamp, temp_value, hum_value, sound_value, weight_value)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (hive_id, timestamp, temp_value, hum_value, sound_value, weight_value),
                )
                return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to insert metric for hive %s: %s", hive_id, exc)
            return None

    def hive_has_metrics(self, hive_id: str) -> bool:
        try:
            db = self.get_db()
            row = db.execute("SELECT 1 FROM HiveMetrics WHERE hive_id = ? LIMIT 1", (hive_id,)).fetchone()
            return row is not None
        except sqlite3.Error as exc:
            logger.error("hive_has_metrics failed for %s: %s", hive_id, exc)
            raise

    def get_recent_metrics(self, hive_id: str, limit: int = 24) -> list[dict[str, Any]]:
        """Newest-first readings for one hive."""
        try:
            db = self.get_db()
            rows = db.execute(
                "SELECT * FROM HiveMetrics WHERE hive_id = ? ORDER BY timestamp DESC, id DESC LIMIT ?",
                (hive_id, limit),
            ).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("get_recent_metrics failed for %s: %s", hive_id, exc)
            return []

    def get_latest_metric(self, hive_id: str) -> dict[str, Any] | None:
        rows = self.get_recent_metrics(hive_id, limit=1)
        return rows[0] if rows else None

    def get_metrics_since(self, hive_id: str, since_iso: str) -> list[dict[str, Any]]:
        """Oldest-first readings at or after ``since_iso``."""
        try:
            db = self.get_db()
            rows = db.execute(
                "SELECT * FROM HiveMetrics WHERE hive_id = ? AND timestamp >= ? ORDER BY timestamp ASC, id ASC",
                (hive_id, since_iso),
            ).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("get_metrics_since failed for %s: %s", hive_id, exc)
            return []

    def delete_metrics_before(self, cutoff_iso: str) -> int:
        try:
            with self.connection() as db:
                cur = db.execute("DELETE FROM HiveMetrics WHERE timestamp < ?", (cutoff_iso,))
                return cur.rowcount
        except sqlite3.Error as exc:
            logger.error("delete_metrics_before failed: %s", exc)
            return 0
