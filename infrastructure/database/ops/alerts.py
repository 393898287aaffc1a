from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now

logger = logging.getLogger(__name__)

_ALERT_SELECT = """
    SELECT al.*,
           COALESCE(h.name, 'Unknown') AS hive_name,
           h.apiary_id AS apiary_id,
           COALESCE(ap.name, 'Unknown') AS apiary_name,
           h.user_id AS user_id
    FROM Alert al
    JOIN Hives h ON h.hive_id = al.hive_id
    LEFT JOIN Apiaries ap ON ap.id = h.apiary_id
"""

_SEVERITY_RANK = "CASE al.severity WHEN 'high' THEN 0 WHEN 'medium' THEN 1 WHEN 'low' THEN 2 ELSE 3 END"


class AlertOperations:
    """Database operations for Alert entity."""

    def find_open_alert(self, hive_id: str, alert_type: str) -> dict[str, Any] | None:
        """Latest unresolved alert of ``alert_type`` for a hive.

        Storage errors propagate: callers deduplicating on this lookup must not
        read a failure as "no open alert".
        """
        try:
            db = self.get_db()
            row = db.execute(
                """
                SELECT * FROM Alert
                WHERE hive_id = ? AND type = ? AND resolved_at IS NULL
                ORDER BY created_at DESC, id DESC LIMIT 1
                """,
                (hive_id, alert_type),
            ).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("AlertOperations.find_open_alert failed for hive %s: %s", hive_id, exc)
            raise

    def get_alert_by_id(self, alert_id: int, user_id: int | None = None) -> dict[str, Any] | None:
        try:
            db = self.get_db()
            if user_id is None:
                row = db.execute(_ALERT_SELECT + " WHERE al.id = ?", (alert_id,)).fetchone()
            else:
                row = db.execute(_ALERT_SELECT + " WHERE al.id = ? AND h.user_id = ?", (alert_id, user_id)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.debug("get_alert_by_id failed: %s", exc)
            return None

    def insert_alert(
        self,
        hive_id: str,
        alert_type: str,
        message: str,
        severity: str,
        created_at: str | None = None,
    ) -> int | None:
        """Insert an alert and return its id.

        Raises ``sqlite3.IntegrityError`` when an open alert of the same metric
        type already exists for the hive; other storage errors return None.
        """
        try:
            with self.connection() as db:
                cur = db.execute(
                    """
                    INSERT INTO Alert (hive_id, type, message, severity, created_at, is_read)
                    VALUES (?, ?, ?, ?, ?, 0)
                    """,
                    (hive_id, alert_type, message, severity, created_at or iso_now()),
                )
                return cur.lastrowid
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as exc:
            logger.error("Failed to insert alert: %s", exc)
            return None

    def list_alerts(
        self,
        user_id: int,
        *,
        hive_id: str | None = None,
        apiary_id: int | None = None,
        unread_only: bool = False,
        alert_type: str | None = None,
        severity: str | None = None,
        search: str | None = None,
        sort: str = "created_at",
        include_resolved: bool = False,
        limit: int | None = None,
    ) -> list[dict[str, Any]]:
        conditions = ["h.user_id = ?"]
        params: list[Any] = [user_id]
        if not include_resolved:
            conditions.append("al.resolved_at IS NULL")
        if hive_id is not None:
            conditions.append("al.hive_id = ?")
            params.append(hive_id)
        if apiary_id is not None:
            conditions.append("h.apiary_id = ?")
            params.append(apiary_id)
        if unread_only:
            conditions.append("al.is_read = 0")
        if alert_type:
            conditions.append("al.type = ?")
            params.append(alert_type)
        if severity:
            conditions.append("al.severity = ?")
            params.append(severity)
        if search:
            like = f"%{search.lower()}%"
            conditions.append("(LOWER(al.message) LIKE ? OR LOWER(h.name) LIKE ? OR LOWER(COALESCE(ap.name, '')) LIKE ?)")
            params.extend([like, like, like])

        order = f"{_SEVERITY_RANK}, al.created_at DESC" if sort == "severity" else "al.created_at DESC"
        query = _ALERT_SELECT + " WHERE " + " AND ".join(conditions) + f" ORDER BY {order}, al.id DESC"
        if limit is not None:
            query += " LIMIT ?"
            params.append(limit)
        try:
            db = self.get_db()
            return [dict(row) for row in db.execute(query, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("list_alerts failed for user %s: %s", user_id, exc)
            return []

    def resolve_alert(self, alert_id: int) -> bool:
        try:
            with self.connection() as db:
                cur = db.execute(
                    "UPDATE Alert SET resolved_at = ?, is_read = 1 WHERE id = ? AND resolved_at IS NULL",
                    (iso_now(), alert_id),
                )
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.debug("resolve_alert failed: %s", exc)
            return False

    def resolve_all_alerts(self, user_id: int, hive_id: str | None = None) -> int:
        query = """
            UPDATE Alert SET resolved_at = ?, is_read = 1
            WHERE resolved_at IS NULL
              AND hive_id IN (SELECT hive_id FROM Hives WHERE user_id = ?)
        """
        params: list[Any] = [iso_now(), user_id]
        if hive_id is not None:
            query += " AND hive_id = ?"
            params.append(hive_id)
        try:
            with self.connection() as db:
                return db.execute(query, params).rowcount
        except sqlite3.Error as exc:
            logger.error("resolve_all_alerts failed for user %s: %s", user_id, exc)
            return 0

    def mark_alert_read(self, alert_id: int) -> bool:
        try:
            with self.connection() as db:
                cur = db.execute("UPDATE Alert SET is_read = 1 WHERE id = ?", (alert_id,))
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.debug("mark_alert_read failed: %s", exc)
            return False

    def count_active_alerts(self, user_id: int) -> int:
        db = self.get_db()
        row = db.execute(
            """
            SELECT COUNT(*) FROM Alert al JOIN Hives h ON h.hive_id = al.hive_id
            WHERE h.user_id = ? AND al.resolved_at IS NULL
            """,
            (user_id,),
        ).fetchone()
        return int(row[0]) if row else 0

    def get_alert_summary(self, user_id: int) -> dict[str, Any]:
        try:
            db = self.get_db()
            base = "FROM Alert al JOIN Hives h ON h.hive_id = al.hive_id WHERE h.user_id = ? AND al.resolved_at IS NULL"
            by_severity = {
                row[0]: row[1]
                for row in db.execute(f"SELECT al.severity, COUNT(*) {base} GROUP BY al.severity", (user_id,))
            }
            by_type = {
                row[0]: row[1] for row in db.execute(f"SELECT al.type, COUNT(*) {base} GROUP BY al.type", (user_id,))
            }
            unread = db.execute(f"SELECT COUNT(*) {base} AND al.is_read = 0", (user_id,)).fetchone()[0]
            resolved = db.execute(
                """
                SELECT COUNT(*) FROM Alert al JOIN Hives h ON h.hive_id = al.hive_id
                WHERE h.user_id = ? AND al.resolved_at IS NOT NULL
                """,
                (user_id,),
            ).fetchone()[0]
            return {
                "total_active": sum(by_severity.values()),
                "total_resolved": resolved,
                "unread": unread,
                "active_by_severity": {level: by_severity.get(level, 0) for level in ("high", "medium", "low", "info")},
                "active_by_type": {
                    kind: by_type.get(kind, 0) for kind in ("temperature", "humidity", "sound", "weight", "other")
                },
            }
        except sqlite3.Error as exc:
            logger.debug("get_alert_summary failed: %s", exc)
            return {
                "total_active": 0,
                "total_resolved": 0,
                "unread": 0,
                "active_by_severity": {"high": 0, "medium": 0, "low": 0, "info": 0},
                "active_by_type": {"temperature": 0, "humidity": 0, "sound": 0, "weight": 0, "other": 0},
            }

    def purge_old_alerts(self, cutoff_iso: str, resolved_only: bool = True) -> int:
        try:
            with self.connection() as db:
                if resolved_only:
                    cur = db.execute(
                        "DELETE FROM Alert WHERE resolved_at IS NOT NULL AND created_at < ?",
                        (cutoff_iso,),
                    )
                else:
                    cur = db.execute("DELETE FROM Alert WHERE created_at < ?", (cutoff_iso,))
                return cur.rowcount
        except sqlite3.Error as exc:
            logger.debug("purge_old_alerts failed: %s", exc)
            return 0
