from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now

logger = logging.getLogger(__name__)

HIVE_COLUMNS = (
    "name",
    "apiary_id",
    "type",
    "status",
    "installation_date",
    "queen_introduced_date",
    "queen_type",
    "queen_marked",
    "queen_marking_color",
    "notes",
    "image_url",
    "alerts_enabled",
)

_HIVE_SELECT = """
    SELECT h.*, COALESCE(a.name, 'Unknown Apiary') AS apiary_name
    FROM Hives h
    LEFT JOIN Apiaries a ON a.id = h.apiary_id
"""


class HiveOperations:
    """Database operations for the Hives table."""

    def list_hives(self, user_id: int, apiary_id: int | None = None) -> list[dict[str, Any]]:
        try:
            db = self.get_db()
            if apiary_id is None:
                rows = db.execute(
                    _HIVE_SELECT + " WHERE h.user_id = ? ORDER BY h.name COLLATE NOCASE",
                    (user_id,),
                ).fetchall()
            else:
                rows = db.execute(
                    _HIVE_SELECT + " WHERE h.user_id = ? AND h.apiary_id = ? ORDER BY h.name COLLATE NOCASE",
                    (user_id, apiary_id),
                ).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("list_hives failed for user %s: %s", user_id, exc)
            return []

    def list_hive_ids_for_apiaries(self, apiary_ids: list[int]) -> dict[int, list[str]]:
        if not apiary_ids:
            return {}
        placeholders = ", ".join("?" for _ in apiary_ids)
        try:
            db = self.get_db()
            rows = db.execute(
                f"SELECT apiary_id, hive_id FROM Hives WHERE apiary_id IN ({placeholders})",
                apiary_ids,
            ).fetchall()
        except sqlite3.Error as exc:
            logger.error("list_hive_ids_for_apiaries failed: %s", exc)
            return {}
        grouped: dict[int, list[str]] = {}
        for row in rows:
            grouped.setdefault(row["apiary_id"], []).append(row["hive_id"])
        return grouped

    def list_alert_enabled_hives(self) -> list[dict[str, Any]]:
        """Registered hives that opted in to threshold alerts, across all users."""
        try:
            db = self.get_db()
            rows = db.execute(
                """
                SELECT hive_id, name, user_id, apiary_id
                FROM Hives
                WHERE is_registered = 1 AND alerts_enabled = 1 AND user_id IS NOT NULL
                ORDER BY hive_id
                """
            ).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("list_alert_enabled_hives failed: %s", exc)
            return []

    def get_hive(self, hive_id: str, user_id: int | None = None) -> dict[str, Any] | None:
        try:
            db = self.get_db()
            if user_id is None:
                row = db.execute(_HIVE_SELECT + " WHERE h.hive_id = ?", (hive_id,)).fetchone()
            else:
                row = db.execute(
                    _HIVE_SELECT + " WHERE h.hive_id = ? AND h.user_id = ?",
                    (hive_id, user_id),
                ).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("get_hive failed for %s: %s", hive_id, exc)
            return None

    def insert_hive(self, hive_id: str, user_id: int, fields: dict[str, Any]) -> bool:
        now = iso_now()
        columns = [column for column in HIVE_COLUMNS if column in fields]
        try:
            with self.connection() as db:
                db.execute(
                    f"""
                    INSERT INTO Hives (hive_id, user_id, is_registered, created_at, updated_at
                        {"".join(", " + column for column in columns)})
                    VALUES (?, ?, 1, ?, ?{", ?" * len(columns)})
                    """,
                    (hive_id, user_id, now, now, *(fields[column] for column in columns)),
                )
            return True
        except sqlite3.Error as exc:
            logger.error("Failed to insert hive %s: %s", hive_id, exc)
            return False

    def update_hive(self, hive_id: str, user_id: int, fields: dict[str, Any]) -> bool:
        updates = {key: value for key, value in fields.items() if key in HIVE_COLUMNS}
        if not updates:
            return True
        assignments = ", ".join(f"{column} = ?" for column in updates)
        try:
            with self.connection() as db:
                cur = db.execute(
                    f"UPDATE Hives SET {assignments}, updated_at = ? WHERE hive_id = ? AND user_id = ?",
                    (*updates.values(), iso_now(), hive_id, user_id),
                )
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to update hive %s: %s", hive_id, exc)
            return False

    def delete_hive(self, hive_id: str, user_id: int) -> bool:
        try:
            with self.connection() as db:
                cur = db.execute("DELETE FROM Hives WHERE hive_id = ? AND user_id = ?", (hive_id, user_id))
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to delete hive %s: %s", hive_id, exc)
            return False

    def count_hives(self, user_id: int) -> int:
        try:
            db = self.get_db()
            row = db.execute("SELECT COUNT(*) FROM Hives WHERE user_id = ?", (user_id,)).fetchone()
            return int(row[0]) if row else 0
        except sqlite3.Error as exc:
            logger.error("count_hives failed for user %s: %s", user_id, exc)
            return 0
