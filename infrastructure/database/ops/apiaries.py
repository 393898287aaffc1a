from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now
from infrastructure.database.pagination import PaginationParams, apply_pagination_to_query

logger = logging.getLogger(__name__)

APIARY_COLUMNS = ("name", "location", "latitude", "longitude", "elevation", "notes", "image_url")


class ApiaryOperations:
    """Database operations for the Apiaries table."""

    def count_apiaries(self, user_id: int) -> int:
        try:
            db = self.get_db()
            row = db.execute("SELECT COUNT(*) FROM Apiaries WHERE user_id = ?", (user_id,)).fetchone()
            return int(row[0]) if row else 0
        except sqlite3.Error as exc:
            logger.error("count_apiaries failed for user %s: %s", user_id, exc)
            return 0

    def list_apiaries_page(self, user_id: int, params: PaginationParams) -> list[dict[str, Any]]:
        try:
            db = self.get_db()
            query = apply_pagination_to_query(
                "SELECT * FROM Apiaries WHERE user_id = ? ORDER BY name COLLATE NOCASE, id",
                params,
            )
            return [dict(row) for row in db.execute(query, (user_id,)).fetchall()]
        except sqlite3.Error as exc:
            logger.error("list_apiaries_page failed for user %s: %s", user_id, exc)
            return []

    def list_all_apiaries(self, user_id: int) -> list[dict[str, Any]]:
        try:
            db = self.get_db()
            rows = db.execute(
                "SELECT * FROM Apiaries WHERE user_id = ? ORDER BY name COLLATE NOCASE, id",
                (user_id,),
            ).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("list_all_apiaries failed for user %s: %s", user_id, exc)
            return []

    def get_apiary(self, apiary_id: int, user_id: int | None = None) -> dict[str, Any] | None:
        try:
            db = self.get_db()
            if user_id is None:
                row = db.execute("SELECT * FROM Apiaries WHERE id = ?", (apiary_id,)).fetchone()
            else:
                row = db.execute(
                    "SELECT * FROM Apiaries WHERE id = ? AND user_id = ?",
                    (apiary_id, user_id),
                ).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("get_apiary failed for %s: %s", apiary_id, exc)
            return None

    def insert_apiary(self, user_id: int, fields: dict[str, Any]) -> int | None:
        now = iso_now()
        values = [fields.get(column) for column in APIARY_COLUMNS]
        try:
            with self.connection() as db:
                cur = db.execute(
                    f"""
                    INSERT INTO Apiaries ({", ".join(APIARY_COLUMNS)}, user_id, created_at, updated_at)
                    VALUES ({", ".join("?" for _ in APIARY_COLUMNS)}, ?, ?, ?)
                    """,
                    (*values, user_id, now, now),
                )
                return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to insert apiary for user %s: %s", user_id, exc)
            return None

    def update_apiary(self, apiary_id: int, user_id: int, fields: dict[str, Any]) -> bool:
        updates = {key: value for key, value in fields.items() if key in APIARY_COLUMNS}
        if not updates:
            return True
        assignments = ", ".join(f"{column} = ?" for column in updates)
        try:
            with self.connection() as db:
                cur = db.execute(
                    f"UPDATE Apiaries SET {assignments}, updated_at = ? WHERE id = ? AND user_id = ?",
                    (*updates.values(), iso_now(), apiary_id, user_id),
                )
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to update apiary %s: %s", apiary_id, exc)
            return False

    def delete_apiary(self, apiary_id: int, user_id: int) -> bool:
        """Delete an apiary; its hives stay registered with apiary_id set to NULL."""
        try:
            with self.connection() as db:
                db.execute(
                    "UPDATE Hives SET apiary_id = NULL, updated_at = ? WHERE apiary_id = ? AND user_id = ?",
                    (iso_now(), apiary_id, user_id),
                )
                cur = db.execute("DELETE FROM Apiaries WHERE id = ? AND user_id = ?", (apiary_id, user_id))
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to delete apiary %s: %s", apiary_id, exc)
            return False

    def count_hives_by_apiary(self, apiary_ids: list[int]) -> dict[int, int]:
        if not apiary_ids:
            return {}
        placeholders = ", ".join("?" for _ in apiary_ids)
        try:
            db = self.get_db()
            rows = db.execute(
                f"SELECT apiary_id, COUNT(*) AS n FROM Hives WHERE apiary_id IN ({placeholders}) GROUP BY apiary_id",
                apiary_ids,
            ).fetchall()
            return {row["apiary_id"]: row["n"] for row in rows}
        except sqlite3.Error as exc:
            logger.error("count_hives_by_apiary failed: %s", exc)
            return {}
