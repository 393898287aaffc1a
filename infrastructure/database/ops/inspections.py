from __future__ import annotations

import json
import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now
from infrastructure.database.pagination import PaginationParams, apply_pagination_to_query

logger = logging.getLogger(__name__)

INSPECTION_COLUMNS = (
    "hive_id",
    "inspection_date",
    "weight",
    "temperature",
    "humidity",
    "weather_conditions",
    "hive_strength",
    "queen_seen",
    "eggs_seen",
    "larvae_seen",
    "queen_cells_seen",
    "disease_signs",
    "disease_details",
    "varroa_check",
    "varroa_count",
    "honey_stores",
    "pollen_stores",
    "added_supers",
    "removed_supers",
    "feed_added",
    "feed_type",
    "feed_amount",
    "medications_added",
    "medication_details",
    "notes",
    "images",
    "status",
)

FINDING_COLUMNS = (
    "queen_sighted",
    "brood_pattern",
    "honey_stores",
    "population_strength",
    "temperament",
    "diseases_sighted",
    "varroa_count",
    "notes",
)

_INSPECTION_SELECT = """
    SELECT i.*,
           COALESCE(h.name, 'Unknown') AS hive_name,
           h.apiary_id AS apiary_id,
           COALESCE(a.name, 'Unknown') AS apiary_name
    FROM Inspections i
    LEFT JOIN Hives h ON h.hive_id = i.hive_id
    LEFT JOIN Apiaries a ON a.id = h.apiary_id
"""


def _inspection_row(row: sqlite3.Row) -> dict[str, Any]:
    data = dict(row)
    raw_images = data.get("images")
    try:
        data["images"] = json.loads(raw_images) if raw_images else []
    except (TypeError, ValueError):
        data["images"] = []
    return data


class InspectionOperations:
    """Database operations for Inspections and InspectionFindings."""

    def count_inspections(self, user_id: int) -> int:
        try:
            db = self.get_db()
            row = db.execute("SELECT COUNT(*) FROM Inspections WHERE user_id = ?", (user_id,)).fetchone()
            return int(row[0]) if row else 0
        except sqlite3.Error as exc:
            logger.error("count_inspections failed for user %s: %s", user_id, exc)
            return 0

    def list_inspections_page(self, user_id: int, params: PaginationParams) -> list[dict[str, Any]]:
        try:
            db = self.get_db()
            query = apply_pagination_to_query(
                _INSPECTION_SELECT + " WHERE i.user_id = ? ORDER BY i.inspection_date DESC, i.id DESC",
                params,
            )
            return [_inspection_row(row) for row in db.execute(query, (user_id,)).fetchall()]
        except sqlite3.Error as exc:
            logger.error("list_inspections_page failed for user %s: %s", user_id, exc)
            return []

    def list_inspections(
        self,
        user_id: int,
        *,
        hive_id: str | None = None,
        apiary_id: int | None = None,
        status: str | None = None,
        from_date: str | None = None,
    ) -> list[dict[str, Any]]:
        conditions = ["i.user_id = ?"]
        params: list[Any] = [user_id]
        if hive_id is not None:
            conditions.append("i.hive_id = ?")
            params.append(hive_id)
        if apiary_id is not None:
            conditions.append("h.apiary_id = ?")
            params.append(apiary_id)
        if status:
            conditions.append("i.status = ?")
            params.append(status)
        if from_date:
            conditions.append("i.inspection_date >= ?")
            params.append(from_date)
        # Upcoming inspections read soonest first
        order = "ASC" if from_date else "DESC"
        query = (
            _INSPECTION_SELECT
            + " WHERE "
            + " AND ".join(conditions)
            + f" ORDER BY i.inspection_date {order}, i.id {order}"
        )
        try:
            db = self.get_db()
            return [_inspection_row(row) for row in db.execute(query, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("list_inspections failed for user %s: %s", user_id, exc)
            return []

    def get_inspection(self, inspection_id: int, user_id: int) -> dict[str, Any] | None:
        try:
            db = self.get_db()
            row = db.execute(
                _INSPECTION_SELECT + " WHERE i.id = ? AND i.user_id = ?",
                (inspection_id, user_id),
            ).fetchone()
            return _inspection_row(row) if row else None
        except sqlite3.Error as exc:
            logger.error("get_inspection failed for %s: %s", inspection_id, exc)
            return None

    def get_findings(self, inspection_id: int) -> dict[str, Any] | None:
        try:
            db = self.get_db()
            row = db.execute("SELECT * FROM InspectionFindings WHERE inspection_id = ?", (inspection_id,)).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("get_findings failed for %s: %s", inspection_id, exc)
            return None

    def insert_inspection(
        self,
        user_id: int,
        fields: dict[str, Any],
        findings: dict[str, Any] | None = None,
    ) -> int | None:
        now = iso_now()
        columns = [column for column in INSPECTION_COLUMNS if column in fields]
        values = [self._encode_inspection_value(column, fields[column]) for column in columns]
        try:
            with self.connection() as db:
                cur = db.execute(
                    f"""
                    INSERT INTO Inspections ({", ".join(columns)}, user_id, created_at, updated_at)
                    VALUES ({", ".join("?" for _ in columns)}, ?, ?, ?)
                    """,
                    (*values, user_id, now, now),
                )
                inspection_id = cur.lastrowid
                if findings is not None:
                    self._upsert_findings(db, inspection_id, findings)
                return inspection_id
        except sqlite3.Error as exc:
            logger.error("Failed to insert inspection for user %s: %s", user_id, exc)
            return None

    def update_inspection(
        self,
        inspection_id: int,
        user_id: int,
        fields: dict[str, Any],
        findings: dict[str, Any] | None = None,
    ) -> bool:
        updates = {key: value for key, value in fields.items() if key in INSPECTION_COLUMNS}
        try:
            with self.connection() as db:
                owned = db.execute(
                    "SELECT 1 FROM Inspections WHERE id = ? AND user_id = ?",
                    (inspection_id, user_id),
                ).fetchone()
                if not owned:
                    return False
                if updates:
                    assignments = ", ".join(f"{column} = ?" for column in updates)
                    values = [self._encode_inspection_value(column, value) for column, value in updates.items()]
                    db.execute(
                        f"UPDATE Inspections SET {assignments}, updated_at = ? WHERE id = ?",
                        (*values, iso_now(), inspection_id),
                    )
                if findings is not None:
                    self._upsert_findings(db, inspection_id, findings)
                return True
        except sqlite3.Error as exc:
            logger.error("Failed to update inspection %s: %s", inspection_id, exc)
            return False

    def delete_inspection(self, inspection_id: int, user_id: int) -> bool:
        try:
            with self.connection() as db:
                owned = db.execute(
                    "SELECT 1 FROM Inspections WHERE id = ? AND user_id = ?",
                    (inspection_id, user_id),
                ).fetchone()
                if not owned:
                    return False
                db.execute("DELETE FROM InspectionFindings WHERE inspection_id = ?", (inspection_id,))
                db.execute("DELETE FROM Inspections WHERE id = ?", (inspection_id,))
                return True
        except sqlite3.Error as exc:
            logger.error("Failed to delete inspection %s: %s", inspection_id, exc)
            return False

    @staticmethod
    def _encode_inspection_value(column: str, value: Any) -> Any:
        if column == "images":
            return json.dumps(list(value or []))
        if isinstance(value, bool):
            return int(value)
        return value

    @staticmethod
    def _upsert_findings(db: sqlite3.Connection, inspection_id: int, findings: dict[str, Any]) -> None:
        columns = [column for column in FINDING_COLUMNS if column in findings]
        values = [int(findings[c]) if isinstance(findings[c], bool) else findings[c] for c in columns]
        existing = db.execute("SELECT id FROM InspectionFindings WHERE inspection_id = ?", (inspection_id,)).fetchone()
        if existing:
            if columns:
                assignments = ", ".join(f"{column} = ?" for column in columns)
                db.execute(
                    f"UPDATE InspectionFindings SET {assignments} WHERE inspection_id = ?",
                    (*values, inspection_id),
                )
            return
        db.execute(
            f"""
            INSERT INTO InspectionFindings (inspection_id{"".join(", " + column for column in columns)})
            VALUES (?{", ?" * len(columns)})
            """,
            (inspection_id, *values),
        )
