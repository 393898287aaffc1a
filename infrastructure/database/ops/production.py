from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now

logger = logging.getLogger(__name__)

PRODUCTION_COLUMNS = (
    "hive_id",
    "apiary_id",
    "date",
    "amount",
    "quality",
    "type",
    "notes",
    "projected_harvest",
    "weight_change",
)

_OWNED_RECORDS = """
    FROM HiveProduction p
    JOIN Apiaries a ON a.id = p.apiary_id
    LEFT JOIN Hives h ON h.hive_id = p.hive_id
    WHERE a.user_id = ?
"""


class ProductionOperations:
    """Harvest records and the per-apiary summaries derived from them."""

    # --- Records ---------------------------------------------------------------
    def insert_production_record(self, user_id: int, fields: dict[str, Any]) -> int | None:
        columns = [column for column in PRODUCTION_COLUMNS if column in fields]
        try:
            with self.connection() as db:
                cur = db.execute(
                    f"""
                    INSERT INTO HiveProduction ({", ".join(columns)}, created_by, created_at)
                    VALUES ({", ".join("?" for _ in columns)}, ?, ?)
                    """,
                    (*(fields[column] for column in columns), user_id, iso_now()),
                )
                return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to insert production record: %s", exc)
            return None

    def get_production_record(self, record_id: int, user_id: int) -> dict[str, Any] | None:
        try:
            db = self.get_db()
            row = db.execute(
                "SELECT p.*, COALESCE(h.name, 'Unknown') AS hive_name, a.name AS apiary_name "
                + _OWNED_RECORDS
                + " AND p.id = ?",
                (user_id, record_id),
            ).fetchone()
            return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("get_production_record failed for %s: %s", record_id, exc)
            return None

    def update_production_record(self, record_id: int, fields: dict[str, Any]) -> bool:
        updates = {key: value for key, value in fields.items() if key in PRODUCTION_COLUMNS}
        if not updates:
            return True
        assignments = ", ".join(f"{column} = ?" for column in updates)
        try:
            with self.connection() as db:
                cur = db.execute(
                    f"UPDATE HiveProduction SET {assignments} WHERE id = ?",
                    (*updates.values(), record_id),
                )
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to update production record %s: %s", record_id, exc)
            return False

    def delete_production_record(self, record_id: int) -> bool:
        try:
            with self.connection() as db:
                return db.execute("DELETE FROM HiveProduction WHERE id = ?", (record_id,)).rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to delete production record %s: %s", record_id, exc)
            return False

    def list_production_records(
        self,
        user_id: int,
        *,
        apiary_id: int | None = None,
        hive_id: str | None = None,
        year: int | None = None,
        since: str | None = None,
    ) -> list[dict[str, Any]]:
        query = "SELECT p.*, COALESCE(h.name, 'Unknown') AS hive_name, a.name AS apiary_name " + _OWNED_RECORDS
        params: list[Any] = [user_id]
        if apiary_id is not None:
            query += " AND p.apiary_id = ?"
            params.append(apiary_id)
        if hive_id is not None:
            query += " AND p.hive_id = ?"
            params.append(hive_id)
        if year is not None:
            query += " AND strftime('%Y', p.date) = ?"
            params.append(f"{int(year):04d}")
        if since is not None:
            query += " AND p.date >= ?"
            params.append(since)
        query += " ORDER BY p.date DESC, p.id DESC"
        try:
            db = self.get_db()
            return [dict(row) for row in db.execute(query, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("list_production_records failed for user %s: %s", user_id, exc)
            return []

    def sum_production(self, apiary_id: int, year: int, month: int | None = None) -> float:
        query = "SELECT COALESCE(SUM(amount), 0) FROM HiveProduction WHERE apiary_id = ? AND strftime('%Y', date) = ?"
        params: list[Any] = [apiary_id, f"{int(year):04d}"]
        if month is not None:
            query += " AND strftime('%m', date) = ?"
            params.append(f"{int(month):02d}")
        try:
            db = self.get_db()
            row = db.execute(query, params).fetchone()
            return float(row[0]) if row else 0.0
        except sqlite3.Error as exc:
            logger.error("sum_production failed for apiary %s: %s", apiary_id, exc)
            return 0.0

    def sum_production_between(self, user_id: int, start: str, end: str) -> float:
        """Total harvested by the user with ``start <= date < end``."""
        try:
            db = self.get_db()
            row = db.execute(
                "SELECT COALESCE(SUM(p.amount), 0) " + _OWNED_RECORDS + " AND p.date >= ? AND p.date < ?",
                (user_id, start, end),
            ).fetchone()
            return float(row[0]) if row else 0.0
        except sqlite3.Error as exc:
            logger.error("sum_production_between failed for user %s: %s", user_id, exc)
            return 0.0

    def production_by_hive(self, user_id: int, year: int | None = None) -> list[dict[str, Any]]:
        query = (
            "SELECT p.hive_id, COALESCE(h.name, 'Unknown') AS hive_name, p.apiary_id, "
            "SUM(p.amount) AS total, MAX(p.date) AS last_harvest " + _OWNED_RECORDS
        )
        params: list[Any] = [user_id]
        if year is not None:
            query += " AND strftime('%Y', p.date) = ?"
            params.append(f"{int(year):04d}")
        query += " GROUP BY p.hive_id ORDER BY total DESC"
        try:
            db = self.get_db()
            return [dict(row) for row in db.execute(query, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("production_by_hive failed for user %s: %s", user_id, exc)
            return []

    def last_harvest_dates(self, user_id: int) -> dict[str, str]:
        try:
            db = self.get_db()
            rows = db.execute(
                "SELECT p.hive_id, MAX(p.date) AS last_harvest " + _OWNED_RECORDS + " GROUP BY p.hive_id",
                (user_id,),
            ).fetchall()
            return {row["hive_id"]: row["last_harvest"] for row in rows}
        except sqlite3.Error as exc:
            logger.error("last_harvest_dates failed for user %s: %s", user_id, exc)
            return {}

    def monthly_totals(
        self, user_id: int, start: str, end: str, apiary_id: int | None = None
    ) -> dict[str, float]:
        """Map of "YYYY-MM" to total for records with ``start <= date < end``."""
        query = (
            "SELECT strftime('%Y-%m', p.date) AS ym, SUM(p.amount) AS total "
            + _OWNED_RECORDS
            + " AND p.date >= ? AND p.date < ?"
        )
        params: list[Any] = [user_id, start, end]
        if apiary_id is not None:
            query += " AND p.apiary_id = ?"
            params.append(apiary_id)
        try:
            db = self.get_db()
            rows = db.execute(query + " GROUP BY ym", params).fetchall()
            return {row["ym"]: float(row["total"] or 0) for row in rows}
        except sqlite3.Error as exc:
            logger.error("monthly_totals failed for user %s: %s", user_id, exc)
            return {}

    def count_production_records(self, user_id: int) -> int:
        try:
            db = self.get_db()
            row = db.execute("SELECT COUNT(*) " + _OWNED_RECORDS, (user_id,)).fetchone()
            return int(row[0]) if row else 0
        except sqlite3.Error as exc:
            logger.error("count_production_records failed for user %s: %s", user_id, exc)
            return 0

    # --- Summaries -------------------------------------------------------------
    def replace_production_summary(
        self,
        apiary_id: int,
        year: int,
        month: int | None,
        total_production: float,
        change_percent: float | None = None,
        avg_production: float | None = None,
    ) -> bool:
        try:
            with self.connection() as db:
                if month is None:
                    db.execute(
                        "DELETE FROM ProductionSummary WHERE apiary_id = ? AND year = ? AND month IS NULL",
                        (apiary_id, year),
                    )
                else:
                    db.execute(
                        "DELETE FROM ProductionSummary WHERE apiary_id = ? AND year = ? AND month = ?",
                        (apiary_id, year, month),
                    )
                db.execute(
                    """
                    INSERT INTO ProductionSummary
                        (apiary_id, year, month, total_production, change_percent, avg_production, updated_at)
                    VALUES (?, ?, ?, ?, ?, ?, ?)
                    """,
                    (apiary_id, year, month, total_production, change_percent, avg_production, iso_now()),
                )
            return True
        except sqlite3.Error as exc:
            logger.error("Failed to store production summary for apiary %s: %s", apiary_id, exc)
            return False

    def get_summary_rows(
        self,
        user_id: int,
        *,
        apiary_id: int | None = None,
        year: int | None = None,
        monthly: bool = False,
    ) -> list[dict[str, Any]]:
        query = """
            SELECT s.* FROM ProductionSummary s
            JOIN Apiaries a ON a.id = s.apiary_id
            WHERE a.user_id = ?
        """
        params: list[Any] = [user_id]
        query += " AND s.month IS NOT NULL" if monthly else " AND s.month IS NULL"
        if apiary_id is not None:
            query += " AND s.apiary_id = ?"
            params.append(apiary_id)
        if year is not None:
            query += " AND s.year = ?"
            params.append(year)
        query += " ORDER BY s.year ASC, s.month ASC"
        try:
            db = self.get_db()
            return [dict(row) for row in db.execute(query, params).fetchall()]
        except sqlite3.Error as exc:
            logger.error("get_summary_rows failed for user %s: %s", user_id, exc)
            return []
