from __future__ import annotations

import logging
import sqlite3
from typing import Any

from app.utils.time import iso_now

logger = logging.getLogger(__name__)

# Table and writable columns for each per-user settings section.
SETTINGS_SECTIONS: dict[str, tuple[str, tuple[str, ...]]] = {
    "profile": (
        "UserProfiles",
        ("first_name", "last_name", "email", "phone", "bio", "experience_level", "profile_image_url"),
    ),
    "preferences": (
        "UserPreferences",
        ("theme", "language", "font_size", "high_contrast", "temperature_unit", "weight_unit", "date_format"),
    ),
    "notifications": (
        "NotificationPreferences",
        ("email_enabled", "sms_enabled", "push_enabled", "quiet_hours_start", "quiet_hours_end"),
    ),
    "alert_thresholds": (
        "AlertThresholds",
        (
            "temperature_min",
            "temperature_max",
            "humidity_min",
            "humidity_max",
            "sound_min",
            "sound_max",
            "weight_min",
            "weight_max",
        ),
    ),
    "sharing": (
        "SharingPreferences",
        (
            "default_sharing_permission",
            "allow_data_analytics",
            "share_location",
            "profile_visibility",
            "production_data_visibility",
            "activity_tracking",
        ),
    ),
}


class SettingsOperations:
    """Per-user settings, apiary sharing and backup bookkeeping."""

    # --- Settings sections -----------------------------------------------------
    def get_settings_section(self, section: str, user_id: int) -> dict[str, Any] | None:
        """Return a settings row, creating it from column defaults on first read."""
        table, _columns = SETTINGS_SECTIONS[section]
        try:
            with self.connection() as db:
                row = db.execute(f"SELECT * FROM {table} WHERE user_id = ?", (user_id,)).fetchone()
                if row is None:
                    db.execute(
                        f"INSERT OR IGNORE INTO {table} (user_id, updated_at) VALUES (?, ?)",
                        (user_id, iso_now()),
                    )
                    row = db.execute(f"SELECT * FROM {table} WHERE user_id = ?", (user_id,)).fetchone()
                return dict(row) if row else None
        except sqlite3.Error as exc:
            logger.error("Failed to load %s settings for user %s: %s", section, user_id, exc)
            return None

    def update_settings_section(self, section: str, user_id: int, values: dict[str, Any]) -> bool:
        table, columns = SETTINGS_SECTIONS[section]
        updates = {
            key: int(value) if isinstance(value, bool) else value for key, value in values.items() if key in columns
        }
        if self.get_settings_section(section, user_id) is None:
            return False
        if not updates:
            return True
        assignments = ", ".join(f"{column} = ?" for column in updates)
        try:
            with self.connection() as db:
                db.execute(
                    f"UPDATE {table} SET {assignments}, updated_at = ? WHERE user_id = ?",
                    (*updates.values(), iso_now(), user_id),
                )
            return True
        except sqlite3.Error as exc:
            logger.error("Failed to update %s settings for user %s: %s", section, user_id, exc)
            return False

    def get_alert_thresholds_for_users(self, user_ids: list[int]) -> dict[int, dict[str, Any]]:
        """Stored thresholds keyed by user; users without a row are absent."""
        if not user_ids:
            return {}
        placeholders = ", ".join("?" for _ in user_ids)
        try:
            db = self.get_db()
            rows = db.execute(f"SELECT * FROM AlertThresholds WHERE user_id IN ({placeholders})", user_ids).fetchall()
            return {row["user_id"]: dict(row) for row in rows}
        except sqlite3.Error as exc:
            logger.error("get_alert_thresholds_for_users failed: %s", exc)
            return {}

    # --- Apiary sharing --------------------------------------------------------
    def list_shared_apiaries(self, owner_id: int) -> list[dict[str, Any]]:
        try:
            db = self.get_db()
            rows = db.execute(
                """
                SELECT s.*, a.name AS apiary_name, u.username AS shared_with_username
                FROM SharedApiaries s
                JOIN Apiaries a ON a.id = s.apiary_id
                JOIN Users u ON u.id = s.shared_with_id
                WHERE s.owner_id = ?
                ORDER BY a.name COLLATE NOCASE, u.username
                """,
                (owner_id,),
            ).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("list_shared_apiaries failed for user %s: %s", owner_id, exc)
            return []

    def insert_shared_apiary(self, apiary_id: int, owner_id: int, shared_with_id: int, permission: str) -> int | None:
        try:
            with self.connection() as db:
                cur = db.execute(
                    """
                    INSERT INTO SharedApiaries (apiary_id, owner_id, shared_with_id, permission, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (apiary_id, owner_id, shared_with_id, permission, iso_now()),
                )
                return cur.lastrowid
        except sqlite3.IntegrityError:
            raise
        except sqlite3.Error as exc:
            logger.error("Failed to share apiary %s: %s", apiary_id, exc)
            return None

    def update_shared_apiary(self, share_id: int, owner_id: int, permission: str) -> bool:
        try:
            with self.connection() as db:
                cur = db.execute(
                    "UPDATE SharedApiaries SET permission = ? WHERE id = ? AND owner_id = ?",
                    (permission, share_id, owner_id),
                )
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to update share %s: %s", share_id, exc)
            return False

    def delete_shared_apiary(self, share_id: int, owner_id: int) -> bool:
        try:
            with self.connection() as db:
                cur = db.execute("DELETE FROM SharedApiaries WHERE id = ? AND owner_id = ?", (share_id, owner_id))
                return cur.rowcount > 0
        except sqlite3.Error as exc:
            logger.error("Failed to remove share %s: %s", share_id, exc)
            return False

    # --- Backups ---------------------------------------------------------------
    def insert_backup(
        self,
        user_id: int,
        file_path: str,
        size_bytes: int,
        *,
        backup_type: str = "manual",
        status: str = "completed",
        created_at: str | None = None,
    ) -> int | None:
        try:
            with self.connection() as db:
                cur = db.execute(
                    """
                    INSERT INTO Backups (user_id, backup_type, status, file_path, size_bytes, created_at)
                    VALUES (?, ?, ?, ?, ?, ?)
                    """,
                    (user_id, backup_type, status, file_path, size_bytes, created_at or iso_now()),
                )
                return cur.lastrowid
        except sqlite3.Error as exc:
            logger.error("Failed to record backup for user %s: %s", user_id, exc)
            return None

    def list_backups(self, user_id: int, limit: int = 10) -> list[dict[str, Any]]:
        try:
            db = self.get_db()
            rows = db.execute(
                """
                SELECT * FROM Backups
                WHERE user_id = ? AND status = 'completed'
                ORDER BY created_at DESC, id DESC LIMIT ?
                """,
                (user_id, limit),
            ).fetchall()
            return [dict(row) for row in rows]
        except sqlite3.Error as exc:
            logger.error("list_backups failed for user %s: %s", user_id, exc)
            return []
