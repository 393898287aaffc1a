"""User settings, apiary sharing, backups and data export/import."""

import json
import logging
import os
import sqlite3
from typing import Any, Dict, List, Optional

from app.domain.exceptions import ConflictError, NotFoundError, ServiceError, ValidationError
from app.utils.time import iso_now, utc_now
from infrastructure.database.ops.settings import SETTINGS_SECTIONS
from infrastructure.database.repositories.apiaries import ApiaryRepository
from infrastructure.database.repositories.auth import AuthRepository
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.inspections import InspectionRepository
from infrastructure.database.repositories.production import ProductionRepository
from infrastructure.database.repositories.settings import SettingsRepository
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)

EXPORT_VERSION = "1.0"
EXPERIENCE_LEVELS = ("beginner", "intermediate", "advanced", "professional")
SHARE_PERMISSIONS = ("view", "edit", "admin")
THRESHOLD_METRICS = ("temperature", "humidity", "sound", "weight")

# Boolean columns per section, stored as 0/1
BOOLEAN_SETTINGS = {
    "preferences": ("high_contrast",),
    "notifications": ("email_enabled", "sms_enabled", "push_enabled"),
    "sharing": ("allow_data_analytics", "share_location", "activity_tracking"),
}

# Export payload key -> settings section
EXPORT_SECTIONS = {
    "profile": "profile",
    "preferences": "preferences",
    "notifications": "notifications",
    "alertThresholds": "alert_thresholds",
    "sharingPreferences": "sharing",
}


def human_size(num_bytes: int) -> str:
    size = float(num_bytes)
    for unit in ("B", "KB", "MB"):
        if size < 1024:
            return f"{size:.0f} {unit}" if unit == "B" else f"{size:.1f} {unit}"
        size /= 1024
    return f"{size:.1f} GB"


class SettingsService:
    """Per-user settings sections plus everything that moves a user's data around."""

    def __init__(
        self,
        settings_repo: SettingsRepository,
        auth_repo: AuthRepository,
        apiary_repo: ApiaryRepository,
        hive_repo: HiveRepository,
        inspection_repo: InspectionRepository,
        production_repo: ProductionRepository,
        *,
        backup_dir: str = "backups",
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.settings_repo = settings_repo
        self.auth_repo = auth_repo
        self.apiary_repo = apiary_repo
        self.hive_repo = hive_repo
        self.inspection_repo = inspection_repo
        self.production_repo = production_repo
        self.backup_dir = backup_dir
        self.audit_logger = audit_logger

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def get_section(self, user_id: int, section: str) -> Dict[str, Any]:
        """Return one settings section, created with defaults on first read."""
        if section not in SETTINGS_SECTIONS:
            raise NotFoundError(f"Unknown settings section: {section}")
        row = self.settings_repo.get_section(section, user_id)
        if row is None:
            raise ServiceError(f"Failed to load {section} settings")
        return self._public(section, row)

    def update_section(self, user_id: int, section: str, values: Dict[str, Any]) -> Dict[str, Any]:
        if section not in SETTINGS_SECTIONS:
            raise NotFoundError(f"Unknown settings section: {section}")
        _table, columns = SETTINGS_SECTIONS[section]
        updates = {key: value for key, value in values.items() if key in columns}
        self._validate(user_id, section, updates)
        if not self.settings_repo.update_section(section, user_id, updates):
            raise ServiceError(f"Failed to update {section} settings")
        logger.info("User %s updated %s settings (%s)", user_id, section, ", ".join(sorted(updates)) or "no changes")
        return self.get_section(user_id, section)

    def get_all(self, user_id: int) -> Dict[str, Any]:
        return {key: self.get_section(user_id, section) for key, section in EXPORT_SECTIONS.items()}

    def _validate(self, user_id: int, section: str, updates: Dict[str, Any]) -> None:
        if section == "profile":
            level = updates.get("experience_level")
            if level is not None and level not in EXPERIENCE_LEVELS:
                raise ValidationError(f"experience_level must be one of {', '.join(EXPERIENCE_LEVELS)}")
        elif section == "alert_thresholds":
            merged = dict(self.settings_repo.get_section(section, user_id) or {})
            merged.update(updates)
            for metric in THRESHOLD_METRICS:
                low, high = merged.get(f"{metric}_min"), merged.get(f"{metric}_max")
                if low is not None and high is not None and float(low) >= float(high):
                    raise ValidationError(f"{metric} minimum must be below its maximum")
        elif section == "sharing":
            permission = updates.get("default_sharing_permission")
            if permission is not None and permission not in SHARE_PERMISSIONS:
                raise ValidationError(f"Invalid sharing permission: {permission}")

    @staticmethod
    def _public(section: str, row: Dict[str, Any]) -> Dict[str, Any]:
        item = {key: value for key, value in row.items() if key != "user_id"}
        for key in BOOLEAN_SETTINGS.get(section, ()):
            if item.get(key) is not None:
                item[key] = bool(item[key])
        return item

    # ------------------------------------------------------------------
    # Sharing
    # ------------------------------------------------------------------

    def list_shared_apiaries(self, user_id: int) -> List[Dict[str, Any]]:
        return self.settings_repo.list_shares(user_id)

    def share_apiary(self, user_id: int, apiary_id: int, username: str, permission: str = "view") -> Dict[str, Any]:
        if permission not in SHARE_PERMISSIONS:
            raise ValidationError(f"Invalid sharing permission: {permission}")
        if not self.apiary_repo.get(apiary_id, user_id):
            raise NotFoundError(f"Apiary {apiary_id} not found")
        target = self.auth_repo.get_user_auth_by_username(username or "")
        if not target:
            raise NotFoundError(f"User {username} not found")
        if target["id"] == user_id:
            raise ValidationError("You cannot share an apiary with yourself")

        try:
            share_id = self.settings_repo.create_share(apiary_id, user_id, target["id"], permission)
        except sqlite3.IntegrityError as exc:
            raise ConflictError(f"Apiary is already shared with {username}") from exc
        if share_id is None:
            raise ServiceError("Failed to share apiary")
        logger.info("User %s shared apiary %s with %s (%s)", user_id, apiary_id, username, permission)
        return next(share for share in self.settings_repo.list_shares(user_id) if share["id"] == share_id)

    def update_share_permission(self, user_id: int, share_id: int, permission: str) -> bool:
        if permission not in SHARE_PERMISSIONS:
            raise ValidationError(f"Invalid sharing permission: {permission}")
        if not self.settings_repo.update_share(share_id, user_id, permission):
            raise NotFoundError(f"Share {share_id} not found")
        return True

    def remove_share(self, user_id: int, share_id: int) -> bool:
        if not self.settings_repo.delete_share(share_id, user_id):
            raise NotFoundError(f"Share {share_id} not found")
        return True

    # ------------------------------------------------------------------
    # Export / import / backups
    # ------------------------------------------------------------------

    def export_user_data(self, user_id: int) -> Dict[str, Any]:
        data: Dict[str, Any] = {key: self.get_section(user_id, section) for key, section in EXPORT_SECTIONS.items()}
        data["apiaries"] = self.apiary_repo.list_all(user_id)
        data["hives"] = self.hive_repo.list_for_user(user_id)
        data["inspections"] = self.inspection_repo.list_filtered(user_id)
        data["harvests"] = self.production_repo.list_records(user_id)
        data["exportDate"] = iso_now()
        data["version"] = EXPORT_VERSION
        return data

    def import_user_data(self, user_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
        """Restore settings sections from an export; entity rows are not re-created."""
        if not isinstance(data, dict) or not data.get("version") or not data.get("profile"):
            raise ValidationError("Invalid import file: version and profile are required")

        imported = []
        for key, section in EXPORT_SECTIONS.items():
            values = data.get(key)
            if not isinstance(values, dict):
                continue
            self.update_section(user_id, section, values)
            imported.append(section)

        self._audit(user_id, "import", "settings", imported=imported, version=data["version"])
        return {"imported": imported}

    def create_backup(self, user_id: int) -> Dict[str, Any]:
        payload = json.dumps(self.export_user_data(user_id), default=str, indent=2)
        user_dir = os.path.join(self.backup_dir, str(user_id))
        file_path = os.path.join(user_dir, f"{utc_now().strftime('%Y%m%dT%H%M%SZ')}.json")
        try:
            os.makedirs(user_dir, exist_ok=True)
            with open(file_path, "w", encoding="utf-8") as handle:
                handle.write(payload)
        except OSError as exc:
            logger.error("Backup for user %s failed: %s", user_id, exc)
            raise ServiceError("Failed to write backup file") from exc

        size = len(payload.encode("utf-8"))
        backup_id = self.settings_repo.create_backup(user_id, file_path, size, backup_type="manual", status="completed")
        if backup_id is None:
            raise ServiceError("Failed to record backup")
        self._audit(user_id, "backup", f"backup:{backup_id}", size_bytes=size)
        return {"id": backup_id, "file_path": file_path, "size_bytes": size, "size": human_size(size)}

    def get_backup_history(self, user_id: int) -> List[Dict[str, Any]]:
        return [dict(row, size=human_size(row.get("size_bytes") or 0)) for row in self.settings_repo.list_backups(user_id)]

    def get_database_stats(self, user_id: int) -> Dict[str, Any]:
        """Row counts plus the size of the user's data as it would be exported."""
        export = self.export_user_data(user_id)
        size = len(json.dumps(export, default=str).encode("utf-8"))
        return {
            "apiariesCount": len(export["apiaries"]),
            "hivesCount": len(export["hives"]),
            "inspectionsCount": len(export["inspections"]),
            "harvestsCount": len(export["harvests"]),
            "storageUsed": human_size(size),
            "storageBytes": size,
        }

    def _audit(self, user_id: int, action: str, resource: str, **meta: Any) -> None:
        if self.audit_logger:
            self.audit_logger.log_event(actor=str(user_id), action=action, resource=resource, outcome="success", **meta)
