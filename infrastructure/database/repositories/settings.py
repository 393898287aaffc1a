from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from infrastructure.database.ops.settings import SettingsOperations


@dataclass(frozen=True)
class SettingsRepository:
    """Repository facade for per-user settings, sharing and backups."""

    _backend: SettingsOperations

    def get_section(self, section: str, user_id: int) -> dict[str, Any] | None:
        return self._backend.get_settings_section(section, user_id)

    def update_section(self, section: str, user_id: int, values: dict[str, Any]) -> bool:
        return self._backend.update_settings_section(section, user_id, values)

    def thresholds_for_users(self, user_ids: list[int]) -> dict[int, dict[str, Any]]:
        return self._backend.get_alert_thresholds_for_users(user_ids)

    def list_shares(self, owner_id: int) -> list[dict[str, Any]]:
        return self._backend.list_shared_apiaries(owner_id)

    def create_share(self, apiary_id: int, owner_id: int, shared_with_id: int, permission: str) -> int | None:
        return self._backend.insert_shared_apiary(apiary_id, owner_id, shared_with_id, permission)

    def update_share(self, share_id: int, owner_id: int, permission: str) -> bool:
        return self._backend.update_shared_apiary(share_id, owner_id, permission)

    def delete_share(self, share_id: int, owner_id: int) -> bool:
        return self._backend.delete_shared_apiary(share_id, owner_id)

    def create_backup(self, user_id: int, file_path: str, size_bytes: int, **kwargs: Any) -> int | None:
        return self._backend.insert_backup(user_id, file_path, size_bytes, **kwargs)

    def list_backups(self, user_id: int, limit: int = 10) -> list[dict[str, Any]]:
        return self._backend.list_backups(user_id, limit)
