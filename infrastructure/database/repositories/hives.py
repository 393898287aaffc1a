from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from infrastructure.database.ops.hives import HiveOperations


@dataclass(frozen=True)
class HiveRepository:
    """Repository facade for hive operations."""

    _backend: HiveOperations

    def list_for_user(self, user_id: int, apiary_id: int | None = None) -> list[dict[str, Any]]:
        return self._backend.list_hives(user_id, apiary_id)

    def hive_ids_by_apiary(self, apiary_ids: list[int]) -> dict[int, list[str]]:
        return self._backend.list_hive_ids_for_apiaries(apiary_ids)

    def list_alert_enabled(self) -> list[dict[str, Any]]:
        return self._backend.list_alert_enabled_hives()

    def get(self, hive_id: str, user_id: int | None = None) -> dict[str, Any] | None:
        return self._backend.get_hive(hive_id, user_id)

    def create(self, hive_id: str, user_id: int, fields: dict[str, Any]) -> bool:
        return self._backend.insert_hive(hive_id, user_id, fields)

    def update(self, hive_id: str, user_id: int, fields: dict[str, Any]) -> bool:
        return self._backend.update_hive(hive_id, user_id, fields)

    def delete(self, hive_id: str, user_id: int) -> bool:
        return self._backend.delete_hive(hive_id, user_id)

    def count(self, user_id: int) -> int:
        return self._backend.count_hives(user_id)
