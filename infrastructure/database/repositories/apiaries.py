from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from infrastructure.database.ops.apiaries import ApiaryOperations
from infrastructure.database.pagination import PaginationParams


@dataclass(frozen=True)
class ApiaryRepository:
    """Repository facade for apiary operations."""

    _backend: ApiaryOperations

    def count(self, user_id: int) -> int:
        return self._backend.count_apiaries(user_id)

    def list_page(self, user_id: int, params: PaginationParams) -> list[dict[str, Any]]:
        return self._backend.list_apiaries_page(user_id, params)

    def list_all(self, user_id: int) -> list[dict[str, Any]]:
        return self._backend.list_all_apiaries(user_id)

    def get(self, apiary_id: int, user_id: int | None = None) -> dict[str, Any] | None:
        return self._backend.get_apiary(apiary_id, user_id)

    def create(self, user_id: int, fields: dict[str, Any]) -> int | None:
        return self._backend.insert_apiary(user_id, fields)

    def update(self, apiary_id: int, user_id: int, fields: dict[str, Any]) -> bool:
        return self._backend.update_apiary(apiary_id, user_id, fields)

    def delete(self, apiary_id: int, user_id: int) -> bool:
        return self._backend.delete_apiary(apiary_id, user_id)

    def hive_counts(self, apiary_ids: list[int]) -> dict[int, int]:
        return self._backend.count_hives_by_apiary(apiary_ids)
