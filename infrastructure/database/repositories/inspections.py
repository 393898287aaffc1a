from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from infrastructure.database.ops.inspections import InspectionOperations
from infrastructure.database.pagination import PaginationParams


@dataclass(frozen=True)
class InspectionRepository:
    """Repository facade for inspections and their findings."""

    _backend: InspectionOperations

    def count(self, user_id: int) -> int:
        return self._backend.count_inspections(user_id)

    def list_page(self, user_id: int, params: PaginationParams) -> list[dict[str, Any]]:
        return self._backend.list_inspections_page(user_id, params)

    def list_filtered(self, user_id: int, **filters: Any) -> list[dict[str, Any]]:
        return self._backend.list_inspections(user_id, **filters)

    def get(self, inspection_id: int, user_id: int) -> dict[str, Any] | None:
        return self._backend.get_inspection(inspection_id, user_id)

    def get_findings(self, inspection_id: int) -> dict[str, Any] | None:
        return self._backend.get_findings(inspection_id)

    def create(self, user_id: int, fields: dict[str, Any], findings: dict[str, Any] | None = None) -> int | None:
        return self._backend.insert_inspection(user_id, fields, findings)

    def update(
        self,
        inspection_id: int,
        user_id: int,
        fields: dict[str, Any],
        findings: dict[str, Any] | None = None,
    ) -> bool:
        return self._backend.update_inspection(inspection_id, user_id, fields, findings)

    def delete(self, inspection_id: int, user_id: int) -> bool:
        return self._backend.delete_inspection(inspection_id, user_id)
