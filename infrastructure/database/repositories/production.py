from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from infrastructure.database.ops.production import ProductionOperations


@dataclass(frozen=True)
class ProductionRepository:
    """Repository facade for harvest records and production summaries."""

    _backend: ProductionOperations

    def create(self, user_id: int, fields: dict[str, Any]) -> int | None:
        return self._backend.insert_production_record(user_id, fields)

    def get(self, record_id: int, user_id: int) -> dict[str, Any] | None:
        return self._backend.get_production_record(record_id, user_id)

    def update(self, record_id: int, fields: dict[str, Any]) -> bool:
        return self._backend.update_production_record(record_id, fields)

    def delete(self, record_id: int) -> bool:
        return self._backend.delete_production_record(record_id)

    def list_records(self, user_id: int, **filters: Any) -> list[dict[str, Any]]:
        return self._backend.list_production_records(user_id, **filters)

    def count(self, user_id: int) -> int:
        return self._backend.count_production_records(user_id)

    def total(self, apiary_id: int, year: int, month: int | None = None) -> float:
        return self._backend.sum_production(apiary_id, year, month)

    def total_between(self, user_id: int, start: str, end: str) -> float:
        return self._backend.sum_production_between(user_id, start, end)

    def by_hive(self, user_id: int, year: int | None = None) -> list[dict[str, Any]]:
        return self._backend.production_by_hive(user_id, year)

    def last_harvests(self, user_id: int) -> dict[str, str]:
        return self._backend.last_harvest_dates(user_id)

    def monthly_totals(self, user_id: int, start: str, end: str, apiary_id: int | None = None) -> dict[str, float]:
        return self._backend.monthly_totals(user_id, start, end, apiary_id)

    def save_summary(
        self,
        apiary_id: int,
        year: int,
        month: int | None,
        total_production: float,
        change_percent: float | None = None,
        avg_production: float | None = None,
    ) -> bool:
        return self._backend.replace_production_summary(
            apiary_id, year, month, total_production, change_percent, avg_production
        )

    def summaries(
        self,
        user_id: int,
        *,
        apiary_id: int | None = None,
        year: int | None = None,
        monthly: bool = False,
    ) -> list[dict[str, Any]]:
        return self._backend.get_summary_rows(user_id, apiary_id=apiary_id, year=year, monthly=monthly)
