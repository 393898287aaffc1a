from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from infrastructure.database.ops.metrics import MetricOperations


@dataclass(frozen=True)
class MetricsRepository:
    """Repository facade for hive sensor readings."""

    _backend: MetricOperations

    def create(
        self,
        hive_id: str,
        timestamp: str,
        *,
        temp_value: float | None = None,
        hum_value: float | None = None,
        sound_value: float | None = None,
        weight_value: float | None = None,
    ) -> int | None:
        return self._backend.insert_metric(hive_id, timestamp, temp_value, hum_value, sound_value, weight_value)

    def exists_for_hive(self, hive_id: str) -> bool:
        return self._backend.hive_has_metrics(hive_id)

    def recent(self, hive_id: str, limit: int = 24) -> list[dict[str, Any]]:
        return self._backend.get_recent_metrics(hive_id, limit)

    def latest(self, hive_id: str) -> dict[str, Any] | None:
        return self._backend.get_latest_metric(hive_id)

    def since(self, hive_id: str, since_iso: str) -> list[dict[str, Any]]:
        return self._backend.get_metrics_since(hive_id, since_iso)

    def purge_before(self, cutoff_iso: str) -> int:
        return self._backend.delete_metrics_before(cutoff_iso)
