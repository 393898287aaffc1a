"""Apiary management with per-apiary hive counts and metric averages."""

import logging
from typing import Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ServiceError, ValidationError
from infrastructure.database.pagination import PaginatedResponse, PaginationParams
from infrastructure.database.repositories.apiaries import ApiaryRepository
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.metrics import MetricsRepository

logger = logging.getLogger(__name__)

# Readings per hive used for the apiary card averages
AVERAGE_WINDOW = 25


def _mean(values: List[float]) -> Optional[float]:
    return sum(values) / len(values) if values else None


class ApiaryService:
    """CRUD over apiaries owned by the session user."""

    def __init__(
        self,
        apiary_repo: ApiaryRepository,
        hive_repo: HiveRepository,
        metrics_repo: MetricsRepository,
    ):
        self.apiary_repo = apiary_repo
        self.hive_repo = hive_repo
        self.metrics_repo = metrics_repo

    def list_apiaries(self, user_id: int, page: Any = 1, page_size: Any = 10) -> Dict[str, Any]:
        """Page of apiaries ordered by name, each enriched with hive stats.

        Returns:
            ``{data, count, page, pageSize, totalPages}``
        """
        params = PaginationParams.from_request(page, page_size)
        count = self.apiary_repo.count(user_id)
        rows = self.apiary_repo.list_page(user_id, params)
        return PaginatedResponse(
            items=self._enrich(rows),
            count=count,
            page=params.page,
            page_size=params.page_size,
        ).to_dict()

    def list_all(self, user_id: int) -> List[Dict[str, Any]]:
        return self._enrich(self.apiary_repo.list_all(user_id))

    def _enrich(self, apiaries: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
        if not apiaries:
            return []
        apiary_ids = [row["id"] for row in apiaries]
        hive_ids = self.hive_repo.hive_ids_by_apiary(apiary_ids)

        enriched = []
        for apiary in apiaries:
            hives = hive_ids.get(apiary["id"], [])
            item = dict(apiary)
            item["hiveCount"] = len(hives)
            item.update(self._metric_averages(hives))
            enriched.append(item)
        return enriched

    def _metric_averages(self, hive_ids: List[str]) -> Dict[str, Any]:
        """Averages over the last ``AVERAGE_WINDOW`` readings of each hive, skipping nulls."""
        buckets: Dict[str, List[float]] = {"temp_value": [], "hum_value": [], "sound_value": [], "weight_value": []}
        for hive_id in hive_ids:
            for reading in self.metrics_repo.recent(hive_id, AVERAGE_WINDOW):
                for column, values in buckets.items():
                    if reading.get(column) is not None:
                        values.append(float(reading[column]))

        temperature = _mean(buckets["temp_value"])
        humidity = _mean(buckets["hum_value"])
        sound = _mean(buckets["sound_value"])
        weight = _mean(buckets["weight_value"])
        return {
            "avgTemperature": round(temperature, 1) if temperature is not None else None,
            "avgHumidity": round(humidity) if humidity is not None else None,
            "avgSound": round(sound) if sound is not None else None,
            "avgWeight": round(weight, 1) if weight is not None else None,
        }

    def get_apiary(self, user_id: int, apiary_id: int) -> Dict[str, Any]:
        apiary = self.apiary_repo.get(apiary_id, user_id)
        if not apiary:
            raise NotFoundError(f"Apiary {apiary_id} not found")
        return self._enrich([apiary])[0]

    def create_apiary(self, user_id: Optional[int], payload: Dict[str, Any]) -> Dict[str, Any]:
        if user_id is None:
            raise ValidationError("User must be authenticated to add an apiary")
        if not (payload.get("name") or "").strip():
            raise ValidationError("Apiary name is required")
        if not (payload.get("location") or "").strip():
            raise ValidationError("Apiary location is required")

        fields = dict(payload)
        fields["name"] = fields["name"].strip()
        fields["location"] = fields["location"].strip()
        apiary_id = self.apiary_repo.create(user_id, fields)
        if apiary_id is None:
            raise ServiceError("Failed to create apiary")
        logger.info("User %s created apiary %s (%s)", user_id, apiary_id, fields["name"])
        return self.get_apiary(user_id, apiary_id)

    def update_apiary(self, user_id: int, apiary_id: int, payload: Dict[str, Any]) -> Dict[str, Any]:
        self.get_apiary(user_id, apiary_id)
        for key in ("name", "location"):
            if key in payload and not (payload[key] or "").strip():
                raise ValidationError(f"Apiary {key} cannot be empty")
        if not self.apiary_repo.update(apiary_id, user_id, payload):
            raise ServiceError("Failed to update apiary")
        return self.get_apiary(user_id, apiary_id)

    def delete_apiary(self, user_id: int, apiary_id: int) -> bool:
        self.get_apiary(user_id, apiary_id)
        if not self.apiary_repo.delete(apiary_id, user_id):
            raise ServiceError("Failed to delete apiary")
        logger.info("User %s deleted apiary %s", user_id, apiary_id)
        return True
