"""Hive sensor readings: device ingestion, chart series and daily weight."""

import logging
from typing import Any, Dict, List, Optional

from app.domain.exceptions import NotFoundError, ServiceError, ValidationError
from app.utils.time import coerce_datetime, format_day_month, iso_days_ago, iso_now
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.metrics import MetricsRepository

logger = logging.getLogger(__name__)

# Public series name -> reading column
SERIES_COLUMNS = {
    "temperature": "temp_value",
    "humidity": "hum_value",
    "sound": "sound_value",
    "weight": "weight_value",
}

MAX_READINGS = 1000


def split_series(readings: List[Dict[str, Any]], *, time_key: str = "time") -> Dict[str, List[Dict[str, Any]]]:
    """Split readings into one ``[{time_key, value}]`` list per metric, skipping nulls."""
    series: Dict[str, List[Dict[str, Any]]] = {name: [] for name in SERIES_COLUMNS}
    for reading in readings:
        for name, column in SERIES_COLUMNS.items():
            value = reading.get(column)
            if value is not None:
                series[name].append({time_key: reading.get("timestamp"), "value": value})
    return series


class MetricsService:
    """Stores readings reported by hive devices and shapes them for charts."""

    def __init__(self, metrics_repo: MetricsRepository, hive_repo: HiveRepository):
        self.metrics_repo = metrics_repo
        self.hive_repo = hive_repo

    def ingest_reading(self, hive_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Store one device reading.

        Unregistered hive ids are accepted; a reading is what makes a hive id
        known to the system before its owner registers it.
        """
        hive_id = (hive_id or "").strip()
        if not hive_id:
            raise ValidationError("hive_id is required")

        values = {column: payload.get(column) for column in SERIES_COLUMNS.values()}
        if all(value is None for value in values.values()):
            raise ValidationError("At least one metric value is required")

        timestamp = payload.get("timestamp")
        if timestamp is None:
            stored_ts = iso_now()
        else:
            parsed = coerce_datetime(timestamp)
            if parsed is None:
                raise ValidationError("timestamp must be an ISO-8601 date-time")
            stored_ts = parsed.isoformat()

        reading_id = self.metrics_repo.create(hive_id, stored_ts, **values)
        if reading_id is None:
            raise ServiceError("Failed to store reading")
        logger.debug("Stored reading %s for hive %s", reading_id, hive_id)
        return {"id": reading_id, "hive_id": hive_id, "timestamp": stored_ts, **values}

    def _require_hive(self, user_id: int, hive_id: str) -> Dict[str, Any]:
        hive = self.hive_repo.get(hive_id, user_id)
        if not hive:
            raise NotFoundError(f"Hive {hive_id} not found")
        return hive

    def get_recent_readings(self, user_id: int, hive_id: str, limit: int = 24) -> List[Dict[str, Any]]:
        """Newest-first readings for a hive the user owns."""
        self._require_hive(user_id, hive_id)
        limit = min(MAX_READINGS, max(1, int(limit)))
        return self.metrics_repo.recent(hive_id, limit)

    def get_latest_reading(self, hive_id: str) -> Optional[Dict[str, Any]]:
        return self.metrics_repo.latest(hive_id)

    def get_chart_series(self, hive_id: str, limit: int = 24) -> Dict[str, List[Dict[str, Any]]]:
        """Latest ``limit`` readings in chronological order, split per metric."""
        readings = list(reversed(self.metrics_repo.recent(hive_id, limit)))
        return split_series(readings, time_key="time")

    def get_daily_weight(self, user_id: int, hive_id: str, days: int = 30) -> List[Dict[str, Any]]:
        """Weight readings for the last ``days`` with the change from the previous reading."""
        self._require_hive(user_id, hive_id)
        readings = self.metrics_repo.since(hive_id, iso_days_ago(max(1, int(days))))
        points: List[Dict[str, Any]] = []
        previous: Optional[float] = None
        for reading in readings:
            weight = reading.get("weight_value")
            if weight is None:
                continue
            weight = float(weight)
            change = 0.0 if previous is None else round(weight - previous, 1)
            points.append({"date": format_day_month(reading.get("timestamp")), "weight": weight, "change": change})
            previous = weight
        return points

    def purge_old_readings(self, retention_days: int) -> int:
        if retention_days < 1:
            raise ValidationError("retention_days must be at least 1")
        deleted = self.metrics_repo.purge_before(iso_days_ago(retention_days))
        if deleted:
            logger.info("Purged %d readings older than %d days", deleted, retention_days)
        return deleted
