"""Dashboard Aggregation Service
================================

Builds the dashboard payload from the apiary, hive, alert, inspection and
production services so the dashboard route only deals with HTTP concerns.
"""

from __future__ import annotations

import logging
from typing import Any

from app.utils.cache import TTLCache

logger = logging.getLogger(__name__)

HIVE_HEALTHY = "healthy"
HIVE_WARNING = "warning"
HIVE_CRITICAL = "critical"

# Open alert severity -> hive status, strongest first
_STATUS_BY_SEVERITY = (("high", HIVE_CRITICAL), ("medium", HIVE_WARNING))

SUMMARY_CACHE_TTL = 30
UPCOMING_LIMIT = 5


def hive_status(open_alerts: list[dict[str, Any]]) -> str:
    """``critical`` with an open high alert, ``warning`` with an open medium one."""
    severities = {alert.get("severity") for alert in open_alerts if not alert.get("resolved_at")}
    for severity, status in _STATUS_BY_SEVERITY:
        if severity in severities:
            return status
    return HIVE_HEALTHY


class DashboardService:
    """Aggregate dashboard data across the per-domain services.

    Takes the application *ServiceContainer* so each section can reach the
    service it needs without threading every one through the constructor.
    """

    def __init__(self, container: Any, cache: TTLCache | None = None) -> None:
        self._c = container
        self._summary_cache = cache or TTLCache(enabled=True, ttl_seconds=SUMMARY_CACHE_TTL, maxsize=64)

    def get_summary(self, user_id: int, *, use_cache: bool = True) -> dict[str, Any]:
        if not use_cache:
            return self._build_summary(user_id)
        return self._summary_cache.get(user_id, lambda: self._build_summary(user_id))

    def invalidate(self, user_id: int) -> None:
        self._summary_cache.invalidate(user_id)

    def _build_summary(self, user_id: int) -> dict[str, Any]:
        hives = self._c.hive_repo.list_for_user(user_id)
        open_alerts = self._c.alert_service.list_alerts(user_id)

        alerts_by_hive: dict[str, list[dict[str, Any]]] = {}
        for alert in open_alerts:
            alerts_by_hive.setdefault(alert["hive_id"], []).append(alert)

        hives_by_apiary: dict[Any, list[dict[str, Any]]] = {}
        status_counts = {HIVE_HEALTHY: 0, HIVE_WARNING: 0, HIVE_CRITICAL: 0}
        for hive in hives:
            status = hive_status(alerts_by_hive.get(hive["hive_id"], []))
            status_counts[status] += 1
            hives_by_apiary.setdefault(hive.get("apiary_id"), []).append(
                {
                    "hive_id": hive["hive_id"],
                    "name": hive["name"],
                    "status": status,
                    "latestReading": self._c.metrics_service.get_latest_reading(hive["hive_id"]),
                    "openAlerts": len(alerts_by_hive.get(hive["hive_id"], [])),
                }
            )

        apiaries = []
        for apiary in self._c.apiary_service.list_all(user_id):
            item = dict(apiary)
            item["hives"] = hives_by_apiary.get(apiary["id"], [])
            apiaries.append(item)

        unassigned = hives_by_apiary.get(None, [])
        if unassigned:
            logger.debug("User %s has %d hives without an apiary", user_id, len(unassigned))

        return {
            "apiaries": apiaries,
            "unassignedHives": unassigned,
            "hiveStatus": status_counts,
            "activeAlerts": {"count": len(open_alerts), "items": open_alerts[:10]},
            "upcomingInspections": self._c.inspection_service.list_upcoming(user_id)[:UPCOMING_LIMIT],
            "productionSummary": self._c.production_service.get_summary(user_id),
        }
