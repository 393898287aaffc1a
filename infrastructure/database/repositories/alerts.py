from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from infrastructure.database.ops.alerts import AlertOperations


@dataclass(frozen=True)
class AlertRepository:
    """Repository facade for alert operations."""

    _backend: AlertOperations

    def find_open(self, hive_id: str, alert_type: str) -> dict[str, Any] | None:
        return self._backend.find_open_alert(hive_id, alert_type)

    def get_by_id(self, alert_id: int, user_id: int | None = None) -> dict[str, Any] | None:
        return self._backend.get_alert_by_id(alert_id, user_id)

    def create(
        self,
        hive_id: str,
        alert_type: str,
        message: str,
        severity: str,
        created_at: str | None = None,
    ) -> int | None:
        return self._backend.insert_alert(hive_id, alert_type, message, severity, created_at)

    def list_for_user(self, user_id: int, **filters: Any) -> list[dict[str, Any]]:
        return self._backend.list_alerts(user_id, **filters)

    def resolve(self, alert_id: int) -> bool:
        return self._backend.resolve_alert(alert_id)

    def resolve_all(self, user_id: int, hive_id: str | None = None) -> int:
        return self._backend.resolve_all_alerts(user_id, hive_id)

    def mark_read(self, alert_id: int) -> bool:
        return self._backend.mark_alert_read(alert_id)

    def count_active(self, user_id: int) -> int:
        return self._backend.count_active_alerts(user_id)

    def summary(self, user_id: int) -> dict[str, Any]:
        return self._backend.get_alert_summary(user_id)

    def purge_old(self, cutoff_iso: str, resolved_only: bool = True) -> int:
        return self._backend.purge_old_alerts(cutoff_iso, resolved_only)
