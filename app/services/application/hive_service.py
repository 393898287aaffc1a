"""Hive registration and hive detail views."""

import logging
import sqlite3
from typing import Any, Dict, List, Optional

from app.domain.exceptions import ConflictError, NotFoundError, ServiceError, ValidationError
from app.services.application.metrics_service import split_series
from app.utils.time import coerce_date_string
from infrastructure.database.repositories.alerts import AlertRepository
from infrastructure.database.repositories.apiaries import ApiaryRepository
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.metrics import MetricsRepository
from infrastructure.logging.audit import AuditLogger

logger = logging.getLogger(__name__)

# Readings attached to each hive card
CARD_READINGS = 24
DETAIL_READINGS = 200
DETAIL_ALERTS = 10

DATE_FIELDS = ("installation_date", "queen_introduced_date")
BOOL_FIELDS = ("queen_marked", "alerts_enabled")

MSG_LOGIN_REQUIRED = "You must be logged in to register a hive"
MSG_UNKNOWN_HIVE = "This hive ID does not exist in our system"
MSG_ALREADY_YOURS = "You have already registered this hive"
MSG_OTHER_OWNER = "This hive is already registered to another user"
MSG_ALREADY_REGISTERED = "This hive ID is already registered"
MSG_CHECK_FAILED = "Error checking hive ID"


class HiveService:
    """Registers device-backed hives to users and builds hive views."""

    def __init__(
        self,
        hive_repo: HiveRepository,
        apiary_repo: ApiaryRepository,
        metrics_repo: MetricsRepository,
        alert_repo: AlertRepository,
        audit_logger: Optional[AuditLogger] = None,
    ):
        self.hive_repo = hive_repo
        self.apiary_repo = apiary_repo
        self.metrics_repo = metrics_repo
        self.alert_repo = alert_repo
        self.audit_logger = audit_logger

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------

    def list_hives(self, user_id: int, apiary_id: Optional[int] = None) -> List[Dict[str, Any]]:
        """Hives with chart series of the latest readings and their open alerts."""
        if apiary_id is not None and not self.apiary_repo.get(apiary_id, user_id):
            raise NotFoundError(f"Apiary {apiary_id} not found")
        hives = self.hive_repo.list_for_user(user_id, apiary_id)
        return [self._with_metrics(user_id, hive) for hive in hives]

    def _with_metrics(self, user_id: int, hive: Dict[str, Any]) -> Dict[str, Any]:
        item = self._public(hive)
        readings = list(reversed(self.metrics_repo.recent(hive["hive_id"], CARD_READINGS)))
        item["metrics"] = split_series(readings, time_key="time")
        item["alerts"] = self.alert_repo.list_for_user(user_id, hive_id=hive["hive_id"])
        return item

    def get_hive(self, user_id: int, hive_id: str) -> Dict[str, Any]:
        hive = self.hive_repo.get(hive_id, user_id)
        if not hive:
            raise NotFoundError(f"Hive {hive_id} not found")
        return self._with_metrics(user_id, hive)

    def get_hive_details(self, user_id: int, hive_id: str) -> Dict[str, Any]:
        """Newest-first reading history and the most recent alerts of a hive."""
        hive = self.hive_repo.get(hive_id, user_id)
        if not hive:
            raise NotFoundError(f"Hive {hive_id} not found")
        readings = self.metrics_repo.recent(hive_id, DETAIL_READINGS)
        alerts = self.alert_repo.list_for_user(user_id, hive_id=hive_id, include_resolved=True, limit=DETAIL_ALERTS)
        return {
            "hive": self._public(hive),
            "metrics": split_series(readings, time_key="timestamp"),
            "alerts": [
                {
                    "id": alert["id"],
                    "type": alert["type"],
                    "message": alert["message"],
                    "timestamp": alert["created_at"],
                    "severity": alert["severity"],
                }
                for alert in alerts
            ],
        }

    def check_hive_availability(self, user_id: Optional[int], hive_id: str) -> Dict[str, Any]:
        """Whether ``hive_id`` can be registered by the user.

        Returns:
            ``{exists, available, error}``; ``exists`` means devices have reported it.
        """
        hive_id = (hive_id or "").strip()
        if user_id is None:
            return {"exists": False, "available": False, "error": MSG_LOGIN_REQUIRED}
        try:
            if not hive_id or not self.metrics_repo.exists_for_hive(hive_id):
                return {"exists": False, "available": False, "error": MSG_UNKNOWN_HIVE}
            existing = self.hive_repo.get(hive_id)
        except sqlite3.Error as exc:
            logger.error("Hive availability check failed for %s: %s", hive_id, exc)
            return {"exists": False, "available": False, "error": MSG_CHECK_FAILED}

        if existing:
            message = MSG_ALREADY_YOURS if existing.get("user_id") == user_id else MSG_OTHER_OWNER
            return {"exists": True, "available": False, "error": message}
        return {"exists": True, "available": True, "error": None}

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def register_hive(self, user_id: Optional[int], payload: Dict[str, Any]) -> Dict[str, Any]:
        if user_id is None:
            raise ValidationError(MSG_LOGIN_REQUIRED)
        hive_id = (payload.get("hive_id") or "").strip()
        if not hive_id:
            raise ValidationError("hive_id is required")
        if not (payload.get("name") or "").strip():
            raise ValidationError("Hive name is required")
        if not self.metrics_repo.exists_for_hive(hive_id):
            raise ValidationError(MSG_UNKNOWN_HIVE)
        if self.hive_repo.get(hive_id):
            raise ConflictError(MSG_ALREADY_REGISTERED)

        fields = self._normalise(payload)
        fields.setdefault("queen_marked", 0)
        fields.setdefault("alerts_enabled", 1)
        self._check_apiary(user_id, fields.get("apiary_id"))

        if not self.hive_repo.create(hive_id, user_id, fields):
            # Lost a race with another registration of the same device
            if self.hive_repo.get(hive_id):
                raise ConflictError(MSG_ALREADY_REGISTERED)
            raise ServiceError("Failed to register hive")

        logger.info("User %s registered hive %s", user_id, hive_id)
        if self.audit_logger:
            self.audit_logger.log_event(
                actor=str(user_id), action="register", resource=f"hive:{hive_id}", outcome="success"
            )
        return self.get_hive(user_id, hive_id)

    def update_hive(self, user_id: int, hive_id: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        if not self.hive_repo.get(hive_id, user_id):
            raise NotFoundError(f"Hive {hive_id} not found")
        if "name" in payload and not (payload["name"] or "").strip():
            raise ValidationError("Hive name cannot be empty")
        fields = self._normalise(payload)
        if "apiary_id" in fields:
            self._check_apiary(user_id, fields["apiary_id"])
        if not self.hive_repo.update(hive_id, user_id, fields):
            raise ServiceError("Failed to update hive")
        return self.get_hive(user_id, hive_id)

    def delete_hive(self, user_id: int, hive_id: str) -> bool:
        """Unregister a hive. Device readings are kept so it can be registered again."""
        if not self.hive_repo.get(hive_id, user_id):
            raise NotFoundError(f"Hive {hive_id} not found")
        if not self.hive_repo.delete(hive_id, user_id):
            raise ServiceError("Failed to delete hive")
        logger.info("User %s deleted hive %s", user_id, hive_id)
        if self.audit_logger:
            self.audit_logger.log_event(
                actor=str(user_id), action="delete", resource=f"hive:{hive_id}", outcome="success"
            )
        return True

    # ------------------------------------------------------------------
    # Helpers
    # ------------------------------------------------------------------

    def _check_apiary(self, user_id: int, apiary_id: Any) -> None:
        if apiary_id is not None and not self.apiary_repo.get(int(apiary_id), user_id):
            raise NotFoundError(f"Apiary {apiary_id} not found")

    @staticmethod
    def _normalise(payload: Dict[str, Any]) -> Dict[str, Any]:
        fields = {key: value for key, value in payload.items() if key != "hive_id"}
        for key in DATE_FIELDS:
            if key in fields:
                fields[key] = coerce_date_string(fields[key])
        for key in BOOL_FIELDS:
            if key in fields and fields[key] is not None:
                fields[key] = 1 if fields[key] else 0
        if isinstance(fields.get("name"), str):
            fields["name"] = fields["name"].strip()
        return fields

    @staticmethod
    def _public(hive: Dict[str, Any]) -> Dict[str, Any]:
        item = dict(hive)
        for key in ("queen_marked", "alerts_enabled", "is_registered"):
            if key in item and item[key] is not None:
                item[key] = bool(item[key])
        return item
