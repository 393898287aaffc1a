"""Hive alert service: CRUD, filtering and threshold evaluation."""

import logging
import sqlite3
from datetime import timedelta
from typing import Any, Dict, List, Optional

from app.domain.exceptions import ConflictError, NotFoundError, ServiceError, ValidationError
from app.utils.cache import TTLCache
from app.utils.emitters import WS_EVENT_ALERT_RESOLVED, EmitterService
from app.utils.time import coerce_datetime, iso_days_ago, utc_now
from infrastructure.database.repositories.alerts import AlertRepository
from infrastructure.database.repositories.hives import HiveRepository
from infrastructure.database.repositories.metrics import MetricsRepository
from infrastructure.database.repositories.settings import SettingsRepository

logger = logging.getLogger(__name__)

# Hive metric -> (reading column, label, unit)
METRIC_SPECS: Dict[str, tuple[str, str, str]] = {
    "temperature": ("temp_value", "Temperature", "°C"),
    "humidity": ("hum_value", "Humidity", "%"),
    "sound": ("sound_value", "Sound", "dB"),
    "weight": ("weight_value", "Weight", "kg"),
}

DEFAULT_THRESHOLDS: Dict[str, float] = {
    "temperature_min": 32.0,
    "temperature_max": 36.0,
    "humidity_min": 40.0,
    "humidity_max": 65.0,
    "sound_min": 30.0,
    "sound_max": 60.0,
    "weight_min": 10.0,
    "weight_max": 25.0,
}

# Deviation beyond the violated bound, as a fraction of it, that makes an alert "high"
HIGH_SEVERITY_DEVIATION = 0.10


def _fmt(value: float) -> str:
    return f"{round(float(value), 1):g}"


class AlertService:
    """Service for hive alerts and the periodic threshold check."""

    # Alert type constants
    TEMPERATURE = "temperature"
    HUMIDITY = "humidity"
    SOUND = "sound"
    WEIGHT = "weight"
    OTHER = "other"

    # Severity levels
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"
    INFO = "info"

    ALERT_TYPES = (TEMPERATURE, HUMIDITY, SOUND, WEIGHT, OTHER)
    SEVERITIES = (HIGH, MEDIUM, LOW, INFO)
    SORT_FIELDS = ("created_at", "severity")

    def __init__(
        self,
        alert_repo: AlertRepository,
        hive_repo: HiveRepository,
        metrics_repo: MetricsRepository,
        settings_repo: SettingsRepository,
        *,
        emitter: Optional[EmitterService] = None,
        stale_after_minutes: int = 120,
        dedupe_cache: Optional[TTLCache] = None,
    ):
        """Initialize the alert service.

        Args:
            alert_repo: AlertRepository instance
            hive_repo: HiveRepository used for ownership checks and the check loop
            metrics_repo: MetricsRepository providing the latest reading per hive
            settings_repo: SettingsRepository holding each user's AlertThresholds
            emitter: Optional Socket.IO emitter for pushing new alerts
            stale_after_minutes: Readings older than this are not evaluated
            dedupe_cache: Optional TTLCache mapping "alert:<hive>:<type>" to an open alert id
        """
        self.alert_repo = alert_repo
        self.hive_repo = hive_repo
        self.metrics_repo = metrics_repo
        self.settings_repo = settings_repo
        self.emitter = emitter
        self.stale_after = timedelta(minutes=max(1, stale_after_minutes))
        self._dedupe_cache = dedupe_cache or TTLCache(enabled=True, ttl_seconds=900, maxsize=1024)

    # ------------------------------------------------------------------
    # Deduplication helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _compute_dedup_key(hive_id: str, alert_type: str) -> str:
        """Return a stable cache key for deduplication."""
        return f"alert:{hive_id}:{alert_type}"

    def _find_open_alert_id(self, hive_id: str, alert_type: str) -> Optional[int]:
        """Return the id of an unresolved alert for (hive, type), or None.

        Layer 1: ``_dedupe_cache`` TTLCache, confirmed against the row.
        Layer 2: DB query via ``alert_repo.find_open`` (cross-process safe).
        """
        key = self._compute_dedup_key(hive_id, alert_type)
        cached_id = self._dedupe_cache.get(key)
        if cached_id is not None:
            row = self.alert_repo.get_by_id(int(cached_id))
            if row and row.get("resolved_at") is None:
                return int(cached_id)
            self._dedupe_cache.invalidate(key)

        existing = self.alert_repo.find_open(hive_id, alert_type)
        if existing:
            self._dedupe_cache.set(key, int(existing["id"]))
            return int(existing["id"])
        return None

    # ------------------------------------------------------------------
    # CRUD
    # ------------------------------------------------------------------

    def create_alert(
        self,
        hive_id: str,
        alert_type: str,
        message: str,
        severity: str = MEDIUM,
        *,
        user_id: Optional[int] = None,
        dedupe: bool = False,
    ) -> Optional[Dict[str, Any]]:
        """Create a new alert.

        Args:
            hive_id: Hive the alert belongs to
            alert_type: One of ``ALERT_TYPES``
            message: Human-readable description
            severity: One of ``SEVERITIES``
            user_id: When given, the hive must belong to this user
            dedupe: Skip creation when an open alert of the same type exists

        Returns:
            The stored alert (enriched with hive/apiary names), or None when
            deduplicated.

        Raises:
            ValidationError: invalid type, severity or empty message
            NotFoundError: hive does not exist for ``user_id``
            ConflictError: an open alert of this metric type exists and ``dedupe`` is off
        """
        if alert_type not in self.ALERT_TYPES:
            raise ValidationError(f"Invalid alert type: {alert_type}")
        if severity not in self.SEVERITIES:
            raise ValidationError(f"Invalid severity: {severity}")
        if not (message or "").strip():
            raise ValidationError("Alert message is required")

        hive = self.hive_repo.get(hive_id, user_id)
        if not hive:
            raise NotFoundError(f"Hive {hive_id} not found")

        if dedupe and self._find_open_alert_id(hive_id, alert_type) is not None:
            logger.debug("Skipping duplicate %s alert for hive %s", alert_type, hive_id)
            return None

        key = self._compute_dedup_key(hive_id, alert_type)
        try:
            alert_id = self.alert_repo.create(hive_id, alert_type, message.strip(), severity)
        except sqlite3.IntegrityError:
            # The unique open-alert index rejected it
            self._dedupe_cache.invalidate(key)
            if dedupe:
                logger.debug("Open %s alert for hive %s already stored", alert_type, hive_id)
                return None
            raise ConflictError(f"Hive {hive_id} already has an open {alert_type} alert")
        if alert_id is None:
            raise ServiceError("Failed to store alert")
        self._dedupe_cache.set(key, alert_id)
        logger.info("Alert created: [%s] %s (hive %s)", severity, message, hive_id)

        alert = self.alert_repo.get_by_id(alert_id) or {"id": alert_id, "hive_id": hive_id}
        owner_id = hive.get("user_id")
        if self.emitter is not None and owner_id is not None:
            self.emitter.emit_alert_event(int(owner_id), self._public(alert))
        return self._public(alert)

    def list_alerts(
        self,
        user_id: int,
        *,
        hive_id: Optional[str] = None,
        apiary_id: Optional[int] = None,
        unread_only: bool = False,
        alert_type: Optional[str] = None,
        severity: Optional[str] = None,
        search: Optional[str] = None,
        sort: str = "created_at",
        include_resolved: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Unresolved alerts for the user, newest first unless sorted by severity."""
        if alert_type and alert_type not in self.ALERT_TYPES:
            raise ValidationError(f"Invalid alert type: {alert_type}")
        if severity and severity not in self.SEVERITIES:
            raise ValidationError(f"Invalid severity: {severity}")
        if sort not in self.SORT_FIELDS:
            raise ValidationError(f"Invalid sort field: {sort}")

        rows = self.alert_repo.list_for_user(
            user_id,
            hive_id=hive_id,
            apiary_id=apiary_id,
            unread_only=unread_only,
            alert_type=alert_type,
            severity=severity,
            search=(search or "").strip() or None,
            sort=sort,
            include_resolved=include_resolved,
            limit=limit,
        )
        return [self._public(row) for row in rows]

    def get_alert(self, user_id: int, alert_id: int) -> Dict[str, Any]:
        alert = self.alert_repo.get_by_id(alert_id, user_id)
        if not alert:
            raise NotFoundError(f"Alert {alert_id} not found")
        return self._public(alert)

    def resolve_alert(self, user_id: int, alert_id: int) -> Dict[str, Any]:
        """Mark an alert resolved (and read)."""
        alert = self.get_alert(user_id, alert_id)
        if alert.get("resolved_at") is None:
            self.alert_repo.resolve(alert_id)
            self._dedupe_cache.invalidate(self._compute_dedup_key(alert["hive_id"], alert["type"]))
            logger.info("Alert %s resolved by user %s", alert_id, user_id)
        resolved = self.get_alert(user_id, alert_id)
        if self.emitter is not None:
            self.emitter.emit_alert_event(user_id, resolved, event=WS_EVENT_ALERT_RESOLVED)
        return resolved

    def resolve_all(self, user_id: int, hive_id: Optional[str] = None) -> int:
        count = self.alert_repo.resolve_all(user_id, hive_id)
        if count and hive_id:
            self._dedupe_cache.invalidate_prefix(self._compute_dedup_key(hive_id, ""))
        elif count:
            self._dedupe_cache.clear()
        logger.info("Resolved %d alerts for user %s", count, user_id)
        return count

    def mark_as_read(self, user_id: int, alert_id: int) -> Dict[str, Any]:
        self.get_alert(user_id, alert_id)
        self.alert_repo.mark_read(alert_id)
        return self.get_alert(user_id, alert_id)

    def get_active_alert_count(self, user_id: int) -> int:
        """Number of unresolved alerts; 0 when storage is unavailable."""
        try:
            return self.alert_repo.count_active(user_id)
        except sqlite3.Error as exc:
            logger.error("Failed to count active alerts for user %s: %s", user_id, exc)
            return 0

    def get_alert_summary(self, user_id: int) -> Dict[str, Any]:
        return self.alert_repo.summary(user_id)

    def purge_old_alerts(self, retention_days: int = 30, resolved_only: bool = True) -> Dict[str, Any]:
        """Delete alerts older than ``retention_days``."""
        if retention_days < 1:
            raise ValidationError("retention_days must be at least 1")
        deleted = self.alert_repo.purge_old(iso_days_ago(retention_days), resolved_only)
        if deleted:
            logger.info("Purged %d alerts older than %d days", deleted, retention_days)
        return {"success": True, "deleted_rows": deleted}

    # ------------------------------------------------------------------
    # Threshold evaluation
    # ------------------------------------------------------------------

    def get_thresholds(self, user_id: int) -> Dict[str, float]:
        """Alert thresholds for a user, falling back to defaults per field."""
        stored = self.settings_repo.thresholds_for_users([user_id]).get(user_id) or {}
        return self._merge_thresholds(stored)

    @staticmethod
    def _merge_thresholds(stored: Dict[str, Any]) -> Dict[str, float]:
        merged = dict(DEFAULT_THRESHOLDS)
        for key in DEFAULT_THRESHOLDS:
            value = stored.get(key)
            if value is not None:
                merged[key] = float(value)
        return merged

    @classmethod
    def evaluate_reading(cls, reading: Dict[str, Any], thresholds: Dict[str, float]) -> List[Dict[str, str]]:
        """Return ``[{type, severity, message}]`` for each out-of-range metric.

        Null values are ignored. Severity is ``high`` when the value is more
        than 10% of the violated bound past it, otherwise ``medium``.
        """
        violations: List[Dict[str, str]] = []
        for alert_type, (column, label, unit) in METRIC_SPECS.items():
            raw = reading.get(column)
            if raw is None:
                continue
            value = float(raw)
            low = thresholds[f"{alert_type}_min"]
            high = thresholds[f"{alert_type}_max"]
            if value > high:
                bound, direction, kind = high, "high", "max"
            elif value < low:
                bound, direction, kind = low, "low", "min"
            else:
                continue
            deviation = abs(value - bound)
            severity = cls.HIGH if deviation > HIGH_SEVERITY_DEVIATION * (abs(bound) or 1.0) else cls.MEDIUM
            violations.append(
                {
                    "type": alert_type,
                    "severity": severity,
                    "message": f"{label} too {direction}: {_fmt(value)}{unit} ({kind} {_fmt(bound)}{unit})",
                }
            )
        return violations

    def _is_stale(self, reading: Dict[str, Any]) -> bool:
        taken_at = coerce_datetime(reading.get("timestamp"))
        if taken_at is None:
            return True
        return utc_now() - taken_at > self.stale_after

    def check_metrics_and_create_alerts(self) -> int:
        """Evaluate the latest reading of every alert-enabled hive.

        Returns:
            Number of alerts created.
        """
        hives = self.hive_repo.list_alert_enabled()
        if not hives:
            logger.debug("Metrics check: no alert-enabled hives")
            return 0

        user_ids = sorted({int(hive["user_id"]) for hive in hives})
        stored = self.settings_repo.thresholds_for_users(user_ids)
        thresholds_by_user = {uid: self._merge_thresholds(stored.get(uid) or {}) for uid in user_ids}

        created = 0
        for hive in hives:
            hive_id = hive["hive_id"]
            try:
                reading = self.metrics_repo.latest(hive_id)
                if not reading:
                    continue
                if self._is_stale(reading):
                    logger.debug("Metrics check: latest reading for hive %s is stale", hive_id)
                    continue
                for violation in self.evaluate_reading(reading, thresholds_by_user[int(hive["user_id"])]):
                    alert = self.create_alert(
                        hive_id,
                        violation["type"],
                        violation["message"],
                        violation["severity"],
                        dedupe=True,
                    )
                    if alert is not None:
                        created += 1
            except Exception as exc:
                logger.error("Metrics check failed for hive %s: %s", hive_id, exc, exc_info=True)

        logger.info("Metrics check complete: %d hives evaluated, %d alerts created", len(hives), created)
        return created

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    @staticmethod
    def _public(row: Dict[str, Any]) -> Dict[str, Any]:
        alert = dict(row)
        alert.pop("user_id", None)
        if "is_read" in alert:
            alert["is_read"] = bool(alert["is_read"])
        alert["resolved"] = alert.get("resolved_at") is not None
        return alert
