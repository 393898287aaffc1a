"""
Periodic hive alert check.

``MetricsChecker`` owns the ``alerts.check_metrics`` job on the scheduler and
guarantees two scheduled checks never run closer together than ``min_interval``
seconds. Scheduled and forced checks share one lock, so two never overlap.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timedelta
from typing import Any

from app.services.application.alert_service import AlertService
from app.utils.time import utc_now
from app.workers.unified_scheduler import UnifiedScheduler

logger = logging.getLogger(__name__)

CHECK_TASK = "alerts.check_metrics"
CHECK_JOB_ID = "alerts.check_metrics"
INITIAL_JOB_ID = "alerts.check_metrics.initial"

# Fixed-rate runs may fire this early relative to the previous check
_SCHEDULE_SLACK_SECONDS = 5


class MetricsChecker:
    """Runs ``AlertService.check_metrics_and_create_alerts`` on a schedule."""

    def __init__(
        self,
        scheduler: UnifiedScheduler,
        alert_service: AlertService,
        *,
        default_interval: int = 1800,
        min_interval: int = 600,
    ):
        self.scheduler = scheduler
        self.alert_service = alert_service
        self.default_interval = int(default_interval)
        self.min_interval = int(min_interval)

        self.interval_seconds: int | None = None
        self.last_check_time: datetime | None = None
        self.last_created: int | None = None
        self._lock = threading.Lock()

        self.scheduler.register_task(CHECK_TASK, self.run_scheduled_check)

    @property
    def running(self) -> bool:
        return self.scheduler.get_job(CHECK_JOB_ID) is not None

    def start(self, interval_seconds: int | None = None) -> int:
        """(Re)schedule the periodic check and return the effective interval.

        Any existing check job is replaced. An initial check is queued only when
        no check ran within ``min_interval``.
        """
        self.scheduler.remove_job(CHECK_JOB_ID)
        self.scheduler.remove_job(INITIAL_JOB_ID)

        interval = int(interval_seconds or self.default_interval)
        if interval < self.min_interval:
            logger.warning("Metrics check interval %ss raised to the %ss minimum", interval, self.min_interval)
            interval = self.min_interval
        self.interval_seconds = interval

        if self._due(utc_now()):
            self.scheduler.schedule_once(CHECK_TASK, datetime.now(), job_id=INITIAL_JOB_ID)
            logger.info("Initial metrics check queued")
        else:
            logger.info("Skipping initial metrics check; last check at %s", self.last_check_time.isoformat())

        self.scheduler.schedule_interval(CHECK_TASK, interval, job_id=CHECK_JOB_ID, namespace="alerts")
        return interval

    def stop(self) -> None:
        removed = self.scheduler.remove_job(CHECK_JOB_ID)
        self.scheduler.remove_job(INITIAL_JOB_ID)
        self.interval_seconds = None
        if removed:
            logger.info("Metrics checker stopped")

    def _due(self, now: datetime, slack_seconds: int = 0) -> bool:
        if self.last_check_time is None:
            return True
        return now - self.last_check_time >= timedelta(seconds=self.min_interval - slack_seconds)

    def run_scheduled_check(self) -> dict[str, Any]:
        """Scheduler entry point; skips the run if a check happened too recently."""
        with self._lock:
            now = utc_now()
            if not self._due(now, _SCHEDULE_SLACK_SECONDS):
                logger.debug("Metrics check skipped; last check at %s", self.last_check_time.isoformat())
                return {"skipped": True, "created": 0}
            self.last_check_time = now
            created = self.alert_service.check_metrics_and_create_alerts()
            self.last_created = created
        logger.info("Periodic metrics check complete: %d alerts created", created)
        return {"skipped": False, "created": created}

    def force_check(self) -> int:
        """Run a check now regardless of the minimum interval; 0 on failure."""
        with self._lock:
            self.last_check_time = utc_now()
            try:
                created = self.alert_service.check_metrics_and_create_alerts()
            except Exception as e:
                logger.error("Forced metrics check failed: %s", e, exc_info=True)
                return 0
            self.last_created = created
        return created

    def status(self) -> dict[str, Any]:
        """Job state; ``interval_seconds`` is the interval a ``start()`` would use while stopped."""
        job = self.scheduler.get_job(CHECK_JOB_ID)
        return {
            "running": job is not None,
            "interval_seconds": self.interval_seconds or max(self.default_interval, self.min_interval),
            "min_interval_seconds": self.min_interval,
            "last_check_time": self.last_check_time.isoformat() if self.last_check_time else None,
            "last_created": self.last_created,
            "next_run": job.next_run.isoformat() if job and job.next_run else None,
        }
