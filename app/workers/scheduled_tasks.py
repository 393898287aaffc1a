"""
Scheduled Tasks: background task definitions for the UnifiedScheduler.

Tasks are organized by namespace:
- alerts.*: the periodic hive threshold check
- maintenance.*: alert and reading retention

Usage:
    from app.workers.scheduled_tasks import configure_scheduler

    configure_scheduler(container.scheduler, container)
"""

from __future__ import annotations

import logging
import sqlite3
from functools import wraps
from typing import TYPE_CHECKING, Any, Callable

if TYPE_CHECKING:
    from app.services.container import ServiceContainer
    from app.workers.unified_scheduler import UnifiedScheduler

logger = logging.getLogger(__name__)

TASK_SOFT_ERRORS = (
    RuntimeError,
    ValueError,
    TypeError,
    AttributeError,
    OSError,
    sqlite3.Error,
)

CHECK_METRICS_TASK = "alerts.check_metrics"
PURGE_ALERTS_TASK = "maintenance.purge_old_alerts"
PURGE_READINGS_TASK = "maintenance.purge_old_readings"


# ==================== Alerts Namespace Tasks ====================


def alerts_check_metrics_task(container: "ServiceContainer") -> dict[str, Any]:
    """
    Compare the latest reading of every alert-enabled hive against its owner's thresholds.

    Delegates to MetricsChecker so the minimum interval between checks holds
    for scheduled runs too.
    """
    results: dict[str, Any] = {"created": 0, "skipped": False, "errors": []}
    try:
        outcome = container.metrics_checker.run_scheduled_check()
        results["created"] = int(outcome.get("created", 0))
        results["skipped"] = bool(outcome.get("skipped"))
    except TASK_SOFT_ERRORS as e:
        logger.error("Failed to run check_metrics task: %s", e)
        results["errors"].append(str(e))
    return results


# ==================== Maintenance Namespace Tasks ====================


def maintenance_purge_old_alerts_task(container: "ServiceContainer") -> dict[str, Any]:
    """Delete resolved alerts older than ``config.alert_retention_days``."""
    results: dict[str, Any] = {"deleted_rows": 0, "success": False, "errors": []}
    try:
        retention_days = int(container.config.alert_retention_days)
        resp = container.alert_service.purge_old_alerts(retention_days=retention_days, resolved_only=True)
        results["success"] = bool(resp.get("success"))
        results["deleted_rows"] = int(resp.get("deleted_rows", 0))
        if not results["success"]:
            results["errors"].append(resp.get("error", "unknown"))
    except TASK_SOFT_ERRORS as e:
        logger.error("Failed to run purge_old_alerts task: %s", e)
        results["errors"].append(str(e))
    return results


def maintenance_purge_old_readings_task(container: "ServiceContainer") -> dict[str, Any]:
    """Delete sensor readings older than ``config.metrics_retention_days``."""
    results: dict[str, Any] = {"deleted_rows": 0, "success": False, "errors": []}
    try:
        results["deleted_rows"] = container.metrics_service.purge_old_readings(
            int(container.config.metrics_retention_days)
        )
        results["success"] = True
    except TASK_SOFT_ERRORS as e:
        logger.error("Failed to run purge_old_readings task: %s", e)
        results["errors"].append(str(e))
    return results


# ==================== Registration ====================


def register_all_tasks(scheduler: "UnifiedScheduler", container: "ServiceContainer") -> None:
    """
    Register all tasks with the scheduler.

    Each task is bound to the container; a task that raises is logged as a
    SYSTEM alert and re-raised so the scheduler records the failure.
    """
    logger.info("Registering scheduled tasks...")

    def bind_noargs(task_fn: Callable[["ServiceContainer"], dict[str, Any]]) -> Callable[[], dict[str, Any]]:
        @wraps(task_fn)
        def bound_task() -> dict[str, Any]:
            try:
                return task_fn(container)
            # Broad catch: the wrapper runs arbitrary task callables
            except Exception as e:
                logger.error("SYSTEM alert: scheduled task %s failed: %s", task_fn.__name__, e, exc_info=True)
                raise

        return bound_task

    scheduler.register_task(CHECK_METRICS_TASK, bind_noargs(alerts_check_metrics_task))
    scheduler.register_task(PURGE_ALERTS_TASK, bind_noargs(maintenance_purge_old_alerts_task))
    scheduler.register_task(PURGE_READINGS_TASK, bind_noargs(maintenance_purge_old_readings_task))
    logger.info("Registered %s tasks", len(scheduler.get_status()["registered_tasks"]))


def schedule_default_jobs(scheduler: "UnifiedScheduler", container: "ServiceContainer") -> None:
    """Schedule the alert check and the nightly retention jobs."""
    logger.info("Scheduling default jobs...")

    container.metrics_checker.start(container.config.metrics_check_interval_seconds)

    scheduler.schedule_daily(PURGE_ALERTS_TASK, time_of_day="03:00", job_id="maintenance_purge_alerts_daily")
    scheduler.schedule_daily(PURGE_READINGS_TASK, time_of_day="03:30", job_id="maintenance_purge_readings_daily")

    jobs = scheduler.get_jobs()
    logger.info("Scheduled %s default jobs", len(jobs))
    for job in jobs:
        logger.debug("  - %s: %s (%s)", job.job_id, job.schedule_type.value, job.namespace)


def configure_scheduler(
    scheduler: "UnifiedScheduler",
    container: "ServiceContainer",
    *,
    reset_jobs: bool = True,
    start: bool = True,
) -> None:
    """Register tasks, apply default schedules, and optionally start the scheduler."""
    if reset_jobs:
        scheduler.clear_jobs()

    register_all_tasks(scheduler, container)
    schedule_default_jobs(scheduler, container)

    if start:
        scheduler.start()
