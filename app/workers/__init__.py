"""
Workers module for background services and scheduled tasks.

This module contains:
- unified_scheduler: in-process scheduler for all background tasks
- metrics_checker: the periodic hive alert check
- scheduled_tasks: task definitions organized by namespace (alerts.*, maintenance.*)
"""

__all__ = [
    "MetricsChecker",
    "UnifiedScheduler",
    "configure_scheduler",
    "register_all_tasks",
    "schedule_default_jobs",
]

from app.workers.metrics_checker import MetricsChecker
from app.workers.scheduled_tasks import configure_scheduler, register_all_tasks, schedule_default_jobs
from app.workers.unified_scheduler import UnifiedScheduler
