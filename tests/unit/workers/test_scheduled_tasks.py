from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import pytest

from app.workers.metrics_checker import MetricsChecker
from app.workers.scheduled_tasks import (
    CHECK_METRICS_TASK,
    PURGE_ALERTS_TASK,
    PURGE_READINGS_TASK,
    alerts_check_metrics_task,
    configure_scheduler,
    maintenance_purge_old_alerts_task,
    maintenance_purge_old_readings_task,
    register_all_tasks,
)
from app.workers.unified_scheduler import UnifiedScheduler


@pytest.fixture()
def scheduler():
    return UnifiedScheduler()


@pytest.fixture()
def fake_container(scheduler):
    alert_service = MagicMock()
    alert_service.check_metrics_and_create_alerts.return_value = 1
    alert_service.purge_old_alerts.return_value = {"success": True, "deleted_rows": 4}
    metrics_service = MagicMock()
    metrics_service.purge_old_readings.return_value = 12
    container = SimpleNamespace(
        config=SimpleNamespace(alert_retention_days=30, metrics_retention_days=90, metrics_check_interval_seconds=1800),
        alert_service=alert_service,
        metrics_service=metrics_service,
        scheduler=scheduler,
    )
    container.metrics_checker = MetricsChecker(scheduler, alert_service)
    return container


def test_check_metrics_task(fake_container):
    assert alerts_check_metrics_task(fake_container) == {"created": 1, "skipped": False, "errors": []}
    assert alerts_check_metrics_task(fake_container)["skipped"] is True


def test_check_metrics_task_reports_soft_errors(fake_container):
    fake_container.alert_service.check_metrics_and_create_alerts.side_effect = RuntimeError("locked")
    result = alerts_check_metrics_task(fake_container)
    assert result["errors"] == ["locked"]


def test_purge_tasks_use_configured_retention(fake_container):
    alerts = maintenance_purge_old_alerts_task(fake_container)
    readings = maintenance_purge_old_readings_task(fake_container)

    assert alerts == {"deleted_rows": 4, "success": True, "errors": []}
    fake_container.alert_service.purge_old_alerts.assert_called_once_with(retention_days=30, resolved_only=True)
    assert readings == {"deleted_rows": 12, "success": True, "errors": []}
    fake_container.metrics_service.purge_old_readings.assert_called_once_with(90)


def test_register_all_tasks(scheduler, fake_container):
    register_all_tasks(scheduler, fake_container)
    registered = scheduler.get_status()["registered_tasks"]
    assert {CHECK_METRICS_TASK, PURGE_ALERTS_TASK, PURGE_READINGS_TASK} <= set(registered)

    result = scheduler.run_now(PURGE_READINGS_TASK)
    assert result.success is True
    assert result.result["deleted_rows"] == 12


def test_unexpected_task_errors_are_reraised(scheduler, fake_container):
    fake_container.metrics_service.purge_old_readings.side_effect = KeyError("boom")
    register_all_tasks(scheduler, fake_container)

    result = scheduler.run_now(PURGE_READINGS_TASK)
    assert result.success is False


def test_configure_scheduler_without_starting(scheduler, fake_container):
    configure_scheduler(scheduler, fake_container, start=False)

    job_ids = {job.job_id for job in scheduler.get_jobs()}
    assert {"alerts.check_metrics", "maintenance_purge_alerts_daily", "maintenance_purge_readings_daily"} <= job_ids
    assert scheduler.get_job("alerts.check_metrics").interval_seconds == 1800
    assert scheduler.get_job("maintenance_purge_alerts_daily").time_of_day == "03:00"
    assert scheduler.is_running() is False
