from __future__ import annotations

import threading
from datetime import timedelta
from unittest.mock import MagicMock

import pytest

from app.utils.time import utc_now
from app.workers.metrics_checker import CHECK_JOB_ID, CHECK_TASK, INITIAL_JOB_ID, MetricsChecker
from app.workers.unified_scheduler import UnifiedScheduler


@pytest.fixture()
def alert_service_mock():
    service = MagicMock()
    service.check_metrics_and_create_alerts.return_value = 2
    return service


@pytest.fixture()
def scheduler():
    return UnifiedScheduler()


@pytest.fixture()
def checker(scheduler, alert_service_mock):
    return MetricsChecker(scheduler, alert_service_mock, default_interval=1800, min_interval=600)


def test_registers_its_task(scheduler, checker):
    assert scheduler.has_task(CHECK_TASK)
    assert checker.running is False


def test_start_clamps_interval_and_queues_initial_check(scheduler, checker):
    assert checker.start(60) == 600

    job = scheduler.get_job(CHECK_JOB_ID)
    assert job.interval_seconds == 600
    assert job.namespace == "alerts"
    assert scheduler.get_job(INITIAL_JOB_ID) is not None
    assert checker.running is True


def test_start_uses_default_interval(checker):
    assert checker.start() == 1800


def test_start_skips_initial_check_after_a_recent_one(scheduler, checker):
    checker.last_check_time = utc_now() - timedelta(seconds=60)
    checker.start(900)
    assert scheduler.get_job(INITIAL_JOB_ID) is None
    assert scheduler.get_job(CHECK_JOB_ID) is not None


def test_restart_replaces_the_job(scheduler, checker):
    checker.start(900)
    checker.start(1200)
    assert sorted(job.job_id for job in scheduler.get_jobs(namespace="alerts")) == [CHECK_JOB_ID, INITIAL_JOB_ID]
    assert scheduler.get_job(CHECK_JOB_ID).interval_seconds == 1200


def test_scheduled_check_respects_minimum_interval(checker, alert_service_mock):
    assert checker.run_scheduled_check() == {"skipped": False, "created": 2}
    assert checker.run_scheduled_check() == {"skipped": True, "created": 0}
    assert alert_service_mock.check_metrics_and_create_alerts.call_count == 1

    # A fixed-rate tick that fires slightly early still runs
    checker.last_check_time = utc_now() - timedelta(seconds=597)
    assert checker.run_scheduled_check()["skipped"] is False


def test_force_check_ignores_minimum_interval(checker, alert_service_mock):
    checker.run_scheduled_check()
    assert checker.force_check() == 2
    assert alert_service_mock.check_metrics_and_create_alerts.call_count == 2


def test_force_check_swallows_failures(checker, alert_service_mock):
    alert_service_mock.check_metrics_and_create_alerts.side_effect = RuntimeError("db locked")
    assert checker.force_check() == 0
    assert checker.last_check_time is not None


def test_stop_and_status(scheduler, checker):
    checker.start(900)
    status = checker.status()
    assert status["running"] is True
    assert status["interval_seconds"] == 900
    assert status["min_interval_seconds"] == 600
    assert status["next_run"] is not None

    checker.stop()
    status = checker.status()
    assert status["running"] is False
    assert status["interval_seconds"] == 1800
    assert scheduler.get_job(INITIAL_JOB_ID) is None


def test_status_reports_default_interval_before_start(checker):
    status = checker.status()
    assert status["running"] is False
    assert status["interval_seconds"] == 1800
    assert status["last_check_time"] is None


def test_last_check_time_is_utc(checker):
    checker.force_check()
    assert checker.status()["last_check_time"].endswith("+00:00")


def test_forced_and_scheduled_checks_never_overlap(checker, alert_service_mock):
    entered = threading.Event()
    release = threading.Event()
    active = []
    overlaps = []

    def slow_check():
        if active:
            overlaps.append(True)
        active.append(True)
        entered.set()
        release.wait(timeout=5)
        active.pop()
        return 1

    alert_service_mock.check_metrics_and_create_alerts.side_effect = slow_check

    scheduled = threading.Thread(target=checker.run_scheduled_check)
    scheduled.start()
    assert entered.wait(timeout=5)

    forced = threading.Thread(target=checker.force_check)
    forced.start()
    forced.join(timeout=0.2)
    assert forced.is_alive()

    release.set()
    scheduled.join(timeout=5)
    forced.join(timeout=5)
    assert overlaps == []
    assert alert_service_mock.check_metrics_and_create_alerts.call_count == 2
