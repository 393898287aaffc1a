from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from app.workers.unified_scheduler import ScheduleType, UnifiedScheduler


class InlineExecutor:
    """Runs submitted jobs immediately so tests need no threads."""

    def submit(self, fn, *args, **kwargs):
        return fn(*args, **kwargs)

    def shutdown(self, wait=True):
        pass


@pytest.fixture()
def scheduler():
    sched = UnifiedScheduler(check_interval_seconds=0.01)
    sched._executor = InlineExecutor()
    return sched


def test_interval_job_runs_when_due_and_advances(scheduler):
    calls = []
    scheduler.register_task("demo.tick", lambda: calls.append("tick") or len(calls))
    job = scheduler.schedule_interval("demo.tick", 60)
    first_run = job.next_run

    assert job.namespace == "demo"
    assert scheduler._process_due_jobs(first_run - timedelta(seconds=1)) == 0
    assert scheduler._process_due_jobs(first_run) == 1
    assert calls == ["tick"]
    assert job.next_run == first_run + timedelta(seconds=60)
    assert job.run_count == 1
    assert job.success_count == 1


def test_once_job_disables_itself(scheduler):
    scheduler.register_task("demo.once", lambda: "done")
    run_at = datetime.now() - timedelta(seconds=1)
    job = scheduler.schedule_once("demo.once", run_at, job_id="once")

    assert scheduler._process_due_jobs() == 1
    assert job.enabled is False
    assert job.next_run is None
    assert scheduler._process_due_jobs(datetime.now() + timedelta(days=1)) == 0


def test_failures_are_recorded_not_raised(scheduler):
    def boom():
        raise RuntimeError("hive offline")

    scheduler.register_task("demo.boom", boom)
    job = scheduler.schedule_once("demo.boom", datetime.now(), job_id="boom")
    scheduler._process_due_jobs(datetime.now() + timedelta(seconds=1))

    assert job.failure_count == 1
    assert job.last_error == "hive offline"
    [result] = scheduler.get_history(job_id="boom")
    assert result.success is False
    assert result.to_dict()["status"] == "failed"


def test_removed_job_is_skipped(scheduler):
    calls = []
    scheduler.register_task("demo.tick", lambda: calls.append(1))
    job = scheduler.schedule_interval("demo.tick", 5, job_id="tick")
    assert scheduler.remove_job("tick") is True
    assert scheduler.remove_job("tick") is False

    assert scheduler._process_due_jobs(job.next_run + timedelta(seconds=1)) == 0
    assert calls == []


def test_rescheduled_job_runs_once_per_slot(scheduler):
    calls = []
    scheduler.register_task("demo.tick", lambda: calls.append(1))
    scheduler.schedule_interval("demo.tick", 30, job_id="tick")
    job = scheduler.schedule_interval("demo.tick", 30, job_id="tick")

    scheduler._process_due_jobs(job.next_run)
    assert calls == [1]


def test_daily_next_run():
    now = datetime(2026, 6, 1, 10, 0)
    assert UnifiedScheduler._calculate_next_daily("03:00", now) == datetime(2026, 6, 2, 3, 0)
    assert UnifiedScheduler._calculate_next_daily("12:30", now) == datetime(2026, 6, 1, 12, 30)


def test_daily_job_metadata(scheduler):
    scheduler.register_task("maintenance.purge", lambda: None)
    job = scheduler.schedule_daily("maintenance.purge", "03:30")
    assert job.job_id == "maintenance.purge_daily_0330"
    assert job.schedule_type is ScheduleType.DAILY
    assert job.next_run > datetime.now()


def test_interval_must_be_positive(scheduler):
    with pytest.raises(ValueError):
        scheduler.schedule_interval("demo.tick", 0)


def test_run_now(scheduler):
    scheduler.register_task("demo.sum", lambda a, b: a + b)
    result = scheduler.run_now("demo.sum", args=(2, 3))
    assert result.success is True
    assert result.result == 5
    assert scheduler.run_now("demo.missing") is None


def test_enable_job_toggles(scheduler):
    scheduler.register_task("demo.tick", lambda: None)
    job = scheduler.schedule_interval("demo.tick", 60, job_id="tick")
    assert scheduler.enable_job("tick", False) is True
    assert scheduler.get_jobs(enabled_only=True) == []
    assert scheduler.enable_job("tick", True) is True
    assert job.enabled is True
    assert scheduler.enable_job("missing") is False


def test_health_check_reflects_running_state():
    sched = UnifiedScheduler(check_interval_seconds=0.01)
    assert sched.health_check()["health"] == "unhealthy"

    sched.start()
    try:
        assert sched.is_running() is True
        assert sched.health_check()["health"] == "healthy"
    finally:
        sched.stop()
    assert sched.is_running() is False
    # Stopping twice is harmless
    sched.stop()
