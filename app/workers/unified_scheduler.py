"""
In-process scheduler for Smart Nyuki background tasks.

Every periodic job (the hive alert check, alert retention, reading retention)
goes through one scheduler per service container.

Design:
- One loop thread pops due jobs from a heap of ``(run_at_ts, seq, job_id)``
- Due jobs run on a bounded ThreadPoolExecutor
- Interval jobs advance from their scheduled time, so they do not drift
- Stale heap entries (removed, disabled or rescheduled jobs) are skipped, never deleted in place
"""

from __future__ import annotations

import heapq
import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Callable

logger = logging.getLogger(__name__)


class JobStatus(Enum):
    """Outcome of a job run."""

    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


class ScheduleType(Enum):
    """Supported schedules."""

    INTERVAL = "interval"  # every N seconds
    DAILY = "daily"  # at HH:MM local time
    ONCE = "once"  # a single run


@dataclass
class JobResult:
    """Result of one job execution."""

    job_id: str
    success: bool
    started_at: datetime
    completed_at: datetime
    result: Any = None
    error: str | None = None

    @property
    def status(self) -> JobStatus:
        return JobStatus.COMPLETED if self.success else JobStatus.FAILED

    @property
    def duration_seconds(self) -> float:
        return (self.completed_at - self.started_at).total_seconds()

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": self.job_id,
            "status": self.status.value,
            "started_at": self.started_at.isoformat(),
            "completed_at": self.completed_at.isoformat(),
            "duration_seconds": round(self.duration_seconds, 3),
            "result": self.result,
            "error": self.error,
        }


@dataclass
class ScheduledJob:
    """A job bound to a registered task name."""

    job_id: str
    task_name: str
    namespace: str  # e.g. "alerts", "maintenance"
    schedule_type: ScheduleType
    enabled: bool = True

    args: tuple = field(default_factory=tuple)
    kwargs: dict[str, Any] = field(default_factory=dict)

    interval_seconds: int | None = None  # INTERVAL
    time_of_day: str | None = None  # "HH:MM" for DAILY
    run_at: datetime | None = None  # ONCE

    next_run: datetime | None = None
    last_run: datetime | None = None
    run_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        """Serialisable view for API responses."""
        return {
            "job_id": self.job_id,
            "task_name": self.task_name,
            "namespace": self.namespace,
            "schedule_type": self.schedule_type.value,
            "enabled": self.enabled,
            "interval_seconds": self.interval_seconds,
            "time_of_day": self.time_of_day,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "run_count": self.run_count,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "last_error": self.last_error,
        }


def _namespace_of(task_name: str) -> str:
    return task_name.split(".")[0] if "." in task_name else "default"


class UnifiedScheduler:
    """
    Heap-driven scheduler with a bounded worker pool.

    Tasks are registered by name with ``register_task`` and jobs refer to them
    by name, so a job can be rescheduled without touching the task function.
    A task that raises is logged and recorded in history; the loop keeps going.
    """

    def __init__(
        self,
        check_interval_seconds: float = 1.0,
        max_history: int = 500,
        max_workers: int = 2,
    ):
        """
        Args:
            check_interval_seconds: How often the loop looks for due jobs
            max_history: Execution results kept for ``get_history``
            max_workers: Concurrent job executions
        """
        self._check_interval = float(check_interval_seconds)
        self._max_history = int(max_history)
        self._max_workers = int(max_workers)

        self._jobs: dict[str, ScheduledJob] = {}
        self._tasks: dict[str, Callable[..., Any]] = {}

        # Entries: (run_at_ts, seq, job_id)
        self._job_heap: list[tuple[float, int, str]] = []
        self._heap_seq = 0

        self._history: list[JobResult] = []

        self._running = False
        self._stop_event = threading.Event()
        self._thread: threading.Thread | None = None
        self._job_lock = threading.RLock()
        self._executor: ThreadPoolExecutor | None = None

        logger.info("UnifiedScheduler initialized (max_workers=%d)", self._max_workers)

    # ==================== Task Registration ====================

    def register_task(self, name: str, func: Callable[..., Any]) -> None:
        """Register (or replace) the function behind a task name."""
        self._tasks[name] = func
        logger.debug("Registered task: %s", name)

    def has_task(self, name: str) -> bool:
        return name in self._tasks

    def clear_jobs(self) -> None:
        """Remove all jobs and pending heap entries."""
        with self._job_lock:
            self._jobs.clear()
            self._job_heap.clear()
            self._heap_seq = 0

    def _push_heap(self, job: ScheduledJob) -> None:
        if not job.enabled or not job.next_run:
            return
        self._heap_seq += 1
        heapq.heappush(self._job_heap, (job.next_run.timestamp(), self._heap_seq, job.job_id))

    # ==================== Job Scheduling ====================

    def schedule_interval(
        self,
        task_name: str,
        interval_seconds: int,
        *,
        job_id: str | None = None,
        namespace: str | None = None,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        enabled: bool = True,
        start_immediately: bool = False,
    ) -> ScheduledJob:
        """Run ``task_name`` every ``interval_seconds``."""
        interval_seconds = int(interval_seconds)
        if interval_seconds < 1:
            raise ValueError("interval_seconds must be at least 1")

        now = datetime.now()
        job = ScheduledJob(
            job_id=job_id or task_name,
            task_name=task_name,
            namespace=namespace or _namespace_of(task_name),
            schedule_type=ScheduleType.INTERVAL,
            enabled=enabled,
            args=args,
            kwargs=kwargs or {},
            interval_seconds=interval_seconds,
            next_run=now if start_immediately else now + timedelta(seconds=interval_seconds),
        )
        self._add_job(job)
        logger.info("Scheduled interval job: %s (every %ss)", job.job_id, interval_seconds)
        return job

    def schedule_daily(
        self,
        task_name: str,
        time_of_day: str,
        *,
        job_id: str | None = None,
        namespace: str | None = None,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
        enabled: bool = True,
    ) -> ScheduledJob:
        """Run ``task_name`` every day at ``time_of_day`` ("HH:MM", local time)."""
        job = ScheduledJob(
            job_id=job_id or f"{task_name}_daily_{time_of_day.replace(':', '')}",
            task_name=task_name,
            namespace=namespace or _namespace_of(task_name),
            schedule_type=ScheduleType.DAILY,
            enabled=enabled,
            args=args,
            kwargs=kwargs or {},
            time_of_day=time_of_day,
            next_run=self._calculate_next_daily(time_of_day),
        )
        self._add_job(job)
        logger.info("Scheduled daily job: %s (at %s)", job.job_id, time_of_day)
        return job

    def schedule_once(
        self,
        task_name: str,
        run_at: datetime,
        *,
        job_id: str | None = None,
        namespace: str | None = None,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
    ) -> ScheduledJob:
        """Run ``task_name`` a single time at ``run_at``."""
        job = ScheduledJob(
            job_id=job_id or f"{task_name}_once_{int(run_at.timestamp())}",
            task_name=task_name,
            namespace=namespace or _namespace_of(task_name),
            schedule_type=ScheduleType.ONCE,
            args=args,
            kwargs=kwargs or {},
            run_at=run_at,
            next_run=run_at,
        )
        self._add_job(job)
        logger.info("Scheduled one-time job: %s (at %s)", job.job_id, run_at.isoformat())
        return job

    def run_now(
        self,
        task_name: str,
        *,
        args: tuple = (),
        kwargs: dict[str, Any] | None = None,
    ) -> JobResult | None:
        """Run a registered task synchronously in the caller's thread."""
        func = self._tasks.get(task_name)
        if func is None:
            logger.error("Task not found: %s", task_name)
            return None

        started_at = datetime.now()
        job_id = f"{task_name}_immediate_{int(started_at.timestamp())}"
        try:
            result = func(*args, **(kwargs or {}))
        except Exception as e:
            logger.error("Immediate task %s failed: %s", task_name, e, exc_info=True)
            job_result = JobResult(job_id, False, started_at, datetime.now(), error=str(e))
        else:
            job_result = JobResult(job_id, True, started_at, datetime.now(), result=result)
        self._record_history(job_result)
        return job_result

    # ==================== Job Management ====================

    def _add_job(self, job: ScheduledJob) -> None:
        with self._job_lock:
            self._jobs[job.job_id] = job
            self._push_heap(job)

    def remove_job(self, job_id: str) -> bool:
        with self._job_lock:
            if self._jobs.pop(job_id, None) is None:
                return False
        logger.info("Removed job: %s", job_id)
        return True

    def enable_job(self, job_id: str, enabled: bool = True) -> bool:
        """Enable or disable a job; re-enabled jobs get a fresh next run."""
        with self._job_lock:
            job = self._jobs.get(job_id)
            if not job:
                return False
            job.enabled = bool(enabled)
            if job.enabled:
                if job.next_run is None or job.next_run < datetime.now():
                    self._schedule_next_run(job, reference_time=datetime.now())
                self._push_heap(job)
        logger.info("Job %s %s", job_id, "enabled" if enabled else "disabled")
        return True

    def get_job(self, job_id: str) -> ScheduledJob | None:
        return self._jobs.get(job_id)

    def get_jobs(self, namespace: str | None = None, enabled_only: bool = False) -> list[ScheduledJob]:
        jobs = list(self._jobs.values())
        if namespace:
            jobs = [j for j in jobs if j.namespace == namespace]
        if enabled_only:
            jobs = [j for j in jobs if j.enabled]
        return jobs

    # ==================== Scheduler Control ====================

    def start(self) -> None:
        """Start the loop thread and the worker pool."""
        if self._running:
            logger.warning("Scheduler already running")
            return
        if self._executor is None:
            self._executor = ThreadPoolExecutor(max_workers=self._max_workers, thread_name_prefix="NyukiSchedulerJob")

        self._stop_event.clear()
        self._running = True
        self._thread = threading.Thread(target=self._run_loop, daemon=True, name="NyukiScheduler")
        self._thread.start()
        logger.info("UnifiedScheduler started")

    def stop(self, wait: bool = True, timeout: float = 5.0) -> None:
        if not self._running:
            return
        self._running = False
        self._stop_event.set()
        if wait and self._thread:
            self._thread.join(timeout=timeout)
        if self._executor:
            self._executor.shutdown(wait=wait)
            self._executor = None
        logger.info("UnifiedScheduler stopped")

    def is_running(self) -> bool:
        return self._running

    def _run_loop(self) -> None:
        logger.debug("Scheduler loop started")
        while self._running:
            try:
                self._process_due_jobs()
            except Exception as e:
                logger.error("Error in scheduler loop: %s", e, exc_info=True)
            self._stop_event.wait(self._check_interval)
        logger.debug("Scheduler loop ended")

    # ==================== Core Scheduling Logic ====================

    def _process_due_jobs(self, now: datetime | None = None) -> int:
        """Submit every due job to the pool; returns how many were submitted."""
        now_ts = (now or datetime.now()).timestamp()
        submitted = 0
        with self._job_lock:
            while self._job_heap and self._job_heap[0][0] <= now_ts:
                run_at_ts, _seq, job_id = heapq.heappop(self._job_heap)
                job = self._jobs.get(job_id)
                if not job or not job.enabled or not job.next_run:
                    continue
                # Entry pushed for an earlier next_run
                if abs(job.next_run.timestamp() - run_at_ts) > 1e-6:
                    continue

                scheduled_for = job.next_run
                self._schedule_next_run(job, reference_time=scheduled_for)
                self._push_heap(job)

                if self._executor is None:
                    logger.warning("Executor unavailable; skipping %s", job_id)
                    continue
                self._executor.submit(self._execute_job, job_id, scheduled_for)
                submitted += 1
        return submitted

    def _execute_job(self, job_id: str, scheduled_for: datetime) -> JobResult | None:
        with self._job_lock:
            job = self._jobs.get(job_id)
        if not job:
            return None

        started_at = datetime.now()
        try:
            func = self._tasks.get(job.task_name)
            if func is None:
                raise LookupError(f"Task function not found: {job.task_name}")
            result = func(*job.args, **job.kwargs)
        except Exception as e:
            with self._job_lock:
                job.last_run = started_at
                job.run_count += 1
                job.failure_count += 1
                job.last_error = str(e)
            job_result = JobResult(job.job_id, False, started_at, datetime.now(), error=str(e))
            logger.error("Job %s failed: %s", job.job_id, e, exc_info=True)
        else:
            with self._job_lock:
                job.last_run = started_at
                job.run_count += 1
                job.success_count += 1
                job.last_error = None
            job_result = JobResult(job.job_id, True, started_at, datetime.now(), result=result)
            logger.debug(
                "Job %s completed in %.2fs (scheduled_for=%s)",
                job.job_id,
                job_result.duration_seconds,
                scheduled_for.isoformat(),
            )
        self._record_history(job_result)
        return job_result

    def _schedule_next_run(self, job: ScheduledJob, *, reference_time: datetime) -> None:
        if job.schedule_type == ScheduleType.INTERVAL:
            interval = int(job.interval_seconds or 60)
            next_run = reference_time + timedelta(seconds=interval)
            # Skip missed slots after a long pause instead of running them back to back
            now = datetime.now()
            if next_run <= now:
                skips = int((now - next_run).total_seconds() // interval) + 1
                next_run += timedelta(seconds=skips * interval)
            job.next_run = next_run
        elif job.schedule_type == ScheduleType.DAILY:
            job.next_run = self._calculate_next_daily(job.time_of_day or "00:00")
        else:
            job.next_run = None
            job.enabled = False

    @staticmethod
    def _calculate_next_daily(time_of_day: str, now: datetime | None = None) -> datetime:
        now = now or datetime.now()
        hour, minute = map(int, time_of_day.split(":"))
        next_run = now.replace(hour=hour, minute=minute, second=0, microsecond=0)
        if next_run <= now:
            next_run += timedelta(days=1)
        return next_run

    def _record_history(self, result: JobResult) -> None:
        with self._job_lock:
            self._history.append(result)
            if len(self._history) > self._max_history:
                self._history = self._history[-self._max_history :]

    # ==================== Status & History ====================

    def get_status(self) -> dict[str, Any]:
        with self._job_lock:
            enabled_jobs = [j for j in self._jobs.values() if j.enabled]
            return {
                "running": self._running,
                "total_jobs": len(self._jobs),
                "enabled_jobs": len(enabled_jobs),
                "namespaces": sorted({j.namespace for j in self._jobs.values()}),
                "pending_jobs": sum(1 for j in enabled_jobs if j.next_run is not None),
                "registered_tasks": sorted(self._tasks),
                "history_size": len(self._history),
                "recent_failures": sum(1 for r in self._history[-20:] if not r.success),
                "max_workers": self._max_workers,
            }

    def health_check(self) -> dict[str, Any]:
        """Status plus a healthy/degraded/unhealthy verdict from recent runs."""
        status = self.get_status()
        with self._job_lock:
            recent = self._history[-50:]
        failures = [r for r in recent if not r.success]
        failure_rate = len(failures) / len(recent) if recent else 0.0

        if not status["running"]:
            health, reason = "unhealthy", "Scheduler is not running"
        elif failure_rate > 0.5:
            health, reason = "unhealthy", f"High failure rate: {failure_rate:.0%}"
        elif failure_rate > 0.2:
            health, reason = "degraded", f"Elevated failure rate: {failure_rate:.0%}"
        else:
            health, reason = "healthy", "All jobs operational"

        return {
            "health": health,
            "reason": reason,
            "timestamp": datetime.now().isoformat(),
            "status": status,
            "failure_rate": round(failure_rate, 3),
            "jobs": [job.to_dict() for job in self.get_jobs()],
        }

    def get_history(self, job_id: str | None = None, namespace: str | None = None, limit: int = 100) -> list[JobResult]:
        """Execution results, newest first."""
        with self._job_lock:
            results = list(self._history)
        if job_id:
            results = [r for r in results if r.job_id == job_id]
        if namespace:
            ns_job_ids = {j.job_id for j in self._jobs.values() if j.namespace == namespace}
            results = [r for r in results if r.job_id in ns_job_ids]
        return sorted(results, key=lambda r: r.started_at, reverse=True)[: int(limit)]

