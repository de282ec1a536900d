"""
casinoscrape.scheduling.scheduler

TaskScheduler: recurring scraping cycles that never overlap.

- jobs are asyncio timer tasks driven by a Clock
- each fire spawns a cycle; a cycle fans out to every registered scraper
- a non-blocking lock guards cycles: a trigger that finds a cycle in
  flight is skipped, not queued
- one scraper failing never fails its siblings
"""

from __future__ import annotations

import asyncio
import datetime
import logging
import threading
import time
from collections import deque
from typing import Any, Protocol

from casinoscrape.monitoring.events import (
    CYCLE_FINISHED,
    CYCLE_SKIPPED,
    CYCLE_STARTED,
    SCRAPER_FAILED,
    emit_event,
)
from casinoscrape.monitoring.logging import with_context
from casinoscrape.monitoring.metrics import MetricsRegistry
from casinoscrape.runtime.errors import TaskTimeout, error_to_dict
from casinoscrape.scheduling.runs import (
    ScheduledJob,
    SchedulerStats,
    ScraperOutcome,
    TaskRun,
    TaskStatus,
)
from casinoscrape.scheduling.schedule import parse_schedule
from casinoscrape.scrapers.registry import ScraperRegistry

logger = logging.getLogger(__name__)

RECENT_RUNS_IN_STATUS = 10


class Clock(Protocol):
    def now(self) -> datetime.datetime: ...

    async def sleep(self, seconds: float) -> None: ...


class SystemClock:
    def now(self) -> datetime.datetime:
        return datetime.datetime.now(datetime.timezone.utc)

    async def sleep(self, seconds: float) -> None:
        await asyncio.sleep(seconds)


class TaskScheduler:
    """Owns jobs, the single-flight guard and cumulative run statistics."""

    def __init__(
        self,
        registry: ScraperRegistry,
        *,
        clock: Clock | None = None,
        scrape_timeout_s: float | None = None,
        history_size: int = 50,
        metrics: MetricsRegistry | None = None,
    ) -> None:
        self.registry = registry
        self.clock = clock or SystemClock()
        self.scrape_timeout_s = scrape_timeout_s
        self.metrics = metrics or MetricsRegistry()

        self.jobs: dict[str, ScheduledJob] = {}
        self.stats = SchedulerStats()
        self.history: deque[TaskRun] = deque(maxlen=history_size)

        self._guard = threading.Lock()
        self._cycles: set[asyncio.Task] = set()

    @property
    def is_running(self) -> bool:
        return self._guard.locked()

    # -------------------------
    # Control surface
    # -------------------------

    def create_job(
        self,
        name: str,
        trigger_expr: str | int,
        *,
        timezone: str = "UTC",
        run_on_init: bool = False,
    ) -> ScheduledJob:
        """Register (or replace) a recurring job. Must be called with a running loop."""
        schedule = parse_schedule(trigger_expr, timezone=timezone)
        loop = asyncio.get_running_loop()

        if name in self.jobs:
            logger.info("Replacing existing job %s", name)
            self.stop_job(name)

        job = ScheduledJob(name=name, schedule=schedule, run_on_init=run_on_init, created_at=self.clock.now())
        job.next_run = schedule.next_after(job.created_at)
        job.task = loop.create_task(self._job_loop(job), name=f"casinoscrape-job-{name}")
        self.jobs[name] = job
        logger.info("Scheduled job %s (%s)", name, schedule.summary())
        return job

    async def run_once(self, job_name: str = "manual") -> TaskRun | None:
        """Trigger one cycle now. Returns None when a cycle is already running."""
        return await self.on_trigger(job_name)

    def stop_job(self, name: str) -> bool:
        """Cancel a job's timer. In-flight cycles are not interrupted."""
        job = self.jobs.pop(name, None)
        if job is None:
            return False
        if job.task is not None:
            job.task.cancel()
        logger.info("Stopped job %s", name)
        return True

    def stop_all(self) -> int:
        names = list(self.jobs)
        for name in names:
            self.stop_job(name)
        return len(names)

    def get_status(self) -> dict[str, Any]:
        return {
            "is_running": self.is_running,
            "jobs": {name: job.to_dict() for name, job in self.jobs.items()},
            "stats": self.stats.to_dict(),
            "recent_runs": [r.to_dict() for r in list(self.history)[-RECENT_RUNS_IN_STATUS:]],
            "failures_by_game": self.metrics.per_label("scraper_failures", "game"),
            "metrics": self.metrics.as_dict(),
        }

    async def drain(self) -> None:
        """Wait for cycles spawned by job timers to finish."""
        while self._cycles:
            await asyncio.gather(*list(self._cycles), return_exceptions=True)

    # -------------------------
    # Timers
    # -------------------------

    async def _job_loop(self, job: ScheduledJob) -> None:
        if job.run_on_init:
            self._spawn_cycle(job)
        while True:
            now = self.clock.now()
            job.next_run = job.schedule.next_after(now)
            await self.clock.sleep(max(0.0, (job.next_run - now).total_seconds()))
            self._spawn_cycle(job)

    def _spawn_cycle(self, job: ScheduledJob) -> None:
        job.last_run = self.clock.now()
        task = asyncio.get_running_loop().create_task(self.on_trigger(job.name))
        self._cycles.add(task)
        task.add_done_callback(self._cycles.discard)

    # -------------------------
    # Cycles
    # -------------------------

    async def on_trigger(self, job_name: str) -> TaskRun | None:
        if not self._guard.acquire(blocking=False):
            self.stats.skipped_runs += 1
            self.metrics.inc("cycles_skipped", labels={"job": job_name})
            emit_event(
                with_context(logger, job=job_name),
                CYCLE_SKIPPED,
                {"reason": "previous cycle still running"},
                level="warning",
            )
            return None

        run = TaskRun(task_name=job_name, started_at=self.clock.now())
        log = with_context(logger, job=job_name, run_id=run.run_id)
        try:
            await self._run_cycle(run, log)
        except asyncio.CancelledError:
            if not run.finished:
                run.complete(
                    TaskStatus.CANCELLED,
                    error={"message": "cycle cancelled", "code": "CANCELLED"},
                    now=self.clock.now(),
                )
            raise
        except Exception as e:
            log.exception("Cycle failed")
            if not run.finished:
                run.complete(
                    TaskStatus.ERROR,
                    error={"message": f"{type(e).__name__}: {e}", "code": "CYCLE_FAILED"},
                    now=self.clock.now(),
                )
        finally:
            try:
                self.stats.record(run)
                self.history.append(run)
                self.metrics.inc("cycles_total", labels={"status": run.status.value})
            finally:
                self._guard.release()
        return run

    async def _run_cycle(self, run: TaskRun, log: logging.LoggerAdapter) -> None:
        keys = self.registry.available()
        emit_event(log, CYCLE_STARTED, {"scrapers": keys})

        outcomes = await asyncio.gather(*(self._run_scraper(key, log) for key in keys))
        run.outcomes = list(outcomes)
        ok = [o for o in outcomes if o.ok]
        failed = [o for o in outcomes if not o.ok]
        run.processed_items = sum(o.records for o in ok)

        if keys and not ok:
            run.complete(
                TaskStatus.ERROR,
                error={"message": f"All {len(keys)} scraper(s) failed", "code": "ALL_SCRAPERS_FAILED"},
                now=self.clock.now(),
            )
        else:
            run.partial = bool(failed)
            run.complete(TaskStatus.SUCCESS, now=self.clock.now())

        emit_event(
            log,
            CYCLE_FINISHED,
            {
                "status": run.status.value,
                "processed_items": run.processed_items,
                "failed": [o.game for o in failed],
                "duration_ms": run.duration_ms,
            },
            level="info" if run.status is TaskStatus.SUCCESS else "error",
        )

    async def _run_scraper(self, key: str, log: logging.LoggerAdapter) -> ScraperOutcome:
        """Build and run one scraper; any exception, construction included, becomes a failed outcome."""
        labels = {"game": key}
        t0 = time.perf_counter()
        try:
            scraper = self.registry.create_scraper(key)
            with self.metrics.time("scraper_duration_s", labels=labels):
                if self.scrape_timeout_s:
                    try:
                        records = await asyncio.wait_for(scraper.run(), timeout=self.scrape_timeout_s)
                    except asyncio.TimeoutError as e:
                        raise TaskTimeout(f"{key} exceeded {self.scrape_timeout_s}s") from e
                else:
                    records = await scraper.run()
        except Exception as e:
            self.metrics.inc("scraper_failures", labels=labels)
            err = error_to_dict(e)
            emit_event(with_context(log, game=key), SCRAPER_FAILED, err, level="error")
            return ScraperOutcome(
                game=key,
                ok=False,
                duration_ms=round((time.perf_counter() - t0) * 1000, 3),
                error=err,
            )

        fallback = any(r.fallback_mode for r in records)
        if fallback:
            self.metrics.inc("scraper_fallbacks", labels=labels)
        return ScraperOutcome(
            game=key,
            ok=True,
            records=len(records),
            fallback=fallback,
            duration_ms=round((time.perf_counter() - t0) * 1000, 3),
        )
