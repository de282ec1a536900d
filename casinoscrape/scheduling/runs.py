"""
casinoscrape.scheduling.runs

Run bookkeeping: TaskRun per cycle, ScraperOutcome per scraper,
cumulative SchedulerStats and ScheduledJob descriptors.
"""

from __future__ import annotations

import asyncio
import datetime
import uuid
from dataclasses import asdict, dataclass, field
from enum import Enum
from typing import Any

from casinoscrape.runtime.errors import InvalidStatusTransition
from casinoscrape.scheduling.schedule import Schedule
from casinoscrape.schemas.records import utcnow


class TaskStatus(str, Enum):
    RUNNING = "running"
    SUCCESS = "success"
    ERROR = "error"
    CANCELLED = "cancelled"


@dataclass
class ScraperOutcome:
    game: str
    ok: bool
    records: int = 0
    fallback: bool = False
    duration_ms: float = 0.0
    error: dict[str, str] | None = None


@dataclass
class TaskRun:
    task_name: str
    run_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    status: TaskStatus = TaskStatus.RUNNING
    started_at: datetime.datetime = field(default_factory=utcnow)
    completed_at: datetime.datetime | None = None
    duration_ms: float | None = None
    processed_items: int = 0
    error: dict[str, str] | None = None
    outcomes: list[ScraperOutcome] = field(default_factory=list)
    partial: bool = False

    @property
    def finished(self) -> bool:
        return self.status is not TaskStatus.RUNNING

    def complete(
        self,
        status: TaskStatus,
        *,
        error: dict[str, str] | None = None,
        now: datetime.datetime | None = None,
    ) -> None:
        """Move to a terminal state. Allowed exactly once."""
        if self.finished:
            raise InvalidStatusTransition(f"Task is already {self.status.value}")
        if status is TaskStatus.RUNNING:
            raise InvalidStatusTransition("Cannot complete a task into 'running'")
        now = now or utcnow()
        self.status = status
        self.error = error
        self.completed_at = now
        self.duration_ms = round((now - self.started_at).total_seconds() * 1000, 3)

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        d["status"] = self.status.value
        d["started_at"] = self.started_at.isoformat()
        d["completed_at"] = self.completed_at.isoformat() if self.completed_at else None
        return d


@dataclass
class SchedulerStats:
    total_runs: int = 0
    successful_runs: int = 0
    failed_runs: int = 0
    skipped_runs: int = 0
    last_run: datetime.datetime | None = None
    last_success: datetime.datetime | None = None
    last_error: dict[str, str] | None = None
    average_execution_time_ms: float = 0.0

    def record(self, run: TaskRun) -> None:
        """Fold a finished run into the totals and the running average."""
        self.total_runs += 1
        self.last_run = run.completed_at or run.started_at
        if run.status is TaskStatus.SUCCESS:
            self.successful_runs += 1
            self.last_success = self.last_run
        else:
            self.failed_runs += 1
            self.last_error = run.error
        duration = run.duration_ms or 0.0
        n = self.total_runs
        self.average_execution_time_ms = round(
            (self.average_execution_time_ms * (n - 1) + duration) / n, 3
        )

    def to_dict(self) -> dict[str, Any]:
        d = asdict(self)
        for k in ("last_run", "last_success"):
            if d[k] is not None:
                d[k] = d[k].isoformat()
        return d


@dataclass
class ScheduledJob:
    name: str
    schedule: Schedule
    run_on_init: bool = False
    created_at: datetime.datetime = field(default_factory=utcnow)
    last_run: datetime.datetime | None = None
    next_run: datetime.datetime | None = None
    task: asyncio.Task | None = field(default=None, repr=False, compare=False)

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "schedule": self.schedule.summary(),
            "run_on_init": self.run_on_init,
            "created_at": self.created_at.isoformat(),
            "last_run": self.last_run.isoformat() if self.last_run else None,
            "next_run": self.next_run.isoformat() if self.next_run else None,
            "active": self.task is not None and not self.task.done(),
        }
