"""
casinoscrape.scheduling.schedule

Trigger semantics for scraping jobs.
Supports cron expressions (five fields, evaluated in an IANA timezone)
and interval shorthands.
"""

from __future__ import annotations

import datetime
from dataclasses import dataclass
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from croniter import croniter

from casinoscrape.runtime.errors import InvalidTrigger


@dataclass(frozen=True)
class Schedule:
    type: str  # "interval" | "cron"
    value: str | int
    timezone: str = "UTC"

    def summary(self) -> str:
        return f"{self.type}: {self.value} ({self.timezone})"

    @property
    def tz(self) -> ZoneInfo:
        return ZoneInfo(self.timezone)

    def next_after(self, dt: datetime.datetime) -> datetime.datetime:
        """First fire time strictly after ``dt`` (aware datetime, in the schedule's zone)."""
        if dt.tzinfo is None:
            dt = dt.replace(tzinfo=datetime.timezone.utc)
        local = dt.astimezone(self.tz)
        if self.type == "interval":
            return local + datetime.timedelta(seconds=int(self.value))
        return croniter(str(self.value), local).get_next(datetime.datetime)


def _parse_interval(s: str) -> int | None:
    units = {"h": 3600, "m": 60, "s": 1}
    if s[-1:] in units and s[:-1].isdigit():
        return int(s[:-1]) * units[s[-1]]
    if s.isdigit():
        return int(s)
    return None


def parse_schedule(expr: str | int, *, timezone: str = "UTC") -> Schedule:
    """
    Parse a trigger expression.
    Expected formats:
      "*/5 * * * *" (cron)
      "1h" | "30m" | "10s" | "3600" (interval)

    Raises InvalidTrigger on malformed expressions or unknown timezones.
    """
    try:
        ZoneInfo(timezone)
    except (ZoneInfoNotFoundError, ValueError) as e:
        raise InvalidTrigger(f"Unknown timezone: {timezone!r}") from e

    if isinstance(expr, int):
        seconds: int | None = expr
    else:
        s = str(expr).strip()
        if not s:
            raise InvalidTrigger("Empty trigger expression")
        seconds = _parse_interval(s)
        if seconds is None:
            if len(s.split()) != 5 or not croniter.is_valid(s):
                raise InvalidTrigger(f"Invalid cron expression: {s!r}")
            return Schedule(type="cron", value=s, timezone=timezone)

    if seconds <= 0:
        raise InvalidTrigger(f"Interval must be positive, got {seconds}")
    return Schedule(type="interval", value=seconds, timezone=timezone)


def next_run_times(schedule: Schedule, start: datetime.datetime, n: int = 5) -> list[datetime.datetime]:
    """Calculate the next ``n`` fire times after ``start``."""
    out = []
    current = start
    for _ in range(n):
        current = schedule.next_after(current)
        out.append(current)
    return out
