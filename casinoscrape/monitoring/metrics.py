"""In-process scrape metrics: labelled counters and duration summaries.

Series are keyed by name plus a label set and exported with
Prometheus-style names (``scraper_failures{game="crazy-time"}``) through
the scheduler status. Scrapers report from worker threads, so every
mutation holds the registry lock.
"""

from __future__ import annotations

import threading
import time
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any

SeriesKey = tuple[str, tuple[tuple[str, str], ...]]


def series_key(name: str, labels: Mapping[str, str] | None = None) -> SeriesKey:
    return name, tuple(sorted((labels or {}).items()))


def series_name(key: SeriesKey) -> str:
    name, labels = key
    if not labels:
        return name
    return name + "{" + ",".join(f'{k}="{v}"' for k, v in labels) + "}"


@dataclass
class DurationSummary:
    """Count, total and extremes of observed durations (seconds)."""

    count: int = 0
    total: float = 0.0
    min: float | None = None
    max: float | None = None

    def add(self, value: float) -> None:
        self.count += 1
        self.total += value
        self.min = value if self.min is None else min(self.min, value)
        self.max = value if self.max is None else max(self.max, value)

    @property
    def mean(self) -> float:
        return self.total / self.count if self.count else 0.0

    def to_dict(self) -> dict[str, float | int | None]:
        return {"count": self.count, "total": self.total, "mean": self.mean, "min": self.min, "max": self.max}


@dataclass
class MetricsRegistry:
    counters: dict[SeriesKey, float] = field(default_factory=dict)
    durations: dict[SeriesKey, DurationSummary] = field(default_factory=dict)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def inc(self, name: str, value: float = 1.0, *, labels: Mapping[str, str] | None = None) -> None:
        key = series_key(name, labels)
        with self._lock:
            self.counters[key] = self.counters.get(key, 0.0) + float(value)

    def observe(self, name: str, seconds: float, *, labels: Mapping[str, str] | None = None) -> None:
        key = series_key(name, labels)
        with self._lock:
            self.durations.setdefault(key, DurationSummary()).add(float(seconds))

    @contextmanager
    def time(self, name: str, *, labels: Mapping[str, str] | None = None) -> Iterator[None]:
        """Observe the wall time of the block, including when it raises."""
        t0 = time.perf_counter()
        try:
            yield
        finally:
            self.observe(name, time.perf_counter() - t0, labels=labels)

    def counter(self, name: str, *, labels: Mapping[str, str] | None = None) -> float:
        with self._lock:
            return self.counters.get(series_key(name, labels), 0.0)

    def duration(self, name: str, *, labels: Mapping[str, str] | None = None) -> DurationSummary | None:
        with self._lock:
            return self.durations.get(series_key(name, labels))

    def per_label(self, name: str, label: str) -> dict[str, float]:
        """Sum a counter across series, grouped by one label (e.g. failures per game)."""
        out: dict[str, float] = {}
        with self._lock:
            for (metric, labels), value in self.counters.items():
                if metric != name:
                    continue
                group = dict(labels).get(label)
                if group is not None:
                    out[group] = out.get(group, 0.0) + value
        return out

    def as_dict(self) -> dict[str, Any]:
        with self._lock:
            return {
                "counters": {series_name(k): v for k, v in self.counters.items()},
                "durations": {series_name(k): d.to_dict() for k, d in self.durations.items()},
            }
