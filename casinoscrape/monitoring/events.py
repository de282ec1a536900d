"""Standardized events for scheduler and scraper traceability."""

from __future__ import annotations

import logging
from typing import Any

CYCLE_STARTED = "cycle.started"
CYCLE_FINISHED = "cycle.finished"
CYCLE_SKIPPED = "cycle.skipped"
SCRAPER_FAILED = "scraper.failed"
SCRAPER_FALLBACK = "scraper.fallback"


def emit_event(
    logger: logging.Logger | logging.LoggerAdapter,
    event: str,
    payload: dict[str, Any] | None = None,
    *,
    level: str = "info",
    stage: str | None = None,
) -> None:
    """Emit a structured event to the logger."""
    lvl = getattr(logging, level.upper(), logging.INFO)

    # The formatters pick up job/game/run_id from the ContextAdapter extras.
    extra: dict[str, Any] = {
        "event": event,
        "payload": payload or {},
    }
    if stage:
        extra["stage"] = stage

    logger.log(lvl, f"Event: {event}", extra=extra)
