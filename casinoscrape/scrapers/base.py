"""
casinoscrape.scrapers.base

GameScraper: initialize -> navigate -> extract -> persist-or-fallback -> close.

Contract of ``run()``:
- returns a non-empty list of records on every path but one
- raises NavigationFailure when the page could not be reached
- always releases the browser session
"""

from __future__ import annotations

import asyncio
import logging
from abc import ABC, abstractmethod
from collections.abc import Awaitable, Callable
from enum import Enum
from typing import Any

from casinoscrape.config.schema import GameConfig
from casinoscrape.engines.browser import BrowserSession, BrowserSessionOptions, PageSnapshot
from casinoscrape.extraction.pipeline import Extractor
from casinoscrape.monitoring.events import SCRAPER_FALLBACK, emit_event
from casinoscrape.monitoring.logging import with_context
from casinoscrape.runtime.blocks import BlockMatch, classify_page
from casinoscrape.runtime.errors import (
    BrowserLaunchFailure,
    ExtractionEmpty,
    NavigationFailure,
    PersistenceUnavailable,
    ScrapeError,
    error_to_dict,
)
from casinoscrape.runtime.resilience import RetryPolicy
from casinoscrape.schemas.records import GameRecord, utcnow
from casinoscrape.storage.persistence import PersistenceAdapter

logger = logging.getLogger(__name__)

SessionFactory = Callable[[BrowserSessionOptions], BrowserSession]
SleepFn = Callable[[float], Awaitable[Any]]

PLACEHOLDER_COUNT = 2
PLACEHOLDER_FEATURES = ("live-feed", "real-time")


class ScraperState(str, Enum):
    IDLE = "idle"
    INITIALIZING = "initializing"
    NAVIGATING = "navigating"
    EXTRACTING = "extracting"
    PERSISTING = "persisting"
    FALLING_BACK = "falling_back"
    CLOSED = "closed"


class GameScraper(ABC):
    """Base class for all game scrapers. Subclasses provide the extractor."""

    def __init__(
        self,
        game: GameConfig,
        *,
        store: PersistenceAdapter | None = None,
        retry_policy: RetryPolicy | None = None,
        session_options: BrowserSessionOptions | None = None,
        session_factory: SessionFactory = BrowserSession,
        sleep: SleepFn = asyncio.sleep,
    ) -> None:
        self.game = game
        self.store = store
        self.retry_policy = retry_policy or RetryPolicy()
        self.session_options = session_options or BrowserSessionOptions()
        self.session_factory = session_factory
        self._sleep = sleep

        self.state = ScraperState.IDLE
        self.last_error: ScrapeError | None = None
        self.block_signals: list[BlockMatch] = []
        self.attempts = 0
        self._session: BrowserSession | None = None
        self.log = with_context(logger, game=game.key)

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r}, state={self.state.value})"

    @property
    def key(self) -> str:
        return self.game.key

    @property
    def target_url(self) -> str:
        return self.game.url

    @abstractmethod
    def build_extractor(self) -> Extractor: ...

    # -------------------------
    # Lifecycle
    # -------------------------

    async def run(self) -> list[GameRecord]:
        self.state = ScraperState.IDLE
        self.last_error = None
        self.block_signals = []
        try:
            await self.initialize()
            snapshot = await self.navigate(self.target_url)
            records = await self.extract(snapshot)
            return await self.persist_or_fallback(records)
        except NavigationFailure as e:
            self.last_error = e
            self.log.error("Scrape failed: %s", e)
            raise
        finally:
            await self.close()

    async def initialize(self) -> None:
        self.state = ScraperState.INITIALIZING
        try:
            self._session = self.session_factory(self.session_options)
            await self._session.start()
        except Exception as e:
            raise BrowserLaunchFailure(self.target_url, e) from e
        self.log.debug("Browser session started")

    async def navigate(self, url: str) -> PageSnapshot:
        """
        Load ``url`` within the retry budget.

        Exceptions, timeouts and retryable HTTP statuses all count as failed
        attempts; a random delay from the retry policy separates attempts.
        """
        if self._session is None:
            raise NavigationFailure(url, 0, "browser session not initialized")

        self.state = ScraperState.NAVIGATING
        policy = self.retry_policy
        timeout_s = self.session_options.nav_timeout_s
        last_error: BaseException | str | None = None
        self.attempts = 0

        for attempt in range(1, policy.max_attempts + 1):
            self.attempts = attempt
            try:
                snapshot = await asyncio.wait_for(self._session.goto(url, timeout_s=timeout_s), timeout=timeout_s)
            except Exception as e:
                last_error = e
                self.log.warning("Navigation attempt %d/%d to %s failed: %s", attempt, policy.max_attempts, url, e)
            else:
                if not policy.is_retryable_status(snapshot.status):
                    self.block_signals = await asyncio.to_thread(classify_page, snapshot.html)
                    if self.block_signals:
                        self.log.warning(
                            "Block signals on %s: %s",
                            url,
                            ", ".join(f"{m.signal.value} ({m.phrase!r})" for m in self.block_signals),
                        )
                    self.log.info("Loaded %s (status=%s, attempt %d)", snapshot.final_url, snapshot.status, attempt)
                    return snapshot
                last_error = f"HTTP {snapshot.status}"
                self.log.warning(
                    "Navigation attempt %d/%d to %s returned HTTP %s", attempt, policy.max_attempts, url, snapshot.status
                )

            if policy.has_attempts_left(attempt):
                await self._sleep(policy.compute_delay_s(attempt))

        raise NavigationFailure(url, policy.max_attempts, last_error)

    async def extract(self, snapshot: PageSnapshot) -> list[GameRecord]:
        """Run the extractor off the event loop. Extractor errors yield no records."""
        self.state = ScraperState.EXTRACTING
        extractor = self.build_extractor()
        try:
            records = await asyncio.to_thread(extractor.extract, snapshot.html, snapshot.final_url)
        except Exception:
            self.log.exception("Extraction failed on %s", snapshot.final_url)
            return []

        if self.block_signals:
            signals = [m.signal.value for m in self.block_signals]
            evidence = {m.signal.value: m.phrase for m in self.block_signals}
            for rec in records:
                provenance = rec.stats.setdefault("provenance", {})
                provenance["block_signals"] = signals
                provenance["block_evidence"] = evidence
        self.log.info("Extracted %d record(s)", len(records))
        return records

    async def persist_or_fallback(self, records: list[GameRecord]) -> list[GameRecord]:
        """
        Save records, or degrade to fallback data. Never raises.

        - no records: synthesize placeholders (not persisted)
        - store unavailable or failing: return the records flagged as fallback
        """
        if not records:
            self.state = ScraperState.FALLING_BACK
            reason = ExtractionEmpty(f"No records extracted for {self.key}")
            emit_event(self.log, SCRAPER_FALLBACK, error_to_dict(reason), level="warning", stage="extract")
            return self.synthesize_placeholders(reason)

        self.state = ScraperState.PERSISTING
        try:
            if self.store is None:
                raise PersistenceUnavailable("no persistence adapter configured")
            if not await asyncio.to_thread(self.store.is_available):
                raise PersistenceUnavailable(f"{type(self.store).__name__} is not available")
            saved = await asyncio.to_thread(self.store.save, records)
        except Exception as e:
            self.state = ScraperState.FALLING_BACK
            emit_event(
                self.log,
                SCRAPER_FALLBACK,
                {**error_to_dict(e), "records": len(records)},
                level="warning",
                stage="persist",
            )
            return [r.as_fallback() for r in records]

        self.log.info("Saved %d record(s)", len(saved))
        return list(saved) or records

    def synthesize_placeholders(self, reason: ScrapeError, count: int = PLACEHOLDER_COUNT) -> list[GameRecord]:
        now = utcnow()
        return [
            GameRecord(
                name=f"{self.game.name} - Live Casino {i} [{now:%H:%M:%S}]",
                url=self.game.target_url,
                type=self.game.type,
                provider=self.game.provider,
                description=self.game.description,
                features=[*self.game.features, *PLACEHOLDER_FEATURES],
                is_live=self.game.is_live,
                stats={
                    "provenance": {
                        "synthetic": True,
                        "reason": reason.code,
                        "last_update": now.isoformat(),
                    }
                },
                scraped_at=now,
                fallback_mode=True,
            )
            for i in range(1, count + 1)
        ]

    async def close(self) -> None:
        session, self._session = self._session, None
        try:
            if session is not None:
                await session.close()
                self.log.debug("Browser session closed")
        except Exception as e:
            self.log.warning("Error closing browser session: %s", e)
        finally:
            self.state = ScraperState.CLOSED
