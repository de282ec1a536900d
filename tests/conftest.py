"""
Shared pytest fixtures for the casinoscrape test suite.

Provides a fake browser session, scraper factories and HTML fixtures so
no test launches a real browser or touches the network.
"""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from casinoscrape.config.loader import default_games
from casinoscrape.engines.browser import PageSnapshot
from casinoscrape.monitoring.logging import ROOT_LOGGER
from casinoscrape.runtime.resilience import RetryPolicy
from casinoscrape.scrapers.live_game import LiveGameScraper
from casinoscrape.storage.persistence import InMemoryRecordStore

FIXTURES_DIR = Path(__file__).parent / "fixtures" / "html"


class FakeSession:
    """
    Stand-in for BrowserSession.

    ``responses`` are consumed one per ``goto``: an exception is raised,
    a PageSnapshot is returned as-is, a string becomes a 200 page.
    """

    def __init__(self, responses=None, *, start_error=None, close_error=None):
        self.responses = list(responses or [])
        self.start_error = start_error
        self.close_error = close_error
        self.started = False
        self.closed = False
        self.goto_calls: list[str] = []

    async def start(self):
        if self.start_error is not None:
            raise self.start_error
        self.started = True

    async def goto(self, url, *, timeout_s=None):
        self.goto_calls.append(url)
        item = self.responses.pop(0) if self.responses else "<html><body></body></html>"
        if isinstance(item, BaseException):
            raise item
        if isinstance(item, PageSnapshot):
            return item
        return PageSnapshot(url=url, final_url=url, status=200, html=item)

    async def close(self):
        self.closed = True
        if self.close_error is not None:
            raise self.close_error


@pytest.fixture
def games():
    return default_games()


@pytest.fixture
def load_html():
    """Return a function that reads an HTML fixture by file name."""

    def _load(name: str) -> str:
        return (FIXTURES_DIR / name).read_text(encoding="utf-8")

    return _load


@pytest.fixture
def make_scraper(games):
    """
    Return a function that builds a scraper wired to a FakeSession.

    Example:
        scraper, session, sleeps = make_scraper(responses=[html])
    """

    def _make(
        cls=LiveGameScraper,
        key: str = "crazy-time",
        *,
        responses=None,
        session: FakeSession | None = None,
        store=None,
        max_attempts: int = 3,
    ):
        session = session or FakeSession(responses)
        sleeps: list[float] = []

        async def fake_sleep(seconds: float) -> None:
            sleeps.append(seconds)

        scraper = cls(
            games[key],
            store=store if store is not None else InMemoryRecordStore(),
            retry_policy=RetryPolicy(max_attempts=max_attempts, delay_range_s=(5.0, 10.0)),
            session_factory=lambda options: session,
            sleep=fake_sleep,
        )
        return scraper, session, sleeps

    return _make


@pytest.fixture
def fake_session():
    """The FakeSession class, for tests that need to configure or subclass it."""
    return FakeSession


@pytest.fixture(autouse=True)
def _reset_package_logger():
    """Undo CLI logging setup so caplog keeps seeing package records."""
    yield
    logger = logging.getLogger(ROOT_LOGGER)
    for h in list(logger.handlers):
        logger.removeHandler(h)
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
