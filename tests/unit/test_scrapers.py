"""
Unit tests for GameScraper.

Covers the save path, placeholder and store fallbacks, the navigation
retry budget and session release on every exit path.
"""

import asyncio
from unittest.mock import MagicMock

import pytest

from casinoscrape.engines.browser import PageSnapshot
from casinoscrape.runtime.errors import BrowserLaunchFailure, NavigationFailure
from casinoscrape.scrapers.base import ScraperState
from casinoscrape.scrapers.listing import CasinoListingScraper
from casinoscrape.storage.persistence import InMemoryRecordStore


class TestHappyPath:
    @pytest.mark.asyncio
    async def test_records_saved(self, make_scraper, load_html):
        """Extracted records are persisted and returned without a fallback flag."""
        store = InMemoryRecordStore()
        scraper, session, sleeps = make_scraper(
            CasinoListingScraper, "casino-scores", responses=[load_html("casino_listing.html")], store=store
        )

        records = await scraper.run()

        assert [r.name for r in records] == ["Alpha Casino", "Beta Casino"]
        assert all(r.fallback_mode is None for r in records)
        assert len(store) == 2
        assert session.goto_calls == ["https://casinoscores.com/"]
        assert session.closed
        assert sleeps == []
        assert scraper.state is ScraperState.CLOSED

    @pytest.mark.asyncio
    async def test_live_game_targets_game_page(self, make_scraper, load_html):
        scraper, session, _ = make_scraper(responses=[load_html("crazy_time.html")])

        records = await scraper.run()

        assert session.goto_calls == ["https://casinoscores.com/crazy-time"]
        assert len(records) == 1
        assert records[0].stats["rtp"] == [96.08]


class TestFallbacks:
    @pytest.mark.asyncio
    async def test_empty_extraction_returns_placeholders(self, make_scraper, load_html):
        """Two synthetic records, flagged, freshly stamped and never written."""
        store = InMemoryRecordStore()
        scraper, session, _ = make_scraper(
            CasinoListingScraper, "casino-scores", responses=[load_html("empty.html")], store=store
        )

        records = await scraper.run()

        assert len(records) == 2
        assert all(r.fallback_mode is True for r in records)
        assert records[0].name.startswith("Casino Scores - Live Casino 1 [")
        assert records[1].name.startswith("Casino Scores - Live Casino 2 [")
        assert "live-feed" in records[0].features
        assert records[0].stats["provenance"]["reason"] == "EXTRACTION_EMPTY"
        assert len(store) == 0
        assert session.closed

    @pytest.mark.asyncio
    async def test_store_unavailable_returns_fallback_records(self, make_scraper, load_html):
        store = InMemoryRecordStore()
        store.available = False
        scraper, session, _ = make_scraper(
            CasinoListingScraper, "casino-scores", responses=[load_html("casino_listing.html")], store=store
        )

        records = await scraper.run()

        assert [r.name for r in records] == ["Alpha Casino", "Beta Casino"]
        assert all(r.fallback_mode is True for r in records)
        assert len(store) == 0
        assert session.closed

    @pytest.mark.asyncio
    async def test_store_exception_never_propagates(self, make_scraper, load_html):
        store = MagicMock()
        store.is_available.return_value = True
        store.save.side_effect = RuntimeError("disk full")
        scraper, _, _ = make_scraper(responses=[load_html("crazy_time.html")], store=store)

        records = await scraper.run()

        assert len(records) == 1
        assert records[0].fallback_mode is True
        store.save.assert_called_once()

    @pytest.mark.asyncio
    async def test_extractor_exception_treated_as_empty(self, make_scraper, monkeypatch):
        scraper, _, _ = make_scraper()
        broken = MagicMock()
        broken.extract.side_effect = ValueError("bad markup")
        monkeypatch.setattr(scraper, "build_extractor", lambda: broken)

        records = await scraper.run()

        assert len(records) == 2
        assert all(r.fallback_mode for r in records)


class TestNavigation:
    @pytest.mark.asyncio
    async def test_navigation_exhausts_attempt_budget(self, make_scraper):
        """Three failed attempts, two delays, then NavigationFailure; the session is released."""
        scraper, session, sleeps = make_scraper(
            responses=[TimeoutError("t1"), TimeoutError("t2"), TimeoutError("t3"), "<html></html>"]
        )

        with pytest.raises(NavigationFailure) as excinfo:
            await scraper.run()

        assert len(session.goto_calls) == 3
        assert len(sleeps) == 2
        assert all(5.0 <= s <= 10.0 for s in sleeps)
        assert excinfo.value.attempts == 3
        assert "t3" in str(excinfo.value)
        assert session.closed
        assert scraper.state is ScraperState.CLOSED
        assert scraper.last_error is excinfo.value

    @pytest.mark.asyncio
    async def test_recovers_on_second_attempt(self, make_scraper, load_html):
        scraper, session, sleeps = make_scraper(responses=[ConnectionError("reset"), load_html("crazy_time.html")])

        records = await scraper.run()

        assert len(session.goto_calls) == 2
        assert len(sleeps) == 1
        assert scraper.attempts == 2
        assert records[0].name == "Crazy Time"

    @pytest.mark.asyncio
    async def test_retryable_status_counts_as_failure(self, make_scraper, load_html):
        url = "https://casinoscores.com/crazy-time"
        scraper, session, _ = make_scraper(
            responses=[
                PageSnapshot(url=url, final_url=url, status=503, html=""),
                PageSnapshot(url=url, final_url=url, status=200, html=load_html("crazy_time.html")),
            ]
        )

        await scraper.run()

        assert len(session.goto_calls) == 2

    @pytest.mark.asyncio
    async def test_launch_failure_is_navigation_failure(self, make_scraper, fake_session):
        session = fake_session(start_error=RuntimeError("Browser binaries for chromium are missing"))
        scraper, _, _ = make_scraper(session=session)

        with pytest.raises(BrowserLaunchFailure):
            await scraper.run()

        assert session.goto_calls == []
        assert session.closed

    @pytest.mark.asyncio
    async def test_block_signals_recorded(self, make_scraper, load_html):
        html = load_html("crazy_time.html").replace("</main>", "<p>Please verify you are human (captcha)</p></main>")
        scraper, _, _ = make_scraper(responses=[html])

        records = await scraper.run()

        assert records[0].stats["provenance"]["block_signals"] == ["captcha_present"]
        assert records[0].stats["provenance"]["block_evidence"] == {"captcha_present": "verify you are human"}


class TestClose:
    @pytest.mark.asyncio
    async def test_close_error_is_logged_not_raised(self, make_scraper, load_html, caplog, fake_session):
        session = fake_session([load_html("crazy_time.html")], close_error=RuntimeError("already gone"))
        scraper, _, _ = make_scraper(session=session)

        records = await scraper.run()

        assert len(records) == 1
        assert scraper.state is ScraperState.CLOSED
        assert "already gone" in caplog.text

    @pytest.mark.asyncio
    async def test_cancellation_releases_session(self, make_scraper, fake_session):
        gate = asyncio.Event()

        class HangingSession(fake_session):
            async def goto(self, url, *, timeout_s=None):
                self.goto_calls.append(url)
                await gate.wait()

        session = HangingSession()
        scraper, _, _ = make_scraper(session=session)
        scraper.session_options.nav_timeout_s = 60

        task = asyncio.create_task(scraper.run())
        await asyncio.sleep(0.01)
        task.cancel()
        with pytest.raises(asyncio.CancelledError):
            await task

        assert session.closed
        assert scraper.state is ScraperState.CLOSED
