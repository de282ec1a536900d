"""Unit tests for BrowserSession against a faked Playwright driver."""

import pytest

from casinoscrape.engines import browser
from casinoscrape.engines.browser import (
    DEFAULT_USER_AGENT,
    STEALTH_INIT_SCRIPT,
    BrowserSession,
    BrowserSessionOptions,
)


class FakeResponse:
    status = 200


class FakePage:
    url = "https://casinoscores.com/crazy-time/"

    def __init__(self):
        self.closed = False
        self.goto_kwargs = None

    async def goto(self, url, **kwargs):
        self.goto_kwargs = kwargs
        return FakeResponse()

    async def content(self):
        return "<html><body>ok</body></html>"

    async def close(self):
        self.closed = True


class FakeContext:
    def __init__(self, kwargs):
        self.kwargs = kwargs
        self.init_scripts = []
        self.nav_timeout = None
        self.page = FakePage()
        self.closed = False

    async def add_init_script(self, script):
        self.init_scripts.append(script)

    def set_default_navigation_timeout(self, ms):
        self.nav_timeout = ms

    async def new_page(self):
        return self.page

    async def close(self):
        self.closed = True


class FakeBrowser:
    def __init__(self):
        self.context = None
        self.closed = False

    async def new_context(self, **kwargs):
        self.context = FakeContext(kwargs)
        return self.context

    async def close(self):
        self.closed = True


class FakeLauncher:
    def __init__(self, error=None):
        self.error = error
        self.launch_kwargs = None
        self.browser = FakeBrowser()

    async def launch(self, **kwargs):
        self.launch_kwargs = kwargs
        if self.error is not None:
            raise self.error
        return self.browser


class FakePlaywright:
    def __init__(self, launcher):
        self.chromium = launcher
        self.stopped = False

    async def stop(self):
        self.stopped = True


@pytest.fixture
def fake_driver(monkeypatch):
    """Install a fake ``async_playwright`` and return a function configuring it."""

    def _install(error=None):
        pw = FakePlaywright(FakeLauncher(error))

        class _Starter:
            async def start(self):
                return pw

        monkeypatch.setattr(browser, "async_playwright", lambda: _Starter())
        return pw

    return _install


class TestBrowserSession:
    @pytest.mark.asyncio
    async def test_start_applies_stealth_configuration(self, fake_driver):
        pw = fake_driver()
        session = BrowserSession(BrowserSessionOptions(nav_timeout_s=12))
        await session.start()

        launch = pw.chromium.launch_kwargs
        assert launch["headless"] is True
        assert "--disable-blink-features=AutomationControlled" in launch["args"]

        ctx = pw.chromium.browser.context
        assert ctx.kwargs["user_agent"] == DEFAULT_USER_AGENT
        assert ctx.kwargs["viewport"] == {"width": 1920, "height": 1080}
        assert "Accept-Language" in ctx.kwargs["extra_http_headers"]
        assert ctx.init_scripts == [STEALTH_INIT_SCRIPT]
        assert ctx.nav_timeout == 12000
        assert session.started

    @pytest.mark.asyncio
    async def test_goto_returns_snapshot(self, fake_driver):
        fake_driver()
        async with BrowserSession() as session:
            snap = await session.goto("https://casinoscores.com/crazy-time", timeout_s=5)
        assert snap.status == 200
        assert snap.final_url == "https://casinoscores.com/crazy-time/"
        assert "ok" in snap.html
        assert not session.started

    @pytest.mark.asyncio
    async def test_missing_binaries_message(self, fake_driver):
        pw = fake_driver(error=Exception("Executable doesn't exist at /ms-playwright/chromium"))
        session = BrowserSession()
        with pytest.raises(RuntimeError, match="playwright install"):
            await session.start()
        assert pw.stopped

    @pytest.mark.asyncio
    async def test_close_is_idempotent(self, fake_driver):
        pw = fake_driver()
        session = BrowserSession()
        await session.start()
        page = pw.chromium.browser.context.page
        await session.close()
        await session.close()
        assert page.closed
        assert pw.chromium.browser.closed
        assert pw.stopped

    @pytest.mark.asyncio
    async def test_goto_before_start(self):
        with pytest.raises(RuntimeError):
            await BrowserSession().goto("https://example.com/")

    @pytest.mark.asyncio
    async def test_close_releases_everything_when_page_close_fails(self, fake_driver):
        pw = fake_driver()
        session = BrowserSession()
        await session.start()
        ctx = pw.chromium.browser.context

        async def broken_close():
            raise RuntimeError("target page crashed")

        ctx.page.close = broken_close

        with pytest.raises(RuntimeError, match="target page crashed"):
            await session.close()

        assert ctx.closed
        assert pw.chromium.browser.closed
        assert pw.stopped
        assert not session.started

    @pytest.mark.asyncio
    async def test_close_keeps_first_error(self, fake_driver):
        pw = fake_driver()
        session = BrowserSession()
        await session.start()
        ctx = pw.chromium.browser.context

        async def context_gone():
            raise RuntimeError("context already closed")

        async def browser_gone():
            raise RuntimeError("browser disconnected")

        ctx.close = context_gone
        pw.chromium.browser.close = browser_gone

        with pytest.raises(RuntimeError, match="context already closed"):
            await session.close()

        assert ctx.page.closed
        assert pw.stopped
