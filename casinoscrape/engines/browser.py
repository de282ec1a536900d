"""
casinoscrape.engines.browser

Playwright-based browser session for rendering JS-heavy pages.

The session is configured to look like a regular desktop browser:
realistic user agent, viewport and request headers, and the usual
automation markers (``navigator.webdriver``, AutomationControlled) hidden.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

from playwright.async_api import Browser, BrowserContext, Page, Playwright, async_playwright

logger = logging.getLogger(__name__)

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/120.0.0.0 Safari/537.36"
)

DEFAULT_HEADERS = {
    "Accept-Language": "en-US,en;q=0.9",
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
    "Cache-Control": "no-cache",
    "Sec-Fetch-Dest": "document",
    "Sec-Fetch-Mode": "navigate",
    "Sec-Fetch-Site": "none",
    "Sec-Fetch-User": "?1",
    "Upgrade-Insecure-Requests": "1",
}

STEALTH_INIT_SCRIPT = """
Object.defineProperty(navigator, 'webdriver', { get: () => undefined });
Object.defineProperty(navigator, 'languages', { get: () => ['en-US', 'en'] });
Object.defineProperty(navigator, 'plugins', { get: () => [1, 2, 3, 4, 5] });
window.chrome = window.chrome || { runtime: {} };
"""

LAUNCH_ARGS = (
    "--disable-blink-features=AutomationControlled",
    "--no-sandbox",
    "--disable-dev-shm-usage",
)


@dataclass
class BrowserSessionOptions:
    browser_name: str = "chromium"  # chromium | firefox | webkit
    headless: bool = True
    nav_timeout_s: float = 30.0
    wait_until: str = "domcontentloaded"

    # context behavior
    user_agent: str = DEFAULT_USER_AGENT
    viewport: dict[str, int] = field(default_factory=lambda: {"width": 1920, "height": 1080})
    locale: str = "en-US"
    timezone_id: str = "UTC"
    extra_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HEADERS))
    launch_args: tuple[str, ...] = LAUNCH_ARGS


@dataclass
class PageSnapshot:
    """Outcome of one navigation."""

    url: str
    final_url: str
    status: int | None
    html: str


class BrowserSession:
    """
    One Playwright driver, browser, context and page.

    Usable as an async context manager; ``close()`` is idempotent and
    releases everything acquired so far even after a partial start.
    """

    def __init__(self, options: BrowserSessionOptions | None = None) -> None:
        self.options = options or BrowserSessionOptions()
        self._pw: Playwright | None = None
        self._browser: Browser | None = None
        self._context: BrowserContext | None = None
        self._page: Page | None = None

    @property
    def started(self) -> bool:
        return self._page is not None

    async def start(self) -> None:
        if self._page is not None:
            return

        try:
            self._pw = await async_playwright().start()
            launcher = getattr(self._pw, self.options.browser_name)
            try:
                self._browser = await launcher.launch(
                    headless=self.options.headless,
                    args=list(self.options.launch_args) if self.options.browser_name == "chromium" else None,
                )
            except Exception as e:
                msg = str(e).lower()
                if "executable doesn't exist" in msg or "not installed" in msg:
                    raise RuntimeError(
                        f"Browser binaries for {self.options.browser_name} are missing. "
                        "Run: playwright install"
                    ) from e
                raise

            context_kwargs: dict[str, Any] = {
                "viewport": self.options.viewport,
                "locale": self.options.locale,
                "timezone_id": self.options.timezone_id,
                "user_agent": self.options.user_agent,
                "extra_http_headers": self.options.extra_headers,
            }
            self._context = await self._browser.new_context(**context_kwargs)
            await self._context.add_init_script(STEALTH_INIT_SCRIPT)
            self._context.set_default_navigation_timeout(self.options.nav_timeout_s * 1000)
            self._page = await self._context.new_page()
        except Exception:
            try:
                await self.close()
            except Exception as e:
                logger.warning("Cleanup after failed start also failed: %s", e)
            raise

    async def goto(self, url: str, *, timeout_s: float | None = None) -> PageSnapshot:
        """Navigate the page and return the rendered HTML and response status."""
        if self._page is None:
            raise RuntimeError("BrowserSession.goto() called before start()")
        timeout_ms = float(timeout_s or self.options.nav_timeout_s) * 1000
        resp = await self._page.goto(url, wait_until=self.options.wait_until, timeout=timeout_ms)
        html = await self._page.content() or ""
        return PageSnapshot(
            url=url,
            final_url=self._page.url or url,
            status=resp.status if resp is not None else None,
            html=html,
        )

    async def close(self) -> None:
        """
        Release page, context, browser and driver, in that order.

        Every step runs even when an earlier one fails; the first error is
        re-raised once everything has been released.
        """
        page, context, browser, pw = self._page, self._context, self._browser, self._pw
        self._page = self._context = self._browser = self._pw = None

        first_error: Exception | None = None
        steps = (
            ("page", page.close if page is not None else None),
            ("context", context.close if context is not None else None),
            ("browser", browser.close if browser is not None else None),
            ("driver", pw.stop if pw is not None else None),
        )
        for label, release in steps:
            if release is None:
                continue
            try:
                await release()
            except Exception as e:
                logger.debug("Closing %s failed: %s", label, e)
                if first_error is None:
                    first_error = e
        if first_error is not None:
            raise first_error

    async def __aenter__(self) -> "BrowserSession":
        await self.start()
        return self

    async def __aexit__(self, *exc: object) -> None:
        await self.close()
