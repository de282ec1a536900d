"""
casinoscrape.runtime.errors

Error taxonomy. Every error carries a stable ``code`` used in task runs
and scraper outcomes.
"""

from __future__ import annotations


class ScrapeError(Exception):
    """Base class for all casinoscrape errors."""

    code = "SCRAPE_ERROR"

    def to_dict(self) -> dict[str, str]:
        return {"message": str(self), "code": self.code}


class NavigationFailure(ScrapeError):
    """The page could not be reached within the attempt budget."""

    code = "NAVIGATION_FAILED"

    def __init__(self, url: str, attempts: int, last_error: BaseException | str | None = None) -> None:
        self.url = url
        self.attempts = attempts
        self.last_error = last_error
        super().__init__(f"Failed to navigate to {url} after {attempts} attempt(s): {last_error}")


class BrowserLaunchFailure(NavigationFailure):
    """The browser session could not be started."""

    code = "BROWSER_LAUNCH_FAILED"

    def __init__(self, url: str, last_error: BaseException | str | None = None) -> None:
        super().__init__(url, 0, last_error)


class ExtractionEmpty(ScrapeError):
    code = "EXTRACTION_EMPTY"


class PersistenceUnavailable(ScrapeError):
    code = "PERSISTENCE_UNAVAILABLE"


class NotSupported(ScrapeError):
    """No scraper is registered for the requested game key."""

    code = "NOT_SUPPORTED"

    def __init__(self, key: str, reason: str = "no scraper registered") -> None:
        self.key = key
        super().__init__(f"Game '{key}' is not supported: {reason}")


class TaskTimeout(ScrapeError):
    code = "TASK_TIMEOUT"


class InvalidTrigger(ScrapeError):
    code = "INVALID_TRIGGER"


class InvalidStatusTransition(ScrapeError):
    code = "INVALID_STATUS_TRANSITION"


def error_to_dict(exc: BaseException) -> dict[str, str]:
    """Return a ``{message, code}`` dict for any exception."""
    if isinstance(exc, ScrapeError):
        return exc.to_dict()
    return {"message": f"{type(exc).__name__}: {exc}", "code": "UNEXPECTED_ERROR"}
