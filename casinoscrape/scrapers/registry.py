"""
casinoscrape.scrapers.registry

Maps game keys to scraper constructors. Constructors are called with the
game's config and the shared dependencies (store, retry policy, browser
options, ...).
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping
from typing import Any

from casinoscrape.config.loader import default_games, load_games
from casinoscrape.config.schema import GameConfig
from casinoscrape.config.settings import Settings
from casinoscrape.engines.browser import BrowserSessionOptions
from casinoscrape.runtime.errors import NotSupported
from casinoscrape.runtime.resilience import RetryPolicy
from casinoscrape.storage.persistence import InMemoryRecordStore, JsonFileRecordStore, PersistenceAdapter

from .base import GameScraper
from .listing import CasinoListingScraper
from .live_game import LiveGameScraper

logger = logging.getLogger(__name__)

ScraperConstructor = Callable[..., GameScraper]

DEFAULT_SCRAPERS: dict[str, ScraperConstructor] = {
    "casino-scores": CasinoListingScraper,
    "crazy-time": LiveGameScraper,
    "monopoly-live": LiveGameScraper,
}


class ScraperRegistry:
    """Game key -> scraper constructor lookup with runtime (un)registration."""

    def __init__(
        self,
        games: Mapping[str, GameConfig] | None = None,
        *,
        scrapers: Mapping[str, ScraperConstructor] | None = None,
        store: PersistenceAdapter | None = None,
        **scraper_kwargs: Any,
    ) -> None:
        self.games: dict[str, GameConfig] = dict(default_games() if games is None else games)
        self._constructors: dict[str, ScraperConstructor] = dict(DEFAULT_SCRAPERS if scrapers is None else scrapers)
        self.store = store
        self.scraper_kwargs = scraper_kwargs

    @classmethod
    def from_settings(cls, settings: Settings, *, store: PersistenceAdapter | None = None) -> "ScraperRegistry":
        """Build a registry wired with settings-derived store, retries and browser options."""
        result = load_games(settings.GAMES_CONFIG_PATH)
        if not result.ok:
            raise ValueError("Invalid games configuration: " + "; ".join(result.errors))
        for w in result.warnings:
            logger.warning(w)

        if store is None:
            store = JsonFileRecordStore(settings.STORE_PATH) if settings.STORE_PATH else InMemoryRecordStore()

        return cls(
            result.games,
            store=store,
            retry_policy=RetryPolicy(
                max_attempts=settings.MAX_ATTEMPTS,
                delay_range_s=(settings.RETRY_DELAY_MIN_S, settings.RETRY_DELAY_MAX_S),
            ),
            session_options=BrowserSessionOptions(
                browser_name=settings.BROWSER_NAME,
                headless=settings.HEADLESS,
                nav_timeout_s=settings.NAV_TIMEOUT_S,
            ),
        )

    # -------------------------
    # Registration
    # -------------------------

    def register_scraper(self, key: str, constructor: ScraperConstructor, config: GameConfig | None = None) -> None:
        if config is not None:
            if config.key != key:
                raise ValueError(f"Config key {config.key!r} does not match {key!r}")
            self.games[key] = config
        if key in self._constructors:
            logger.info("Replacing scraper for %s", key)
        self._constructors[key] = constructor

    def unregister_scraper(self, key: str) -> bool:
        return self._constructors.pop(key, None) is not None

    # -------------------------
    # Lookup
    # -------------------------

    def has_scraper(self, key: str) -> bool:
        return key in self._constructors and key in self.games

    def available(self) -> list[str]:
        """Keys that can be instantiated, in registration order."""
        return [k for k in self._constructors if k in self.games]

    def supported_games(self) -> list[dict[str, Any]]:
        return [
            {
                "key": g.key,
                "name": g.name,
                "type": g.type.value,
                "provider": g.provider,
                "is_live": g.is_live,
                "has_scraper": self.has_scraper(g.key),
            }
            for g in self.games.values()
        ]

    def create_scraper(self, key: str) -> GameScraper:
        constructor = self._constructors.get(key)
        if constructor is None:
            reason = "scraper not implemented" if key in self.games else "unknown game"
            raise NotSupported(key, reason)
        game = self.games.get(key)
        if game is None:
            raise NotSupported(key, "no game configuration")
        return constructor(game, store=self.store, **self.scraper_kwargs)

    def create_all(self) -> list[GameScraper]:
        return [self.create_scraper(k) for k in self.available()]
