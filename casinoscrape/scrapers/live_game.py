"""Live game scraper: one aggregated record for a single live game page."""

from __future__ import annotations

from casinoscrape.extraction.fields import ScorePolicy
from casinoscrape.extraction.pipeline import GameStatsExtractor

from .base import GameScraper


class LiveGameScraper(GameScraper):
    @property
    def target_url(self) -> str:
        return self.game.target_url

    def build_extractor(self) -> GameStatsExtractor:
        return GameStatsExtractor(self.game, score_policy=ScorePolicy.STRICT)
