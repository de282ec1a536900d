"""Casino listing scraper: many casino records from one review page."""

from __future__ import annotations

from casinoscrape.extraction.fields import ScorePolicy
from casinoscrape.extraction.pipeline import ExtractionPipeline
from casinoscrape.extraction.vocabularies import LISTING_KEYWORDS

from .base import GameScraper


class CasinoListingScraper(GameScraper):
    def build_extractor(self) -> ExtractionPipeline:
        return ExtractionPipeline(
            self.game,
            keywords=self.game.search_keywords or LISTING_KEYWORDS,
            score_policy=ScorePolicy.RESCALE,
        )
