"""
casinoscrape.extraction.pipeline

Turns a rendered HTML snapshot into GameRecords.

- ExtractionPipeline: many candidates per page (casino listings)
- GameStatsExtractor: one targeted record per page (a live game)
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Protocol

from bs4 import BeautifulSoup, Tag
from pydantic import ValidationError

from casinoscrape.config.schema import GameConfig
from casinoscrape.extraction.fields import (
    ScorePolicy,
    empty_stats,
    extract_bonuses,
    extract_categorical,
    extract_name,
    extract_score,
    extract_stats,
    extract_url,
    merge_stats,
    stats_to_lists,
)
from casinoscrape.extraction.parsers import CHROME_TAGS, bs4_soup, element_text, in_chrome, looks_like_script
from casinoscrape.extraction.strategies import DEFAULT_STRATEGIES, DiscoveryStrategy, discover_candidates
from casinoscrape.extraction.vocabularies import LIVE_GAME_FEATURES
from casinoscrape.pipeline.dedupe import dedupe_records
from casinoscrape.schemas.records import GameRecord, GameType

logger = logging.getLogger(__name__)

DESCRIPTION_SELECTORS = (".description", ".review-summary", ".summary", '[itemprop="description"]', "p")


class Extractor(Protocol):
    def extract(self, html: str, page_url: str) -> list[GameRecord]: ...


class ExtractionPipeline:
    """
    Heuristic multi-candidate extraction.

    Discovers candidate elements with the first matching strategy, extracts
    fields per candidate and deduplicates by normalized name (first wins).
    """

    def __init__(
        self,
        game: GameConfig,
        *,
        strategies: Sequence[DiscoveryStrategy] = DEFAULT_STRATEGIES,
        keywords: Sequence[str] | None = None,
        score_policy: ScorePolicy = ScorePolicy.RESCALE,
    ) -> None:
        self.game = game
        self.strategies = tuple(strategies)
        self.keywords = tuple(keywords if keywords is not None else game.search_keywords)
        self.score_policy = score_policy
        self.last_strategy: str | None = None

    def extract(self, html: str, page_url: str) -> list[GameRecord]:
        soup = bs4_soup(html)
        strategy, candidates = discover_candidates(soup, self.strategies, self.keywords)
        self.last_strategy = strategy
        if not candidates:
            logger.info("No candidates found on %s", page_url)
            return []

        records: list[GameRecord] = []
        for idx, el in enumerate(candidates):
            rec = self._extract_candidate(el, idx, page_url, strategy)
            if rec is not None:
                records.append(rec)

        result = dedupe_records(records)
        logger.info(
            "Extracted %d record(s) from %d candidate(s) via %s (%d duplicate(s) dropped)",
            len(result.kept),
            len(candidates),
            strategy,
            result.stats["dropped"],
        )
        return result.kept

    def _extract_candidate(self, el: Tag, idx: int, page_url: str, strategy: str | None) -> GameRecord | None:
        name = extract_name(el)
        if not name:
            return None

        text = element_text(el)
        features = extract_categorical(el, "features", text)
        lowered = {f.lower() for f in features}
        try:
            return GameRecord(
                name=name,
                url=extract_url(el, page_url, default=self.game.url) or self.game.url,
                type=self.game.type,
                provider=self.game.provider,
                description=self._description(el, name),
                score=extract_score(text, self.score_policy),
                features=features,
                bonuses=extract_bonuses(el),
                payment_methods=extract_categorical(el, "payment_methods", text),
                licenses=extract_categorical(el, "licenses", text),
                languages=extract_categorical(el, "languages", text),
                currencies=extract_categorical(el, "currencies", text),
                is_live=self.game.is_live,
                mobile_compatible="mobile compatible" in lowered,
                live_chat="live chat" in lowered,
                stats={
                    "provenance": {
                        "source": self.game.name,
                        "scraped_from": page_url,
                        "element_index": idx,
                        "strategy": strategy,
                    }
                },
            )
        except ValidationError as e:
            logger.debug("Dropping candidate %d (%r): %s", idx, name, e)
            return None

    @staticmethod
    def _description(el: Tag, name: str) -> str:
        for sel in DESCRIPTION_SELECTORS:
            node = el.select_one(sel)
            text = element_text(node)
            if 20 <= len(text) <= 2000 and text != name:
                return text
        return f"{name} casino review and information"


class GameStatsExtractor:
    """
    Targeted extraction of a single live game.

    Statistics are aggregated across the game's target containers; the
    result is always exactly one record for the configured game.
    """

    def __init__(self, game: GameConfig, *, score_policy: ScorePolicy = ScorePolicy.STRICT) -> None:
        self.game = game
        self.score_policy = score_policy
        self.last_container_count = 0

    def target_selectors(self) -> tuple[str, ...]:
        key = self.game.key
        return (
            f'[data-game="{key}"]',
            ".game-stats",
            f".{key}-stats",
            "#game-data",
            "main",
            ".content",
            "#content",
        )

    def _containers(self, soup: BeautifulSoup) -> list[Tag]:
        found: list[Tag] = []
        seen: set[int] = set()
        for sel in self.target_selectors():
            for node in soup.select(sel):
                if id(node) not in seen:
                    seen.add(id(node))
                    found.append(node)
        if not found:
            found.append(soup.body or soup)
        return found

    def _mentions_game(self, lowered: str) -> bool:
        if self.game.name.lower() in lowered:
            return True
        if self.game.provider and self.game.provider.lower() in lowered:
            return True
        return any(k in lowered for k in self.game.search_keywords if len(k) > 4)

    def extract(self, html: str, page_url: str) -> list[GameRecord]:
        soup = bs4_soup(html)
        containers = self._containers(soup)
        self.last_container_count = len(containers)

        stats = empty_stats()
        features = list(self.game.features)
        description: str | None = None
        url: str | None = None
        score: float | None = None
        processed = with_stats = 0

        for container in containers:
            for el in container.find_all(True):
                if el.name in CHROME_TAGS or in_chrome(el):
                    continue
                text = element_text(el)
                if not text:
                    continue
                processed += 1
                if merge_stats(stats, extract_stats(text)):
                    with_stats += 1

                lowered = text.lower()
                if not self._mentions_game(lowered):
                    continue
                is_leaf = el.find(True) is None
                if description is None and is_leaf and 50 < len(text) < 1000 and not looks_like_script(text):
                    description = text
                features.extend(k for k in LIVE_GAME_FEATURES if k in lowered)
                if url is None:
                    link = el if el.name == "a" else el.find("a")
                    if link is not None:
                        url = extract_url(link, page_url)
                if score is None:
                    score = extract_score(text, self.score_policy)

        logger.debug(
            "Processed %d element(s) in %d container(s), %d with stats",
            processed,
            len(containers),
            with_stats,
        )

        stats_out: dict = stats_to_lists(stats)
        stats_out["provenance"] = {
            "source": "targeted",
            "scraped_from": page_url,
            "containers": len(containers),
            "elements_processed": processed,
        }

        if url is None or self.game.key not in url:
            url = self.game.target_url

        record = GameRecord(
            name=self.game.name,
            url=url,
            type=self.game.type if self.game.type is not GameType.UNKNOWN else GameType.LIVE,
            provider=self.game.provider,
            description=description or self.game.description,
            score=score,
            features=features,
            is_live=self.game.is_live,
            stats=stats_out,
        )
        return [record]
