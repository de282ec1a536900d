"""
casinoscrape.extraction.strategies

Candidate discovery. Strategies are plain data tagged by kind and are
tried in order; the first one that yields any element wins.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from dataclasses import dataclass
from enum import Enum

from bs4 import BeautifulSoup, Tag
from soupsieve import SelectorSyntaxError

from casinoscrape.extraction.parsers import attr_text, element_text

logger = logging.getLogger(__name__)


class StrategyKind(str, Enum):
    SELECTORS = "selectors"
    KEYWORD_SCAN = "keyword_scan"


@dataclass(frozen=True)
class DiscoveryStrategy:
    name: str
    kind: StrategyKind
    selectors: tuple[str, ...] = ()
    # keyword scan only
    tags: tuple[str, ...] = ("div", "article", "section", "li", "tr")
    min_text_len: int = 20
    max_text_len: int = 1000


SEMANTIC_CONTAINERS = DiscoveryStrategy(
    name="semantic-containers",
    kind=StrategyKind.SELECTORS,
    selectors=(
        'article[itemtype*="casino"]',
        "div[data-casino]",
        'section[data-type="casino"]',
    ),
)

CARDS_AND_LISTS = DiscoveryStrategy(
    name="cards-and-lists",
    kind=StrategyKind.SELECTORS,
    selectors=(
        ".casino-grid > div",
        ".casino-flex > div",
        ".casino-container > div",
        ".casino-list li",
        ".casinos li",
        "ul[data-casinos] li",
        ".casino-card",
        ".casino-review",
        ".review-card",
        ".casino-item",
        ".brand-item",
        ".operator-item",
        ".listing-item",
    ),
)

TABLE_ROWS = DiscoveryStrategy(
    name="table-rows",
    kind=StrategyKind.SELECTORS,
    selectors=(
        "tbody tr[data-casino]",
        "table.casinos tbody tr",
    ),
)

KEYWORD_SCAN = DiscoveryStrategy(name="keyword-scan", kind=StrategyKind.KEYWORD_SCAN)

DEFAULT_STRATEGIES: tuple[DiscoveryStrategy, ...] = (
    SEMANTIC_CONTAINERS,
    CARDS_AND_LISTS,
    TABLE_ROWS,
    KEYWORD_SCAN,
)


def _select(soup: BeautifulSoup, strategy: DiscoveryStrategy) -> list[Tag]:
    found: list[Tag] = []
    seen: set[int] = set()
    for sel in strategy.selectors:
        try:
            nodes = soup.select(sel)
        except SelectorSyntaxError as e:
            logger.debug("Skipping selector %r: %s", sel, e)
            continue
        for n in nodes:
            if id(n) not in seen:
                seen.add(id(n))
                found.append(n)
    return found


def _keyword_scan(soup: BeautifulSoup, strategy: DiscoveryStrategy, keywords: Sequence[str]) -> list[Tag]:
    kws = [k.lower() for k in keywords if k]
    if not kws:
        return []
    found: list[Tag] = []
    for el in soup.find_all(list(strategy.tags)):
        text = element_text(el)
        if not (strategy.min_text_len < len(text) < strategy.max_text_len):
            continue
        haystacks = (text.lower(), attr_text(el, "aria-label").lower(), attr_text(el, "class").lower())
        if any(k in h for k in kws for h in haystacks):
            found.append(el)
    return found


def run_strategy(soup: BeautifulSoup, strategy: DiscoveryStrategy, keywords: Sequence[str] = ()) -> list[Tag]:
    """Apply one strategy to a parsed document."""
    if strategy.kind is StrategyKind.SELECTORS:
        return _select(soup, strategy)
    if strategy.kind is StrategyKind.KEYWORD_SCAN:
        return _keyword_scan(soup, strategy, keywords)
    raise ValueError(f"Unknown strategy kind: {strategy.kind}")


def discover_candidates(
    soup: BeautifulSoup,
    strategies: Sequence[DiscoveryStrategy] = DEFAULT_STRATEGIES,
    keywords: Sequence[str] = (),
) -> tuple[str | None, list[Tag]]:
    """
    Return (strategy name, elements) for the first strategy with matches,
    or (None, []) when nothing matched.
    """
    for strategy in strategies:
        elements = run_strategy(soup, strategy, keywords)
        if elements:
            logger.debug("Strategy %s matched %d element(s)", strategy.name, len(elements))
            return strategy.name, elements
    return None, []
