"""
casinoscrape.runtime.blocks

Detects interstitials (captcha walls, access denials, login walls, geo
restrictions) in a rendered page. Only visible text is inspected, so
scripts that merely load a captcha widget do not count.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import Enum

from casinoscrape.extraction.parsers import bs4_soup, element_text


class BlockSignal(str, Enum):
    CAPTCHA_PRESENT = "captcha_present"
    LIKELY_BLOCKED = "likely_blocked"
    LOGIN_REQUIRED = "login_required"
    GEO_RESTRICTED = "geo_restricted"


@dataclass(frozen=True)
class BlockMatch:
    signal: BlockSignal
    phrase: str


def _rule(*phrases: str) -> re.Pattern[str]:
    return re.compile(r"\b(?:" + "|".join(phrases) + r")\b", re.IGNORECASE)


_RULES: tuple[tuple[BlockSignal, re.Pattern[str]], ...] = (
    (BlockSignal.CAPTCHA_PRESENT, _rule(r"verify you are (?:a )?human", r"checking your browser", r"captcha")),
    (BlockSignal.LIKELY_BLOCKED, _rule(r"access denied", r"403 forbidden", r"unusual traffic", r"rate limited")),
    (BlockSignal.LOGIN_REQUIRED, _rule(r"login required", r"please log ?in", r"please sign in")),
    (
        BlockSignal.GEO_RESTRICTED,
        _rule(r"not available in your (?:country|region|jurisdiction)", r"geo-?restricted"),
    ),
)

# Interstitials are short; long pages only need their opening text checked
MAX_SCAN_CHARS = 20_000


def detect_blocks(text: str | None) -> list[BlockMatch]:
    """One match per signal, carrying the first phrase found in ``text``."""
    if not text:
        return []
    text = text[:MAX_SCAN_CHARS]
    found = []
    for signal, pattern in _RULES:
        m = pattern.search(text)
        if m:
            found.append(BlockMatch(signal, m.group(0).lower()))
    return found


def classify_page(html: str | None) -> list[BlockMatch]:
    """Block matches in the visible text of a rendered HTML page."""
    if not html:
        return []
    return detect_blocks(element_text(bs4_soup(html)))
