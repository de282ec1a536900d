"""
casinoscrape.extraction.fields

Per-candidate field extraction: name, url, score, categorical arrays and
numeric game statistics.
"""

from __future__ import annotations

import re
from collections.abc import Iterable
from enum import Enum
from typing import Any
from urllib.parse import urljoin

from bs4 import Tag

from casinoscrape.extraction.parsers import (
    attr_text,
    element_lines,
    element_text,
    looks_like_script,
    split_items,
)
from casinoscrape.extraction.vocabularies import (
    BONUS_PHRASES,
    CURRENCY_SYMBOLS,
    FIELD_SELECTORS,
    FIELD_VOCABULARIES,
)

# ---------------------------------------------------------------------
# Name
# ---------------------------------------------------------------------

NAME_SELECTORS = (
    "[data-casino-name]",
    ".casino-name",
    ".brand-name",
    ".operator-name",
    "h1, h2, h3",
    ".title",
    ".name",
    '[itemprop="name"]',
    "a[title]",
)

_GENERIC_LINK_RE = re.compile(
    r"^(read more|visit( casino| site)?|play now|click here|review|more info|details)\W*$",
    re.IGNORECASE,
)
_DIGITS_RE = re.compile(r"^[\d\s.,/%]+$")

MAX_NAME_WORDS = 5


def is_generic_label(text: str) -> bool:
    """Reject call-to-action link text, raw URLs and bare numbers as names."""
    t = text.strip()
    if not t:
        return True
    if _GENERIC_LINK_RE.match(t):
        return True
    if t.lower().startswith(("http://", "https://", "www.")):
        return True
    return bool(_DIGITS_RE.match(t))


def _acceptable_name(text: str) -> bool:
    return 1 < len(text) <= 100 and not is_generic_label(text)


def extract_name(el: Tag) -> str | None:
    """Name from dedicated selectors, then anchors, then the first text line."""
    for sel in NAME_SELECTORS:
        node = el.select_one(sel)
        if node is None:
            continue
        text = element_text(node)
        if not text and sel == "a[title]":
            text = attr_text(node, "title")
        if _acceptable_name(text):
            return text

    for a in el.find_all("a"):
        for text in (element_text(a), attr_text(a, "title")):
            if _acceptable_name(text):
                return text

    for line in element_lines(el):
        if is_generic_label(line):
            continue
        words = line.split()
        if len(words) > MAX_NAME_WORDS:
            line = " ".join(words[:MAX_NAME_WORDS])
        if _acceptable_name(line):
            return line
    return None


# ---------------------------------------------------------------------
# URL
# ---------------------------------------------------------------------

URL_SELECTORS = (
    "a[data-casino-url]",
    ".visit-casino",
    ".casino-link",
    'a[href*="casino"]',
    "a[href]",
)


def extract_url(el: Tag, page_url: str, default: str | None = None) -> str | None:
    """First absolute or root-relative link, resolved against the page."""
    for sel in URL_SELECTORS:
        for node in el.select(sel):
            href = attr_text(node, "href") or attr_text(node, "data-casino-url")
            if href.startswith(("http://", "https://", "/")):
                return urljoin(page_url, href)
    if el.name == "a":
        href = attr_text(el, "href")
        if href.startswith(("http://", "https://", "/")):
            return urljoin(page_url, href)
    return default


# ---------------------------------------------------------------------
# Score
# ---------------------------------------------------------------------


class ScorePolicy(str, Enum):
    RESCALE = "rescale"  # > 10 divided by 10, dropped if still > 10
    STRICT = "strict"  # > 10 dropped


SCORE_PATTERNS = (
    re.compile(r"rating[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"score[:\s]*(\d+(?:\.\d+)?)", re.IGNORECASE),
    re.compile(r"(\d+(?:\.\d+)?)\s*/\s*(?:10|5)\b"),
    re.compile(r"(\d+(?:\.\d+)?)\s*(?:stars?|points?)\b", re.IGNORECASE),
)


def normalize_score(value: float, policy: ScorePolicy) -> float | None:
    if value < 0:
        return None
    if value > 10 and policy is ScorePolicy.RESCALE:
        value = value / 10
    if value > 10:
        return None
    return round(value, 2)


def extract_score(text: str, policy: ScorePolicy = ScorePolicy.RESCALE) -> float | None:
    for pattern in SCORE_PATTERNS:
        m = pattern.search(text or "")
        if m is None:
            continue
        score = normalize_score(float(m.group(1)), policy)
        if score is not None:
            return score
    return None


# ---------------------------------------------------------------------
# Categorical arrays
# ---------------------------------------------------------------------


def _vocab_pattern(term: str) -> re.Pattern[str]:
    return re.compile(r"(?<!\w)" + re.escape(term) + r"(?!\w)", re.IGNORECASE)


_VOCAB_PATTERNS: dict[str, re.Pattern[str]] = {}


def vocabulary_matches(text: str, vocabulary: Iterable[str]) -> list[str]:
    """Canonical vocabulary terms occurring in text as whole words."""
    out: list[str] = []
    for term in vocabulary:
        p = _VOCAB_PATTERNS.get(term)
        if p is None:
            p = _VOCAB_PATTERNS[term] = _vocab_pattern(term)
        if p.search(text):
            out.append(term)
    return out


def _dedupe_ci(items: Iterable[str]) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for it in items:
        k = it.lower()
        if k not in seen:
            seen.add(k)
            out.append(it)
    return out


def extract_selector_items(el: Tag, selectors: Iterable[str]) -> list[str]:
    items: list[str] = []
    for sel in selectors:
        for node in el.select(sel):
            items.extend(split_items(node.get_text("\n")))
    return items


def extract_categorical(el: Tag, field_name: str, text: str | None = None) -> list[str]:
    """Union of dedicated-selector items and vocabulary hits for one field."""
    text = element_text(el) if text is None else text
    items = extract_selector_items(el, FIELD_SELECTORS.get(field_name, ()))
    items.extend(vocabulary_matches(text, FIELD_VOCABULARIES.get(field_name, ())))
    if field_name == "currencies":
        items.extend(code for sym, code in CURRENCY_SYMBOLS.items() if sym in text)
    return _dedupe_ci(items)


_SENTENCE_RE = re.compile(r"[.!?\n]")


def extract_bonuses(el: Tag, text: str | None = None) -> list[str]:
    """Bonus blurbs from bonus selectors, else sentences naming a bonus phrase."""
    bonuses: list[str] = []
    for sel in FIELD_SELECTORS["bonuses"]:
        for node in el.select(sel):
            t = element_text(node)
            if 5 < len(t) < 200:
                bonuses.append(t)

    if not bonuses:
        raw = el.get_text("\n") if text is None else text
        for sentence in _SENTENCE_RE.split(raw):
            s = " ".join(sentence.split())
            if 5 < len(s) < 150 and any(p in s.lower() for p in BONUS_PHRASES):
                bonuses.append(s)
    return _dedupe_ci(bonuses)


# ---------------------------------------------------------------------
# Game statistics
# ---------------------------------------------------------------------

MIN_STATS_TEXT = 10
MAX_STATS_TEXT = 5000

_NUM = r"(\d{1,3}(?:\.\d{1,2})?)"

_MULTIPLIER_RE = re.compile(
    r"(?:multiplier|bonus|win|prize)[\s:]*(\d{1,5})x|(\d{1,5})x\s*(?:multiplier|bonus|win|prize)", re.IGNORECASE
)
_SIMPLE_MULTIPLIER_RE = re.compile(r"\b(\d{1,4})x\b", re.IGNORECASE)
_RTP_RE = re.compile(
    r"(?:rtp|return|payout)[\s:]*" + _NUM + r"\s*%|" + _NUM + r"\s*%\s*(?:rtp|return|payout)", re.IGNORECASE
)
_ROUNDS_RE = re.compile(r"(\d{2,8})\s*(?:rounds?|games?|spins?|plays?)\b", re.IGNORECASE)
_MAX_WIN_RE = re.compile(
    r"(?:max|maximum|biggest)\s*(?:win|payout|prize)[\s:]*(\d{1,9})x?"
    r"|(\d{1,9})x?\s*(?:max|maximum|biggest)\s*(?:win|payout|prize)",
    re.IGNORECASE,
)
_BONUS_FREQ_RE = re.compile(
    r"(?:bonus|feature)\s*(?:frequency|rate|chance)[\s:]*" + _NUM + r"\s*%|every\s*(\d{1,4})\s*(?:spins?|rounds?)",
    re.IGNORECASE,
)
_VOLATILITY_RE = re.compile(r"(?:volatility|variance)[\s:]*(low|medium|high|\d{1,2})\b", re.IGNORECASE)
_HIT_RATE_RE = re.compile(r"(?:hit|win)\s*rate[\s:]*" + _NUM + r"\s*%", re.IGNORECASE)
_WHEEL_RE = re.compile(r"(\d{1,3})\s*(?:segments?|sections?|slots?)\b|wheel\s*(?:with|has)\s*(\d{1,3})", re.IGNORECASE)
_RECENT_RE = re.compile(r"(?:last|recent|previous)\s*(?:results?|outcomes?|spins?)[\s:]*([1-9x,\s]{3,50})", re.IGNORECASE)

STAT_KEYS = (
    "multipliers",
    "rtp",
    "rounds",
    "maxWin",
    "bonusFrequency",
    "volatility",
    "hitRate",
    "wheelSegments",
    "recentResults",
)


def _num(value: str) -> float | int:
    f = float(value)
    return int(f) if f.is_integer() else f


def _first(m: re.Match[str]) -> str:
    return next(g for g in m.groups() if g is not None)


def empty_stats() -> dict[str, set[Any]]:
    return {k: set() for k in STAT_KEYS}


def extract_stats(text: str) -> dict[str, set[Any]]:
    """
    Collect plausible game statistics from one block of text.

    Out-of-range values are dropped silently. Text that is too short, too
    long or looks like inline script yields nothing.
    """
    stats = empty_stats()
    if not text or not (MIN_STATS_TEXT <= len(text) <= MAX_STATS_TEXT) or looks_like_script(text):
        return stats

    for m in _MULTIPLIER_RE.finditer(text):
        v = _num(_first(m))
        if 2 <= v <= 10000:
            stats["multipliers"].add(v)
    for m in _SIMPLE_MULTIPLIER_RE.finditer(text):
        v = _num(m.group(1))
        if 2 <= v <= 1000:
            stats["multipliers"].add(v)

    for m in _RTP_RE.finditer(text):
        v = _num(_first(m))
        if 85 <= v <= 100:
            stats["rtp"].add(v)

    for m in _ROUNDS_RE.finditer(text):
        v = _num(m.group(1))
        if 10 <= v <= 10_000_000:
            stats["rounds"].add(v)

    for m in _MAX_WIN_RE.finditer(text):
        v = _num(_first(m))
        if 100 <= v <= 100_000_000:
            stats["maxWin"].add(v)

    for m in _BONUS_FREQ_RE.finditer(text):
        if m.group(1) is not None:
            v = _num(m.group(1))
        else:
            every = int(m.group(2))
            if every <= 0:
                continue
            v = round(100 / every, 2)
        if 0 < v <= 100:
            stats["bonusFrequency"].add(v)

    for m in _VOLATILITY_RE.finditer(text):
        raw = m.group(1).lower()
        if raw.isdigit():
            if 1 <= int(raw) <= 10:
                stats["volatility"].add(int(raw))
        else:
            stats["volatility"].add(raw)

    for m in _HIT_RATE_RE.finditer(text):
        v = _num(m.group(1))
        if 0 < v <= 100:
            stats["hitRate"].add(v)

    for m in _WHEEL_RE.finditer(text):
        v = _num(_first(m))
        if 4 <= v <= 100:
            stats["wheelSegments"].add(v)

    for m in _RECENT_RE.finditer(text):
        r = m.group(1).strip().rstrip(",").strip()
        if 3 <= len(r) <= 50:
            stats["recentResults"].add(r)

    return stats


def merge_stats(into: dict[str, set[Any]], other: dict[str, set[Any]]) -> bool:
    """Merge ``other`` into ``into``; return True if anything new was added."""
    added = False
    for k, values in other.items():
        bucket = into.setdefault(k, set())
        before = len(bucket)
        bucket.update(values)
        added = added or len(bucket) > before
    return added


def stats_to_lists(stats: dict[str, set[Any]]) -> dict[str, list[Any]]:
    """Sorted lists for non-empty statistics; numbers before labels."""
    out: dict[str, list[Any]] = {}
    for k, values in stats.items():
        if values:
            out[k] = sorted(values, key=lambda v: (isinstance(v, str), v if not isinstance(v, str) else 0, str(v)))
    return out
