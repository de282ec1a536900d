"""Resilient HTML parsing helpers built on BeautifulSoup.

This module does NOT enforce a schema. It just provides primitives.
"""

from __future__ import annotations

import re

from bs4 import BeautifulSoup, Tag

_WS_RE = re.compile(r"\s+")
_SPLIT_RE = re.compile(r"[,;|•\n]")

NOISE_TAGS = ("script", "style", "noscript")
CHROME_TAGS = ("nav", "header", "footer")


def _collapse_ws(text: str) -> str:
    return _WS_RE.sub(" ", text or "").strip()


def bs4_soup(html: str) -> BeautifulSoup:
    """Parse HTML with BeautifulSoup and drop script/style/noscript nodes."""
    soup = BeautifulSoup(html or "", "html.parser")
    for t in soup(list(NOISE_TAGS)):
        t.decompose()
    return soup


def element_text(el: Tag | None) -> str:
    """Visible text of an element with whitespace collapsed."""
    if el is None:
        return ""
    return _collapse_ws(el.get_text(" ", strip=True))


def element_lines(el: Tag) -> list[str]:
    """Non-empty text lines of an element, one per text block."""
    return [s for s in (_collapse_ws(x) for x in el.get_text("\n").split("\n")) if s]


def attr_text(el: Tag, attr: str) -> str:
    """Attribute value as a string. Multi-valued attributes (class) are space-joined."""
    v = el.get(attr)
    if v is None:
        return ""
    if isinstance(v, (list, tuple)):
        return " ".join(str(x) for x in v)
    return str(v).strip()


def split_items(text: str) -> list[str]:
    """Split a delimited blob (``, ; | •`` or newlines) into short list items."""
    out: list[str] = []
    for part in _SPLIT_RE.split(text or ""):
        s = _collapse_ws(part)
        if 1 < len(s) < 100 and not s.isdigit():
            out.append(s)
    return out


def looks_like_script(text: str) -> bool:
    """True for serialized state or inline code that leaked into text."""
    if "__NEXT_DATA__" in text or "window." in text or "function(" in text:
        return True
    return "{" in text and '"' in text and ":" in text


def in_chrome(el: Tag) -> bool:
    """True when the element is, or sits inside, page chrome (nav/header/footer)."""
    if el.name in CHROME_TAGS:
        return True
    return el.find_parent(list(CHROME_TAGS)) is not None
