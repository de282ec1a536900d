"""
casinoscrape.schemas.records

GameRecord: the unit of output of every scraper, keyed by normalized name.
"""

from __future__ import annotations

import re
from datetime import datetime, timezone
from enum import Enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

# Caps for categorical arrays
FIELD_LIMITS = {
    "features": 20,
    "bonuses": 10,
    "payment_methods": 50,
    "licenses": 5,
    "languages": 10,
    "currencies": 10,
}

MAX_NAME_LENGTH = 200
MAX_DESCRIPTION_LENGTH = 2000

_WS_RE = re.compile(r"\s+")


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def normalize_name(name: str) -> str:
    """Collapse whitespace, trim and lower-case a record name."""
    return _WS_RE.sub(" ", name or "").strip().lower()


class GameType(str, Enum):
    ROULETTE = "roulette"
    BLACKJACK = "blackjack"
    BACCARAT = "baccarat"
    POKER = "poker"
    SLOTS = "slots"
    CRAPS = "craps"
    DICE = "dice"
    WHEEL = "wheel"
    GAME_SHOW = "game-show"
    CASINO = "casino"
    LIVE = "live"
    STREAM = "stream"
    UNKNOWN = "unknown"

    @classmethod
    def parse(cls, value: Any) -> "GameType":
        """Map free-form type labels ("game show", "Game_Show") onto the enum."""
        if isinstance(value, cls):
            return value
        if value is None:
            return cls.UNKNOWN
        s = _WS_RE.sub("-", str(value).strip().lower().replace("_", "-"))
        try:
            return cls(s)
        except ValueError:
            return cls.UNKNOWN


class Rating(str, Enum):
    EXCELLENT = "Excellent"
    VERY_GOOD = "Very Good"
    GOOD = "Good"
    FAIR = "Fair"
    POOR = "Poor"

    @classmethod
    def from_score(cls, score: float | None) -> "Rating | None":
        if score is None:
            return None
        if score >= 9:
            return cls.EXCELLENT
        if score >= 7.5:
            return cls.VERY_GOOD
        if score >= 6:
            return cls.GOOD
        if score >= 4:
            return cls.FAIR
        return cls.POOR


def _dedupe_capped(items: list[str], cap: int) -> list[str]:
    seen: set[str] = set()
    out: list[str] = []
    for item in items:
        s = _WS_RE.sub(" ", str(item)).strip()
        k = s.lower()
        if not s or k in seen:
            continue
        seen.add(k)
        out.append(s)
        if len(out) >= cap:
            break
    return out


class GameRecord(BaseModel):
    """One scraped game or casino entry."""

    model_config = ConfigDict(validate_assignment=False, use_enum_values=False)

    name: str = Field(..., min_length=1, max_length=MAX_NAME_LENGTH)
    url: str = ""
    type: GameType = GameType.UNKNOWN
    provider: str | None = None
    description: str | None = Field(default=None, max_length=MAX_DESCRIPTION_LENGTH)

    score: float | None = Field(default=None, ge=0, le=10)
    rating: Rating | None = None

    features: list[str] = Field(default_factory=list)
    bonuses: list[str] = Field(default_factory=list)
    payment_methods: list[str] = Field(default_factory=list)
    licenses: list[str] = Field(default_factory=list)
    languages: list[str] = Field(default_factory=list)
    currencies: list[str] = Field(default_factory=list)

    stats: dict[str, Any] = Field(default_factory=dict)

    is_live: bool = False
    mobile_compatible: bool = False
    live_chat: bool = False

    scraped_at: datetime = Field(default_factory=utcnow)
    # Only set (True) on synthetic or unpersisted records
    fallback_mode: bool | None = None

    @field_validator("name", mode="before")
    @classmethod
    def _clean_name(cls, v: Any) -> Any:
        if isinstance(v, str):
            return _WS_RE.sub(" ", v).strip()[:MAX_NAME_LENGTH]
        return v

    @field_validator("description", mode="before")
    @classmethod
    def _clip_description(cls, v: Any) -> Any:
        if isinstance(v, str):
            v = v.strip()
            return v[:MAX_DESCRIPTION_LENGTH] or None
        return v

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v: Any) -> GameType:
        return GameType.parse(v)

    @field_validator("scraped_at")
    @classmethod
    def _ensure_aware(cls, v: datetime) -> datetime:
        if v.tzinfo is None:
            return v.replace(tzinfo=timezone.utc)
        return v.astimezone(timezone.utc)

    @model_validator(mode="after")
    def _normalize_arrays(self) -> "GameRecord":
        for name, cap in FIELD_LIMITS.items():
            object.__setattr__(self, name, _dedupe_capped(getattr(self, name), cap))
        if self.rating is None:
            object.__setattr__(self, "rating", Rating.from_score(self.score))
        return self

    @property
    def key(self) -> str:
        """Normalized name; the natural deduplication key."""
        return normalize_name(self.name)

    def as_fallback(self) -> "GameRecord":
        """Copy of this record re-stamped now and flagged as fallback data."""
        return self.model_copy(update={"scraped_at": utcnow(), "fallback_mode": True})

    def to_dict(self) -> dict[str, Any]:
        data = self.model_dump(mode="json", exclude_none=False)
        if not self.fallback_mode:
            data.pop("fallback_mode", None)
        return data
