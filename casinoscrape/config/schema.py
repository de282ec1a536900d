"""
casinoscrape.config.schema

Pydantic models for the static game catalog.
"""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, field_validator

from casinoscrape.schemas.records import GameType


class GameConfig(BaseModel):
    """Read-only configuration of one game."""

    model_config = ConfigDict(frozen=True, extra="forbid")

    key: str = Field(..., min_length=1, pattern=r"^[a-z0-9][a-z0-9-]*$")
    name: str = Field(..., min_length=1)
    type: GameType = GameType.UNKNOWN
    provider: str | None = None
    url: str = Field(..., min_length=1)
    default_url: str | None = None
    features: tuple[str, ...] = ()
    search_keywords: tuple[str, ...] = ()
    is_live: bool = False
    description: str | None = None

    @field_validator("type", mode="before")
    @classmethod
    def _coerce_type(cls, v):
        return GameType.parse(v)

    @field_validator("url", "default_url")
    @classmethod
    def _check_url(cls, v: str | None) -> str | None:
        if v is not None and not v.startswith(("http://", "https://")):
            raise ValueError(f"url must be absolute http(s): {v!r}")
        return v

    @field_validator("search_keywords")
    @classmethod
    def _lower_keywords(cls, v: tuple[str, ...]) -> tuple[str, ...]:
        return tuple(k.strip().lower() for k in v if k and k.strip())

    @property
    def target_url(self) -> str:
        """Page the game's dedicated scraper navigates to."""
        return self.default_url or self.url

