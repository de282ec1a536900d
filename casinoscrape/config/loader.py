"""
casinoscrape.config.loader

Load the game catalog from a YAML or JSON file.
Supports:
- ``{"games": [...]}`` documents
- bare lists of game objects

Validation problems never raise: they are returned in ``LoadResult.errors``
so callers (CLI ``validate``, startup) decide how to react.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any

import yaml
from pydantic import ValidationError

from casinoscrape.config.schema import GameConfig
from casinoscrape.config.settings import PACKAGE_DIR
from casinoscrape.schemas.records import GameType

DEFAULT_GAMES_PATH = PACKAGE_DIR / "config" / "games.yaml"


@dataclass(frozen=True)
class LoadResult:
    games: dict[str, GameConfig]
    warnings: list[str] = field(default_factory=list)
    errors: list[str] = field(default_factory=list)
    meta: dict[str, Any] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors


def _read(path: Path) -> Any:
    text = path.read_text(encoding="utf-8")
    if path.suffix.lower() == ".json":
        return json.loads(text)
    return yaml.safe_load(text)


def load_games(path: str | Path | None = None) -> LoadResult:
    """
    Load and validate GameConfig entries.

    Raises nothing; returns ok/not ok via the errors list.
    """
    p = Path(path) if path else DEFAULT_GAMES_PATH
    warnings: list[str] = []
    errors: list[str] = []
    games: dict[str, GameConfig] = {}

    try:
        data = _read(p)
    except (OSError, yaml.YAMLError, json.JSONDecodeError) as e:
        return LoadResult(games={}, errors=[f"{p}: cannot read: {e}"], meta={"path": str(p)})

    if isinstance(data, dict):
        raw_items = data.get("games", [])
    elif isinstance(data, list):
        raw_items = data
    else:
        raw_items = []
        errors.append(f"{p}: expected a mapping with 'games' or a list, got {type(data).__name__}")

    if not isinstance(raw_items, list):
        errors.append(f"{p}: 'games' must be a list")
        raw_items = []

    for idx, item in enumerate(raw_items):
        if not isinstance(item, dict):
            errors.append(f"{p}: games[{idx}] is not an object")
            continue
        try:
            cfg = GameConfig.model_validate(item)
        except ValidationError as e:
            label = item.get("key", f"games[{idx}]")
            for err in e.errors():
                loc = ".".join(str(x) for x in err["loc"])
                errors.append(f"{label}: {loc}: {err['msg']}")
            continue
        if cfg.key in games:
            warnings.append(f"{cfg.key}: duplicate key, later entry wins")
        games[cfg.key] = cfg

    if not games and not errors:
        warnings.append(f"{p}: no games configured")

    return LoadResult(
        games=games,
        warnings=warnings,
        errors=errors,
        meta={"path": str(p), "count": len(games)},
    )


@lru_cache(maxsize=1)
def default_games() -> dict[str, GameConfig]:
    """Return the bundled game catalog. Raises ValueError if it is invalid."""
    result = load_games(DEFAULT_GAMES_PATH)
    if not result.ok:
        raise ValueError("Invalid bundled games catalog: " + "; ".join(result.errors))
    return dict(result.games)


def games_by_type(games: dict[str, GameConfig], game_type: str) -> list[GameConfig]:
    wanted = GameType.parse(game_type)
    return [g for g in games.values() if g.type == wanted]


def games_by_provider(games: dict[str, GameConfig], provider: str) -> list[GameConfig]:
    provider = provider.strip().lower()
    return [g for g in games.values() if (g.provider or "").lower() == provider]
