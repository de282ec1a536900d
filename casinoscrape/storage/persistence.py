"""
casinoscrape.storage.persistence

Persistence interface consumed by scrapers, plus two built-in stores.

Writes are upserts keyed on the normalized record name; a store never
holds two records with the same key and never deletes records.
"""

from __future__ import annotations

import json
import logging
import os
import threading
from abc import ABC, abstractmethod
from collections.abc import Sequence
from pathlib import Path
from typing import Any

from pydantic import ValidationError

from casinoscrape.runtime.errors import PersistenceUnavailable
from casinoscrape.schemas.records import GameRecord, normalize_name

logger = logging.getLogger(__name__)


class PersistenceAdapter(ABC):
    """Persistence boundary. Implementations must tolerate concurrent calls."""

    @abstractmethod
    def save(self, records: Sequence[GameRecord]) -> list[GameRecord]:
        """Upsert records and return what was stored. Raises on failure."""

    @abstractmethod
    def is_available(self) -> bool:
        """Cheap health check performed before each save."""


def _merge(existing: GameRecord, incoming: GameRecord) -> GameRecord:
    # last write wins on fields the incoming record actually carries
    update = {k: v for k, v in incoming.model_dump().items() if v is not None and v != [] and v != {}}
    return existing.model_copy(update=update)


class InMemoryRecordStore(PersistenceAdapter):
    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._records: dict[str, GameRecord] = {}
        self.available = True

    def is_available(self) -> bool:
        return self.available

    def save(self, records: Sequence[GameRecord]) -> list[GameRecord]:
        if not self.available:
            raise PersistenceUnavailable("in-memory store disabled")
        saved: list[GameRecord] = []
        with self._lock:
            for rec in records:
                prev = self._records.get(rec.key)
                stored = _merge(prev, rec) if prev is not None else rec
                self._records[rec.key] = stored
                saved.append(stored)
        return saved

    def get(self, name: str) -> GameRecord | None:
        with self._lock:
            return self._records.get(normalize_name(name))

    def all(self) -> list[GameRecord]:
        with self._lock:
            return list(self._records.values())

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)


class JsonFileRecordStore(PersistenceAdapter):
    """
    JSON document keyed by normalized name.

    Each save re-reads the file, upserts and atomically replaces it
    (write to a temp file, then ``os.replace``).
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)
        self._lock = threading.Lock()

    def is_available(self) -> bool:
        parent = self.path.parent
        try:
            parent.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            logger.warning("Store directory %s unavailable: %s", parent, e)
            return False
        return os.access(parent, os.W_OK)

    def _read(self) -> dict[str, GameRecord]:
        if not self.path.exists():
            return {}
        raw: dict[str, Any] = json.loads(self.path.read_text(encoding="utf-8") or "{}")
        out: dict[str, GameRecord] = {}
        for key, data in raw.items():
            try:
                out[key] = GameRecord.model_validate(data)
            except ValidationError as e:
                logger.warning("Skipping unreadable stored record %r: %s", key, e)
        return out

    def _write(self, records: dict[str, GameRecord]) -> None:
        payload = {k: r.to_dict() for k, r in records.items()}
        tmp = self.path.with_suffix(self.path.suffix + ".tmp")
        tmp.write_text(json.dumps(payload, ensure_ascii=False, indent=2), encoding="utf-8")
        os.replace(tmp, self.path)

    def save(self, records: Sequence[GameRecord]) -> list[GameRecord]:
        saved: list[GameRecord] = []
        with self._lock:
            current = self._read()
            for rec in records:
                prev = current.get(rec.key)
                stored = _merge(prev, rec) if prev is not None else rec
                current[rec.key] = stored
                saved.append(stored)
            self._write(current)
        return saved

    def all(self) -> list[GameRecord]:
        with self._lock:
            return list(self._read().values())
