"""Deduplication helpers.

Records are deduplicated by normalized name (whitespace-collapsed,
trimmed, lower-cased). The first occurrence wins.

This module also includes a simple seen-key store interface.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from casinoscrape.schemas.records import GameRecord


class DedupeStore:
    """Interface for dedupe state."""

    def seen(self, key: str) -> bool:
        raise NotImplementedError

    def add(self, key: str) -> None:
        raise NotImplementedError


class InMemoryDedupeStore(DedupeStore):
    def __init__(self) -> None:
        self._seen: set[str] = set()

    def seen(self, key: str) -> bool:
        return key in self._seen

    def add(self, key: str) -> None:
        self._seen.add(key)


@dataclass
class DedupeResult:
    """Hold the result of deduplication."""

    kept: list[GameRecord]
    dropped: list[GameRecord]
    stats: dict[str, int]


def dedupe_records(records: Iterable[GameRecord], *, store: DedupeStore | None = None) -> DedupeResult:
    """Keep the first record per normalized name, preserving input order."""
    store = store or InMemoryDedupeStore()
    kept: list[GameRecord] = []
    dropped: list[GameRecord] = []

    for rec in records:
        key = rec.key
        if store.seen(key):
            dropped.append(rec)
            continue
        store.add(key)
        kept.append(rec)

    return DedupeResult(
        kept=kept,
        dropped=dropped,
        stats={"input": len(kept) + len(dropped), "kept": len(kept), "dropped": len(dropped)},
    )
