"""Unit tests for record stores and deduplication."""

import json

import pytest

from casinoscrape.pipeline.dedupe import InMemoryDedupeStore, dedupe_records
from casinoscrape.runtime.errors import PersistenceUnavailable
from casinoscrape.schemas.records import GameRecord
from casinoscrape.storage.persistence import InMemoryRecordStore, JsonFileRecordStore


def _rec(name, **kw):
    return GameRecord(name=name, url="https://example.com/", **kw)


class TestInMemoryRecordStore:
    def test_upsert_by_normalized_name(self):
        store = InMemoryRecordStore()
        store.save([_rec("Crazy Time", score=8.0)])
        store.save([_rec("  crazy   TIME ", features=["live"])])

        assert len(store) == 1
        stored = store.get("crazy time")
        assert stored.score == 8.0
        assert stored.features == ["live"]
        assert stored.name == "crazy TIME"

    def test_unavailable_raises(self):
        store = InMemoryRecordStore()
        store.available = False
        assert store.is_available() is False
        with pytest.raises(PersistenceUnavailable):
            store.save([_rec("A")])


class TestJsonFileRecordStore:
    def test_roundtrip_on_disk(self, tmp_path):
        path = tmp_path / "data" / "records.json"
        store = JsonFileRecordStore(path)
        assert store.is_available()

        store.save([_rec("Alpha", score=9.5), _rec("Beta")])
        store.save([_rec("ALPHA", description="Updated description text")])

        raw = json.loads(path.read_text(encoding="utf-8"))
        assert set(raw) == {"alpha", "beta"}
        assert "fallback_mode" not in raw["alpha"]

        alpha = {r.key: r for r in store.all()}["alpha"]
        assert alpha.score == 9.5
        assert alpha.rating.value == "Excellent"
        assert alpha.description == "Updated description text"
        assert not (tmp_path / "data" / "records.json.tmp").exists()


class TestDedupe:
    def test_first_record_wins(self):
        result = dedupe_records([_rec("Alpha", score=1.0), _rec("Beta"), _rec(" alpha ", score=2.0)])
        assert [r.name for r in result.kept] == ["Alpha", "Beta"]
        assert result.kept[0].score == 1.0
        assert result.stats == {"input": 3, "kept": 2, "dropped": 1}

    def test_shared_store_across_batches(self):
        seen = InMemoryDedupeStore()
        dedupe_records([_rec("Alpha")], store=seen)
        result = dedupe_records([_rec("alpha"), _rec("Gamma")], store=seen)
        assert [r.name for r in result.kept] == ["Gamma"]
