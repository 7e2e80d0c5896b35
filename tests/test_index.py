"""Tests for the metadata index."""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path

import pytest

from neko_memory.index import SCHEMA_VERSION, EntryMetadata, MetadataIndex, parse_timestamp
from neko_memory.store import MemoryStore


def _meta(name: str = "note.md", category: str = "system", **kwargs) -> EntryMetadata:
    defaults = dict(
        category=category,
        name=name,
        relative_path=f"{category}/{name}",
        content_hash="abc123",
        last_updated=datetime(2026, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        access_count=0,
        size=5,
    )
    defaults.update(kwargs)
    return EntryMetadata(**defaults)


@pytest.fixture
def index(tmp_path: Path) -> MetadataIndex:
    return MetadataIndex(tmp_path / ".metadata.json")


class TestEntryMetadata:
    def test_to_dict_serializes_timestamp(self):
        data = _meta().to_dict()
        assert data["last_updated"] == "2026-01-02T03:04:05+00:00"
        assert data["relative_path"] == "system/note.md"
        assert data["tags"] == []

    def test_from_dict_restores_record(self):
        meta = _meta(access_count=7, tags=["a"])
        assert EntryMetadata.from_dict(meta.to_dict()) == meta

    def test_copy_is_independent(self):
        meta = _meta(tags=["a"])
        clone = meta.copy()
        clone.tags.append("b")
        clone.access_count = 3
        assert meta.tags == ["a"]
        assert meta.access_count == 0

    def test_key_is_category_and_name(self):
        assert _meta("x.md", "projects").key == ("projects", "x.md")


class TestParseTimestamp:
    def test_zulu_suffix(self):
        ts = parse_timestamp("2025-11-08T10:00:00.123Z")
        assert ts == datetime(2025, 11, 8, 10, 0, 0, 123000, tzinfo=timezone.utc)

    def test_naive_assumed_utc(self):
        assert parse_timestamp("2025-11-08T10:00:00").tzinfo == timezone.utc


class TestRepository:
    def test_put_get_delete(self, index: MetadataIndex):
        index.put(_meta())
        assert index.get("system", "note.md") == _meta()
        assert ("system", "note.md") in index
        assert index.delete("system", "note.md") is True
        assert index.delete("system", "note.md") is False
        assert index.get("system", "note.md") is None

    def test_composite_key(self, index: MetadataIndex):
        index.put(_meta("notes.md", "system", content_hash="one"))
        index.put(_meta("notes.md", "projects", content_hash="two"))
        assert len(index) == 2
        assert index.get("system", "notes.md").content_hash == "one"
        assert index.get("projects", "notes.md").content_hash == "two"

    def test_save_and_load(self, index: MetadataIndex, tmp_path: Path):
        index.put(_meta(access_count=4, tags=["x"]))
        index.save()

        reloaded = MetadataIndex(tmp_path / ".metadata.json")
        reloaded.load()
        assert reloaded.values() == [_meta(access_count=4, tags=["x"])]

    def test_saved_format(self, index: MetadataIndex):
        index.put(_meta())
        index.save()
        data = json.loads(index.path.read_text(encoding="utf-8"))
        assert data["schema_version"] == SCHEMA_VERSION
        assert data["entries"][0]["name"] == "note.md"

    def test_load_missing_file(self, index: MetadataIndex):
        index.put(_meta())
        index.load()
        assert len(index) == 0

    def test_clear(self, index: MetadataIndex):
        index.put(_meta())
        index.clear()
        assert index.values() == []


class TestCorruptIndex:
    @pytest.mark.parametrize(
        "payload",
        [
            "{not json",
            "[1, 2, 3]",
            '{"schema_version": 99, "entries": []}',
            '{"schema_version": 1, "entries": [{"name": "missing-fields.md"}]}',
            '{"note.md": "not a record"}',
        ],
    )
    def test_falls_back_to_empty(self, index: MetadataIndex, payload: str, caplog):
        index.path.write_text(payload, encoding="utf-8")
        with caplog.at_level("WARNING"):
            index.load()
        assert len(index) == 0
        assert "corrupt" in caplog.text


class TestLegacyFormat:
    LEGACY = {
        "note.md": {
            "filePath": "system/note.md",
            "contentHash": "deadbeef",
            "lastUpdated": "2025-11-08T10:00:00.000Z",
            "accessCount": 3,
            "size": 5,
        },
        "tech.md": {
            "filePath": "personalities/technical/tech.md",
            "contentHash": "cafe",
            "lastUpdated": "2025-11-08T11:00:00.000Z",
            "accessCount": 0,
            "size": 4,
        },
    }

    def test_migrates_records(self, index: MetadataIndex):
        index.path.write_text(json.dumps(self.LEGACY), encoding="utf-8")
        index.load()
        note = index.get("system", "note.md")
        assert note.access_count == 3
        assert note.content_hash == "deadbeef"
        assert index.get("personalities/technical", "tech.md").size == 4

    def test_store_reads_legacy_and_rewrites(self, tmp_path: Path):
        root = tmp_path / "memory"
        (root / "system").mkdir(parents=True)
        (root / "system" / "note.md").write_text("hello", encoding="utf-8")
        (root / ".metadata.json").write_text(json.dumps(self.LEGACY), encoding="utf-8")

        store = MemoryStore(root)
        assert store.retrieve("note.md").metadata.access_count == 4

        data = json.loads((root / ".metadata.json").read_text(encoding="utf-8"))
        assert data["schema_version"] == SCHEMA_VERSION
        assert len(data["entries"]) == 2
