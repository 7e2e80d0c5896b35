"""Metadata index: per-entry statistics persisted as one JSON file.

Storage format (v1)::

    {
        "schema_version": 1,
        "entries": [
            {"category": "system", "name": "note.md", "relative_path": "system/note.md",
             "content_hash": "...", "last_updated": "2026-01-01T00:00:00+00:00",
             "access_count": 0, "size": 5, "tags": []}
        ]
    }

Entries are keyed by ``(category, name)``. The older flat format, an object
keyed by bare filename with camelCase fields, is migrated on load.
"""

from __future__ import annotations

import json
import logging
import threading
from dataclasses import asdict, dataclass, field, replace
from datetime import datetime, timezone
from pathlib import Path, PurePosixPath

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1
INDEX_FILENAME = ".metadata.json"


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """Parse an ISO-8601 timestamp, accepting a trailing ``Z``."""
    ts = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


@dataclass
class EntryMetadata:
    """Metadata for one stored entry."""

    category: str
    name: str
    relative_path: str
    content_hash: str
    last_updated: datetime
    access_count: int = 0
    size: int = 0
    tags: list[str] = field(default_factory=list)

    @property
    def key(self) -> tuple[str, str]:
        return (self.category, self.name)

    def copy(self) -> EntryMetadata:
        return replace(self, tags=list(self.tags))

    def to_dict(self) -> dict:
        data = asdict(self)
        data["last_updated"] = self.last_updated.isoformat()
        return data

    @classmethod
    def from_dict(cls, data: dict) -> EntryMetadata:
        return cls(
            category=str(data["category"]),
            name=str(data["name"]),
            relative_path=str(data["relative_path"]),
            content_hash=str(data["content_hash"]),
            last_updated=parse_timestamp(data["last_updated"]),
            access_count=int(data.get("access_count", 0)),
            size=int(data.get("size", 0)),
            tags=[str(t) for t in data.get("tags", [])],
        )

    @classmethod
    def from_legacy(cls, filename: str, data: dict) -> EntryMetadata:
        """Build a record from the flat camelCase format keyed by filename."""
        rel = PurePosixPath(str(data["filePath"]).replace("\\", "/"))
        category = str(rel.parent) if str(rel.parent) != "." else ""
        return cls(
            category=category,
            name=filename,
            relative_path=str(rel),
            content_hash=str(data["contentHash"]),
            last_updated=parse_timestamp(data["lastUpdated"]),
            access_count=int(data.get("accessCount", 0)),
            size=int(data.get("size", 0)),
        )


class MetadataIndex:
    """In-memory mapping of ``(category, name)`` to metadata, mirrored to disk.

    Every method takes ``lock``; callers that need a read-modify-write
    sequence across several calls hold it themselves (it is re-entrant).
    """

    def __init__(self, path: Path) -> None:
        self.path = path
        self.lock = threading.RLock()
        self._entries: dict[tuple[str, str], EntryMetadata] = {}

    def load(self) -> None:
        """Replace the in-memory mapping with the file's contents.

        A missing file yields an empty index. An unreadable or malformed one
        also yields an empty index, with a warning.
        """
        with self.lock:
            self._entries = {}
            if not self.path.exists():
                return
            try:
                data = json.loads(self.path.read_text(encoding="utf-8"))
                entries = self._parse(data)
            except (ValueError, KeyError, TypeError, AttributeError) as e:
                logger.warning("Metadata index %s is corrupt, starting empty: %s", self.path, e)
                return
            self._entries = {m.key: m for m in entries}
            logger.debug("Loaded %d metadata records from %s", len(self._entries), self.path)

    def _parse(self, data: object) -> list[EntryMetadata]:
        if not isinstance(data, dict):
            raise ValueError(f"expected a JSON object, got {type(data).__name__}")

        if "schema_version" in data:
            version = data["schema_version"]
            if version != SCHEMA_VERSION:
                raise ValueError(f"unsupported schema version {version!r}")
            return [EntryMetadata.from_dict(record) for record in data.get("entries", [])]

        logger.info("Migrating legacy metadata index %s", self.path)
        return [EntryMetadata.from_legacy(name, record) for name, record in data.items()]

    def save(self) -> None:
        with self.lock:
            payload = {
                "schema_version": SCHEMA_VERSION,
                "entries": [m.to_dict() for m in self._entries.values()],
            }
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(payload, indent=2, ensure_ascii=False), encoding="utf-8"
            )
            logger.debug("Saved %d metadata records to %s", len(self._entries), self.path)

    def get(self, category: str, name: str) -> EntryMetadata | None:
        with self.lock:
            return self._entries.get((category, name))

    def put(self, metadata: EntryMetadata) -> None:
        with self.lock:
            self._entries[metadata.key] = metadata

    def delete(self, category: str, name: str) -> bool:
        """Drop a record. Returns True if one was present."""
        with self.lock:
            return self._entries.pop((category, name), None) is not None

    def values(self) -> list[EntryMetadata]:
        with self.lock:
            return list(self._entries.values())

    def clear(self) -> None:
        with self.lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)

    def __contains__(self, key: object) -> bool:
        with self.lock:
            return key in self._entries
