"""File-backed memory store.

Entries are plain text files under ``<root>/<category>/<name>``. Per-entry
statistics live in a single metadata index at ``<root>/.metadata.json``.
The filesystem is authoritative for content, the index for statistics.

Layout:
    <root>/
    ├── .metadata.json
    ├── system/                 # default category
    ├── personalities/
    │   └── technical/          # categories may be nested path segments
    └── projects/
"""

from __future__ import annotations

import logging
import shutil
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, NamedTuple

import frontmatter

from neko_memory.errors import MemoryNotFoundError
from neko_memory.hashing import content_hash, content_size
from neko_memory.index import INDEX_FILENAME, EntryMetadata, MetadataIndex, utcnow

if TYPE_CHECKING:
    from neko_memory.config import MemoryConfig

logger = logging.getLogger(__name__)

DEFAULT_CATEGORY = "system"
DEFAULT_CATEGORIES = ("system", "personalities", "projects")
MOST_ACCESSED_LIMIT = 10


class RetrieveResult(NamedTuple):
    content: str
    metadata: EntryMetadata


@dataclass
class StoreStats:
    """Aggregate statistics over the metadata index."""

    total_files: int = 0
    total_size: int = 0
    categories: list[str] = field(default_factory=list)
    most_accessed: list[EntryMetadata] = field(default_factory=list)


class MemoryStore:
    """Durable CRUD over named text blobs grouped by category.

    All public operations run under the index's re-entrant lock, exposed as
    ``lock``, so a single store instance may be shared by many threads and
    callers can hold it across several operations. Separate processes writing
    to the same root are not coordinated.
    """

    def __init__(
        self,
        root: Path,
        categories: tuple[str, ...] | list[str] = DEFAULT_CATEGORIES,
        default_category: str = DEFAULT_CATEGORY,
    ) -> None:
        self.root = Path(root)
        self.categories = list(categories)
        self.default_category = default_category
        self.index = MetadataIndex(self.root / INDEX_FILENAME)
        self.lock = self.index.lock
        self._ensure_initialized()

    @classmethod
    def from_config(cls, config: MemoryConfig) -> MemoryStore:
        return cls(
            config.memory_root,
            categories=config.categories,
            default_category=config.default_category,
        )

    # ── Initialization ────────────────────────────────────────

    def _ensure_initialized(self) -> None:
        """Create root and category directories, then load the index. Idempotent."""
        self.root.mkdir(parents=True, exist_ok=True)
        for d in [self.default_category, *self.categories]:
            (self.root / d).mkdir(parents=True, exist_ok=True)
        self.index.load()

    # ── Paths ─────────────────────────────────────────────────

    def _category(self, category: str | None) -> str:
        """Normalize a category; None means the default, "" means the root."""
        if category is None:
            return self.default_category
        normalized = PurePosixPath(category.replace("\\", "/").strip("/")).as_posix()
        return "" if normalized == "." else normalized

    def _path(self, name: str, category: str) -> Path:
        if not name:
            raise ValueError("Memory name must not be empty")
        return self.root / category / name if category else self.root / name

    @staticmethod
    def _relative_path(name: str, category: str) -> str:
        return f"{category}/{name}" if category else name

    # ── Content I/O ───────────────────────────────────────────

    @staticmethod
    def _read(path: Path) -> str:
        with path.open("r", encoding="utf-8", newline="") as f:
            return f.read()

    @staticmethod
    def _write(path: Path, content: str) -> None:
        with path.open("w", encoding="utf-8", newline="") as f:
            f.write(content)

    @staticmethod
    def _parse_tags(content: str) -> list[str]:
        """Tags from YAML frontmatter, if the content has any."""
        if not content.startswith("---"):
            return []
        try:
            tags = frontmatter.loads(content).metadata.get("tags", [])
        except Exception:
            return []
        if isinstance(tags, str):
            return [tags]
        if isinstance(tags, list):
            return [str(t) for t in tags]
        return []

    def _synthesize(self, name: str, category: str, content: str) -> EntryMetadata:
        """Metadata for a file that exists on disk but has no index record."""
        return EntryMetadata(
            category=category,
            name=name,
            relative_path=self._relative_path(name, category),
            content_hash=content_hash(content),
            last_updated=utcnow(),
            access_count=1,
            size=content_size(content),
            tags=self._parse_tags(content),
        )

    # ── Operations ────────────────────────────────────────────

    def exists(self, name: str, category: str | None = None) -> bool:
        """Whether a file is on disk for the entry, tracked or not."""
        return self._path(name, self._category(category)).exists()

    def store(self, name: str, content: str, category: str | None = None) -> EntryMetadata:
        """Write content, fully replacing any prior content, and reset its counter."""
        cat = self._category(category)
        path = self._path(name, cat)
        with self.lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            self._write(path, content)
            metadata = EntryMetadata(
                category=cat,
                name=name,
                relative_path=self._relative_path(name, cat),
                content_hash=content_hash(content),
                last_updated=utcnow(),
                access_count=0,
                size=content_size(content),
                tags=self._parse_tags(content),
            )
            self.index.put(metadata)
            self.index.save()
        logger.info("Stored memory %s (%d bytes)", metadata.relative_path, metadata.size)
        return metadata.copy()

    def retrieve(self, name: str, category: str | None = None) -> RetrieveResult:
        """Read an entry and count the access.

        Raises:
            MemoryNotFoundError: No file exists for ``name`` in ``category``.
        """
        cat = self._category(category)
        path = self._path(name, cat)
        with self.lock:
            try:
                content = self._read(path)
            except FileNotFoundError:
                raise MemoryNotFoundError(
                    f"Memory file not found: {self._relative_path(name, cat)}", name, cat
                ) from None

            metadata = self.index.get(cat, name)
            if metadata is None:
                return RetrieveResult(content, self._synthesize(name, cat, content))

            metadata.access_count += 1
            metadata.last_updated = utcnow()
            self.index.save()
            logger.debug("Retrieved memory %s (access %d)", metadata.relative_path, metadata.access_count)
            return RetrieveResult(content, metadata.copy())

    def update(self, name: str, content: str, category: str | None = None) -> EntryMetadata:
        """Replace the content of an existing entry.

        Raises:
            MemoryNotFoundError: The entry does not exist yet.
        """
        cat = self._category(category)
        path = self._path(name, cat)
        with self.lock:
            if not path.exists():
                raise MemoryNotFoundError(
                    f"Cannot update non-existent file: {self._relative_path(name, cat)} (not found)",
                    name,
                    cat,
                )
            return self.store(name, content, category)

    def append(self, name: str, extra: str, category: str | None = None) -> EntryMetadata:
        """Append ``extra`` on a new line. Counts as a read followed by a write."""
        with self.lock:
            current = self.retrieve(name, category).content
            return self.update(name, f"{current}\n{extra}", category)

    def remove(self, name: str, category: str | None = None) -> None:
        """Delete an entry's file and its metadata record.

        Raises:
            MemoryNotFoundError: The entry does not exist.
        """
        cat = self._category(category)
        path = self._path(name, cat)
        with self.lock:
            try:
                path.unlink()
            except FileNotFoundError:
                raise MemoryNotFoundError(
                    f"Cannot delete non-existent file: {self._relative_path(name, cat)} (not found)",
                    name,
                    cat,
                ) from None
            self.index.delete(cat, name)
            self.index.save()
        logger.info("Deleted memory %s", self._relative_path(name, cat))

    def list(self, category: str | None = None) -> list[EntryMetadata]:
        """Tracked entries directly inside a category, most recently touched first.

        Files without an index record and hidden files are skipped.
        """
        cat = self._category(category)
        directory = self.root / cat if cat else self.root
        with self.lock:
            try:
                children = sorted(directory.iterdir())
            except FileNotFoundError:
                return []
            found = []
            for child in children:
                if child.name.startswith(".") or not child.is_file():
                    continue
                metadata = self.index.get(cat, child.name)
                if metadata is not None:
                    found.append(metadata.copy())
        found.sort(key=lambda m: m.last_updated, reverse=True)
        return found

    def get_stats(self) -> StoreStats:
        """Totals over the metadata index (not re-scanned from disk)."""
        records = self.index.values()
        ranked = sorted(records, key=lambda m: m.access_count, reverse=True)
        return StoreStats(
            total_files=len(records),
            total_size=sum(m.size for m in records),
            categories=list(self.categories),
            most_accessed=[m.copy() for m in ranked[:MOST_ACCESSED_LIMIT]],
        )

    def clear(self) -> None:
        """Delete the whole root and start over empty. Meant for test teardown."""
        with self.lock:
            if self.root.exists():
                shutil.rmtree(self.root)
            self.index.clear()
            self._ensure_initialized()
        logger.info("Cleared memory store at %s", self.root)
