"""Persistent file-backed memory store.

Layout:
    ~/.neko/memory/
    ├── .metadata.json                 # Per-entry hash, size, timestamps, access counts
    ├── system/                        # Default category
    ├── personalities/
    │   └── <name>/                    # One category per personality
    └── projects/
"""

from neko_memory.config import MemoryConfig, load_config
from neko_memory.errors import MemoryNotFoundError, MemoryStoreError
from neko_memory.index import EntryMetadata, MetadataIndex
from neko_memory.store import MemoryStore, RetrieveResult, StoreStats

__all__ = [
    "EntryMetadata",
    "MemoryConfig",
    "MemoryNotFoundError",
    "MemoryStore",
    "MemoryStoreError",
    "MetadataIndex",
    "RetrieveResult",
    "StoreStats",
    "load_config",
]
