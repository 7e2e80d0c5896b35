"""Error types raised by the memory store.

Filesystem failures other than a missing entry are plain ``OSError`` and
propagate unchanged.
"""

from __future__ import annotations


class MemoryStoreError(Exception):
    """Base class for memory store errors."""


class MemoryNotFoundError(MemoryStoreError, LookupError):
    """An operation required an existing entry and none was found.

    The message always contains ``"not found"`` so callers that only see the
    text can still branch on it.
    """

    def __init__(self, message: str, name: str, category: str) -> None:
        super().__init__(message)
        self.name = name
        self.category = category
