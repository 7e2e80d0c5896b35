"""Content digest helpers."""

from __future__ import annotations

import hashlib


def content_hash(content: str) -> str:
    """SHA-256 hex digest of the UTF-8 encoded content."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


def content_size(content: str) -> int:
    return len(content.encode("utf-8"))
