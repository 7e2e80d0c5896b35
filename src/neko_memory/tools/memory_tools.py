"""Agent-facing memory tools.

These functions are designed to be exposed as tools to an AI agent,
letting it create, read, update, delete, rename and view its own memory
files. Every tool returns a string; a missing entry is reported in the
result text instead of raised.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Callable

from neko_memory.errors import MemoryNotFoundError

if TYPE_CHECKING:
    from neko_memory.store import MemoryStore

logger = logging.getLogger(__name__)

PERSONALITY_ROOT = "personalities"


def personality_category(personality: str) -> str:
    return f"{PERSONALITY_ROOT}/{personality}"


def get_memory_tools(
    store: MemoryStore, personality: str | None = None
) -> dict[str, Callable[..., str]]:
    """Return a dict of tool_name -> callable for memory operations.

    With ``personality`` set, every tool is confined to that personality's
    category so personalities never see each other's memories.
    """
    category = personality_category(personality) if personality else None

    def create(filename: str, content: str) -> str:
        """Create (or overwrite) a memory file."""
        meta = store.store(filename, content, category)
        return f"Created {meta.relative_path} ({meta.size} bytes)"

    def read(filename: str) -> str:
        """Read a memory file."""
        try:
            content, _ = store.retrieve(filename, category)
        except MemoryNotFoundError as e:
            return str(e)
        return content

    def update(filename: str, content: str) -> str:
        """Replace the content of an existing memory file."""
        try:
            meta = store.update(filename, content, category)
        except MemoryNotFoundError as e:
            return str(e)
        return f"Updated {meta.relative_path} ({meta.size} bytes)"

    def append(filename: str, content: str) -> str:
        """Append a new line of content to an existing memory file."""
        try:
            meta = store.append(filename, content, category)
        except MemoryNotFoundError as e:
            return str(e)
        return f"Appended to {meta.relative_path}: {content[:80]}"

    def delete(filename: str) -> str:
        """Delete a memory file."""
        try:
            store.remove(filename, category)
        except MemoryNotFoundError as e:
            return str(e)
        return f"Deleted {filename}"

    def rename(old_filename: str, new_filename: str) -> str:
        """Rename a memory file within the same category."""
        if old_filename == new_filename:
            return f"{old_filename} unchanged"
        with store.lock:
            if store.exists(new_filename, category):
                return f"Cannot rename {old_filename}: {new_filename} already exists"
            try:
                content, _ = store.retrieve(old_filename, category)
            except MemoryNotFoundError as e:
                return str(e)
            store.store(new_filename, content, category)
            store.remove(old_filename, category)
        logger.info("Renamed memory %s -> %s", old_filename, new_filename)
        return f"Renamed {old_filename} -> {new_filename}"

    def view() -> str:
        """List memory files, most recently touched first."""
        entries = store.list(category)
        if not entries:
            return "(no memories yet)"
        return "\n".join(
            f"- {m.name} ({m.size} bytes, read {m.access_count}x, "
            f"updated {m.last_updated.isoformat(timespec='seconds')})"
            for m in entries
        )

    return {
        "create": create,
        "read": read,
        "update": update,
        "append": append,
        "delete": delete,
        "rename": rename,
        "view": view,
    }
