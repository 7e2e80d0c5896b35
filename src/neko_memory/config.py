"""Configuration loading from environment variables and neko.toml."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field

if sys.version_info >= (3, 11):
    import tomllib
else:
    import tomli as tomllib
from pathlib import Path

from neko_memory.store import DEFAULT_CATEGORIES, DEFAULT_CATEGORY

_DEFAULT_MEMORY_ROOT = Path.home() / ".neko" / "memory"
_CONFIG_FILENAME = "neko.toml"


@dataclass
class MemoryConfig:
    """Memory store configuration."""

    memory_root: Path = _DEFAULT_MEMORY_ROOT
    default_category: str = DEFAULT_CATEGORY
    categories: list[str] = field(default_factory=lambda: list(DEFAULT_CATEGORIES))
    personality: str | None = None
    log_level: str = "INFO"


def _split_categories(value: str) -> list[str]:
    return [c.strip() for c in value.split(",") if c.strip()]


def load_config(config_path: Path | None = None) -> MemoryConfig:
    """Load configuration from environment variables and optional neko.toml.

    Priority: environment variables > neko.toml > defaults.
    """
    file_data: dict = {}
    if config_path and config_path.exists():
        file_data = tomllib.loads(config_path.read_text())
    else:
        # Search current dir and ~/.neko/
        for candidate in [Path.cwd() / _CONFIG_FILENAME, Path.home() / ".neko" / _CONFIG_FILENAME]:
            if candidate.exists():
                file_data = tomllib.loads(candidate.read_text())
                break

    memory_data = file_data.get("memory", {})

    env_categories = os.getenv("MEMORY_CATEGORIES")
    if env_categories:
        categories = _split_categories(env_categories)
    else:
        categories = list(memory_data.get("categories", DEFAULT_CATEGORIES))

    return MemoryConfig(
        memory_root=Path(
            os.getenv("MEMORY_ROOT", memory_data.get("root", str(_DEFAULT_MEMORY_ROOT)))
        ).expanduser(),
        default_category=os.getenv(
            "MEMORY_DEFAULT_CATEGORY", memory_data.get("default_category", DEFAULT_CATEGORY)
        ),
        categories=categories,
        personality=os.getenv("MEMORY_PERSONALITY", memory_data.get("personality")) or None,
        log_level=os.getenv("MEMORY_LOG_LEVEL", file_data.get("log_level", "INFO")),
    )
