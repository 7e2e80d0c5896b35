"""Entry point: python -m neko_memory <command>

Usage::

    neko-memory store  NAME [-c CATEGORY] [--file PATH]   # content from file or stdin
    neko-memory get    NAME [-c CATEGORY]
    neko-memory append NAME [-c CATEGORY] [--file PATH]
    neko-memory rm     NAME [-c CATEGORY]
    neko-memory list   [-c CATEGORY] [--format table|json]
    neko-memory stats  [--format table|json]
    neko-memory clear  --yes
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from neko_memory.config import load_config
from neko_memory.errors import MemoryNotFoundError
from neko_memory.store import MemoryStore
from neko_memory.tools.memory_tools import personality_category


def _setup_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
        stream=sys.stderr,
    )


def _read_input(args: argparse.Namespace) -> str:
    if args.file:
        return Path(args.file).read_text(encoding="utf-8")
    return sys.stdin.read()


def _cmd_store(store: MemoryStore, args: argparse.Namespace) -> int:
    meta = store.store(args.name, _read_input(args), args.category)
    print(f"Stored {meta.relative_path} ({meta.size} bytes, sha256 {meta.content_hash[:12]})")
    return 0


def _cmd_get(store: MemoryStore, args: argparse.Namespace) -> int:
    content, _ = store.retrieve(args.name, args.category)
    sys.stdout.write(content)
    return 0


def _cmd_append(store: MemoryStore, args: argparse.Namespace) -> int:
    meta = store.append(args.name, _read_input(args), args.category)
    print(f"Appended to {meta.relative_path} ({meta.size} bytes)")
    return 0


def _cmd_rm(store: MemoryStore, args: argparse.Namespace) -> int:
    store.remove(args.name, args.category)
    print(f"Deleted {args.name}")
    return 0


def _cmd_list(store: MemoryStore, args: argparse.Namespace) -> int:
    entries = store.list(args.category)
    if args.format == "json":
        print(json.dumps([m.to_dict() for m in entries], indent=2, ensure_ascii=False))
        return 0
    if not entries:
        print("No memories found.")
        return 0
    for m in entries:
        updated = m.last_updated.strftime("%Y-%m-%d %H:%M:%S")
        print(f"{updated}  {m.access_count:>5}  {m.size:>8}  {m.relative_path}")
    return 0


def _cmd_stats(store: MemoryStore, args: argparse.Namespace) -> int:
    stats = store.get_stats()
    if args.format == "json":
        payload = {
            "total_files": stats.total_files,
            "total_size": stats.total_size,
            "categories": stats.categories,
            "most_accessed": [m.to_dict() for m in stats.most_accessed],
        }
        print(json.dumps(payload, indent=2, ensure_ascii=False))
        return 0
    print(f"Root:       {store.root}")
    print(f"Files:      {stats.total_files}")
    print(f"Total size: {stats.total_size} bytes")
    print(f"Categories: {', '.join(stats.categories)}")
    if stats.most_accessed:
        print("Most accessed:")
        for m in stats.most_accessed:
            print(f"  {m.access_count:>5}  {m.relative_path}")
    return 0


def _cmd_clear(store: MemoryStore, args: argparse.Namespace) -> int:
    if not args.yes:
        print("Refusing to clear without --yes", file=sys.stderr)
        return 1
    store.clear()
    print(f"Cleared {store.root}")
    return 0


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="neko-memory", description="Inspect and manage the memory store."
    )
    parser.add_argument("--root", type=Path, help="Memory root (overrides MEMORY_ROOT)")
    parser.add_argument("--config", type=Path, help="Path to neko.toml")
    sub = parser.add_subparsers(dest="command", required=True)

    def with_name(p: argparse.ArgumentParser) -> argparse.ArgumentParser:
        p.add_argument("name")
        p.add_argument("-c", "--category", default=None)
        return p

    p = with_name(sub.add_parser("store", help="Write a memory (content from --file or stdin)"))
    p.add_argument("--file")
    p.set_defaults(func=_cmd_store)

    with_name(sub.add_parser("get", help="Print a memory")).set_defaults(func=_cmd_get)

    p = with_name(sub.add_parser("append", help="Append to a memory"))
    p.add_argument("--file")
    p.set_defaults(func=_cmd_append)

    with_name(sub.add_parser("rm", help="Delete a memory")).set_defaults(func=_cmd_rm)

    p = sub.add_parser("list", help="List memories in a category")
    p.add_argument("-c", "--category", default=None)
    p.add_argument("--format", choices=["table", "json"], default="table")
    p.set_defaults(func=_cmd_list)

    p = sub.add_parser("stats", help="Show store statistics")
    p.add_argument("--format", choices=["table", "json"], default="table")
    p.set_defaults(func=_cmd_stats)

    p = sub.add_parser("clear", help="Delete every memory")
    p.add_argument("--yes", action="store_true")
    p.set_defaults(func=_cmd_clear)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = _build_parser().parse_args(argv)
    config = load_config(args.config)
    _setup_logging(config.log_level)
    if args.root is not None:
        config.memory_root = args.root
    if config.personality and getattr(args, "category", "") is None:
        args.category = personality_category(config.personality)

    store = MemoryStore.from_config(config)
    try:
        return args.func(store, args)
    except MemoryNotFoundError as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
