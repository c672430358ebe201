"""Concurrent scanner for Cargo project roots.

Walks a directory tree in parallel and reports every directory that
directly contains a ``Cargo.toml``.  Walker threads are the producers: each
one pushes candidate directories into a shared channel, and a single
collector thread drains it into a deduplicated set.

The scanner only finds candidates.  It does not classify them and never
touches the registry.
"""

from __future__ import annotations

import os
import queue
import threading
from pathlib import Path

from loguru import logger

from cargo_projects.discovery.walker import ParallelWalker

MANIFEST_NAME = "Cargo.toml"
DEFAULT_MAX_DEPTH = 10

# Pruned regardless of ignore files: dependency caches, build output,
# VCS metadata, editor state.
SKIPPED_DIRS = frozenset({
    "node_modules",
    ".git",
    ".svn",
    "__pycache__",
    ".vscode",
    ".idea",
    ".venv",
    "build",
    "dist",
    "out",
    "target",
})

_DONE = object()


def _skip_dir(name: str) -> bool:
    return name in SKIPPED_DIRS


def scan_for_manifests(
    root: str | os.PathLike[str],
    *,
    max_depth: int = DEFAULT_MAX_DEPTH,
    threads: int | None = None,
) -> set[Path]:
    """Return the directories under *root* that hold a ``Cargo.toml``.

    ``.gitignore`` rules are honoured; dotfiles are not excluded.  Raises
    ``FileNotFoundError`` / ``NotADirectoryError`` if *root* is unusable.
    """
    root_path = Path(root)
    if not root_path.exists():
        raise FileNotFoundError(f"Scan root does not exist: {root_path}")
    if not root_path.is_dir():
        raise NotADirectoryError(f"Scan root is not a directory: {root_path}")

    channel: queue.Queue[object] = queue.Queue()
    found: set[Path] = set()

    def collect() -> None:
        while (item := channel.get()) is not _DONE:
            found.add(item)  # type: ignore[arg-type]

    def visit(entry: os.DirEntry, _depth: int) -> None:
        if entry.name != MANIFEST_NAME:
            return
        try:
            is_file = entry.is_file(follow_symlinks=False)
        except OSError:
            return
        if is_file:
            channel.put(Path(entry.path).parent)

    collector = threading.Thread(target=collect, name="scan-collector", daemon=True)
    collector.start()

    walker = ParallelWalker(
        root_path,
        max_depth=max_depth,
        threads=threads,
        skip_dir=_skip_dir,
        use_gitignore=True,
    )
    try:
        walker.run(visit)
    finally:
        channel.put(_DONE)
        collector.join()

    logger.debug("Scanner: {} manifest directories under {}", len(found), root_path)
    return found
