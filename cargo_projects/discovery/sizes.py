"""Byte-size estimation for project trees.

Every regular file counts: no depth limit, no ignore rules, hidden files
included.  Unreadable entries are skipped.
"""

from __future__ import annotations

import os
import threading
from pathlib import Path

from cargo_projects.discovery.walker import ParallelWalker

TARGET_DIR = "target"


class _SizeAccumulator:
    """Thread-safe running total fed by walker threads."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._total = 0

    def add(self, amount: int) -> None:
        with self._lock:
            self._total += amount

    @property
    def total(self) -> int:
        with self._lock:
            return self._total


def directory_size(path: str | os.PathLike[str], *, threads: int | None = None) -> int:
    """Total size in bytes of every file under *path* (0 if it is missing)."""
    root = Path(path)
    if not root.is_dir():
        return 0

    total = _SizeAccumulator()

    def visit(entry: os.DirEntry, _depth: int) -> None:
        try:
            if entry.is_file(follow_symlinks=False):
                total.add(entry.stat(follow_symlinks=False).st_size)
        except OSError:
            return

    ParallelWalker(root, threads=threads).run(visit)
    return total.total


def target_size(project_path: str | os.PathLike[str], *, threads: int | None = None) -> int:
    """Size in bytes of the project's ``target/`` build output (0 if absent)."""
    return directory_size(Path(project_path) / TARGET_DIR, threads=threads)
