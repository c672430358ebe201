"""Parallel directory walker.

A fixed pool of worker threads pulls directories from a shared work queue,
lists them with ``os.scandir`` and pushes subdirectories back onto the
queue.  Every surviving entry is handed to a caller-supplied visitor on the
worker thread that found it, so visitors must be thread-safe (push into a
``queue.Queue``, or guard shared state with a lock).

Errors on individual entries (permission denied, vanished files, broken
symlinks) are skipped; they never abort the walk.  Symlinks are reported
but never followed.
"""

from __future__ import annotations

import os
import queue
import threading
from collections.abc import Callable
from dataclasses import dataclass
from pathlib import Path

import pathspec
from loguru import logger

GITIGNORE = ".gitignore"

# Visitor: (entry, depth below root) -> None
Visitor = Callable[[os.DirEntry, int], None]


def default_thread_count() -> int:
    """Twice the available CPUs, or 8 when that cannot be determined."""
    cpus = os.cpu_count()
    return cpus * 2 if cpus else 8


@dataclass(frozen=True, slots=True)
class _IgnoreRules:
    """``.gitignore`` patterns scoped to the directory that declared them."""

    base: str
    spec: pathspec.PathSpec

    def verdict(self, path: str, *, is_dir: bool) -> bool | None:
        """``True`` ignored, ``False`` re-included by ``!pattern``, ``None`` no match."""
        rel = Path(os.path.relpath(path, self.base)).as_posix()
        if is_dir:
            rel += "/"
        return self.spec.check_file(rel).include


def _is_ignored(rules: tuple[_IgnoreRules, ...], path: str, *, is_dir: bool) -> bool:
    """Apply rules outermost first; the last matching pattern wins, as in git."""
    ignored = False
    for rule in rules:
        verdict = rule.verdict(path, is_dir=is_dir)
        if verdict is not None:
            ignored = verdict
    return ignored


@dataclass(frozen=True, slots=True)
class _DirTask:
    path: str
    depth: int
    rules: tuple[_IgnoreRules, ...] = ()


class ParallelWalker:
    """Walk ``root`` with a pool of threads.

    Args:
        root: Directory to walk.  It is always entered; filters apply below it.
        max_depth: Deepest entry depth to report (root = 0).  ``None`` = unlimited.
        threads: Worker count.  ``None`` uses ``default_thread_count()``.
        skip_dir: Predicate on a directory name; ``True`` prunes that subtree.
        use_gitignore: Honour ``.gitignore`` files found along the way.
    """

    def __init__(
        self,
        root: str | os.PathLike[str],
        *,
        max_depth: int | None = None,
        threads: int | None = None,
        skip_dir: Callable[[str], bool] | None = None,
        use_gitignore: bool = False,
    ) -> None:
        self.root = os.fspath(root)
        self.max_depth = max_depth
        self.threads = threads or default_thread_count()
        self.skip_dir = skip_dir
        self.use_gitignore = use_gitignore

    def run(self, visit: Visitor) -> None:
        """Walk the tree, calling *visit* for each entry; block until done."""
        work: queue.Queue[_DirTask | None] = queue.Queue()
        work.put(_DirTask(self.root, 0))

        workers = [
            threading.Thread(target=self._worker, args=(work, visit), name=f"walker-{i}", daemon=True)
            for i in range(self.threads)
        ]
        for worker in workers:
            worker.start()

        work.join()
        for _ in workers:
            work.put(None)
        for worker in workers:
            worker.join()

    # -- Worker ----------------------------------------------------------------

    def _worker(self, work: queue.Queue[_DirTask | None], visit: Visitor) -> None:
        while True:
            task = work.get()
            if task is None:
                work.task_done()
                return
            try:
                self._process(task, work, visit)
            except Exception:
                logger.exception("Walker: unexpected error in {}", task.path)
            finally:
                work.task_done()

    def _process(self, task: _DirTask, work: queue.Queue[_DirTask | None], visit: Visitor) -> None:
        if self.max_depth is not None and task.depth >= self.max_depth:
            return

        rules = task.rules
        if self.use_gitignore:
            local = _load_gitignore(task.path)
            if local is not None:
                rules = (*rules, local)

        depth = task.depth + 1
        try:
            with os.scandir(task.path) as entries:
                for entry in entries:
                    try:
                        is_dir = entry.is_dir(follow_symlinks=False)
                    except OSError:
                        continue
                    if is_dir and self.skip_dir is not None and self.skip_dir(entry.name):
                        continue
                    if rules and _is_ignored(rules, entry.path, is_dir=is_dir):
                        continue

                    visit(entry, depth)
                    if is_dir:
                        work.put(_DirTask(entry.path, depth, rules))
        except OSError as exc:
            logger.trace("Walker: skipped {}: {}", task.path, exc)


def _load_gitignore(directory: str) -> _IgnoreRules | None:
    path = os.path.join(directory, GITIGNORE)
    try:
        with open(path, encoding="utf-8", errors="replace") as f:
            lines = f.read().splitlines()
    except OSError:
        return None
    spec = pathspec.PathSpec.from_lines("gitwildmatch", lines)
    return _IgnoreRules(directory, spec) if spec.patterns else None
