"""Watch loop: keep the registry in step with filesystem changes.

The event source and the handler are separate.  ``watch_events`` adapts
``watchfiles`` change sets into batches of ``FileEvent``; ``WatchLoop``
consumes any iterable of such batches, so tests can drive it with plain
lists.  Within a batch, new manifests are handled first, in order; every
project touched by the remaining events then has its sizes refreshed once.
"""

from __future__ import annotations

import os
import threading
from collections.abc import Iterable, Iterator
from pathlib import Path

from loguru import logger
from watchfiles import Change, watch

from cargo_projects.discovery.builder import ProjectBuilder
from cargo_projects.discovery.scanner import MANIFEST_NAME, SKIPPED_DIRS
from cargo_projects.discovery.sizes import directory_size, target_size
from cargo_projects.managers.projects import ProjectManager
from cargo_projects.models.enums import ChangeKind
from cargo_projects.models.events import FileEvent
from cargo_projects.models.project import Project, utc_now
from cargo_projects.registry import canonicalize

_CHANGE_KINDS = {
    Change.added: ChangeKind.CREATE,
    Change.modified: ChangeKind.MODIFY,
    Change.deleted: ChangeKind.REMOVE,
}


def watch_events(
    path: str | os.PathLike[str],
    *,
    debounce_ms: int = 2000,
    stop_event: threading.Event | None = None,
) -> Iterator[list[FileEvent]]:
    """Yield debounced batches of changes under *path* until interrupted.

    Backend errors are reported by ``watchfiles`` on its own logger, which
    ``setup_logging`` routes through loguru.
    """
    for changes in watch(
        path,
        debounce=debounce_ms,
        stop_event=stop_event,
        recursive=True,
        raise_interrupt=False,
    ):
        yield [FileEvent(path=changed, kind=_CHANGE_KINDS[change]) for change, changed in sorted(changes)]


class WatchLoop:
    """Apply file events to the registry.

    ``root`` is the watched directory.  Manifests created below it inside a
    directory the scanner prunes (``target``, ``node_modules``, ...) are
    treated as ordinary changes of their owning project.
    """

    def __init__(
        self,
        manager: ProjectManager,
        builder: ProjectBuilder,
        *,
        root: str | os.PathLike[str] | None = None,
    ) -> None:
        self.manager = manager
        self.builder = builder
        self.root = canonicalize(root) if root is not None else None

    def run(self, batches: Iterable[Iterable[FileEvent]]) -> None:
        for batch in batches:
            self.handle_batch(batch)

    def handle_batch(self, batch: Iterable[FileEvent]) -> list[Project]:
        """Apply one debounced batch; a failing event is logged and skipped.

        Returns the projects whose sizes were refreshed.
        """
        pending: list[FileEvent] = []
        for event in batch:
            try:
                if self._is_new_manifest(event):
                    self._manifest_created(canonicalize(event.path.parent))
                else:
                    pending.append(event)
            except Exception as exc:
                logger.error("Watch: failed to handle {} {}: {}", event.kind, event.path, exc)

        if not pending:
            return []

        try:
            registry = self.manager.load()
        except Exception as exc:
            logger.error("Watch: failed to load the registry: {}", exc)
            return []

        touched: dict[Path, Project] = {}
        for event in pending:
            owner = registry.find_containing(event.path)
            if owner is None:
                logger.debug("Watch: no project owns {}", event.path)
                continue
            touched.setdefault(owner.path, owner)

        refreshed = []
        for project in touched.values():
            try:
                refreshed.append(self._refresh_sizes(project))
            except Exception as exc:
                logger.error("Watch: failed to refresh {}: {}", project.path, exc)
        return refreshed

    def handle(self, event: FileEvent) -> Project | None:
        """Apply one event.  Returns the stored project it touched, if any."""
        if self._is_new_manifest(event):
            return self._manifest_created(canonicalize(event.path.parent))

        owner = self.manager.find_containing(event.path)
        if owner is None:
            logger.debug("Watch: no project owns {}", event.path)
            return None
        return self._refresh_sizes(owner)

    def _is_new_manifest(self, event: FileEvent) -> bool:
        if event.kind is not ChangeKind.CREATE or event.path.name != MANIFEST_NAME:
            return False
        root = canonicalize(event.path.parent)
        if self._in_pruned_dir(root):
            logger.debug("Watch: ignoring manifest in build output {}", root)
            return False
        return True

    def _in_pruned_dir(self, root: Path) -> bool:
        """Whether a scan from the watched directory (or the owning project) would skip *root*."""
        base = self.root
        if base is None or not root.is_relative_to(base):
            owner = self.manager.find_containing(root)
            base = owner.path if owner is not None else None
        if base is None or not root.is_relative_to(base):
            return False
        return any(part in SKIPPED_DIRS for part in root.relative_to(base).parts)

    def _manifest_created(self, root: Path) -> Project:
        project = self.builder.build(root)
        if self.manager.exists(root):
            logger.info("Watch: manifest recreated, refreshing {}", root)
            return self.manager.update_project(project)

        stored = self.manager.add_project(project)
        logger.info("Watch: new project {} ({})", stored.name, stored.path)
        return stored

    def _refresh_sizes(self, project: Project) -> Project:
        threads = self.builder.size_threads
        updated = project.model_copy(
            update={
                "size_bytes": directory_size(project.path, threads=threads),
                "target_size_bytes": target_size(project.path, threads=threads),
                "last_modified": utc_now(),
            }
        )
        logger.debug("Watch: refreshed sizes of {}", project.path)
        return self.manager.update_project(updated)
