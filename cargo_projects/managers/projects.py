"""Project registry operations.

Encapsulates all project data access: insert, update, remove, query.  The
registry document is reloaded on every call, so two processes see each
other's writes; there is no lock between them.
"""

from __future__ import annotations

import os
from collections.abc import Iterable

from loguru import logger

from cargo_projects.errors import ProjectNotFoundError
from cargo_projects.models.project import Project
from cargo_projects.models.watcher import WatcherConfig
from cargo_projects.registry import ProjectRegistry, canonicalize
from cargo_projects.store.base import DocumentStore


class ProjectManager:
    def __init__(self, store: DocumentStore[ProjectRegistry]) -> None:
        self._store = store

    def load(self) -> ProjectRegistry:
        """Read a registry snapshot.  Raises ``RegistryParseError`` if corrupt."""
        return self._store.load()

    # -- Query -----------------------------------------------------------------

    def all_projects(self) -> list[Project]:
        """Every tracked project, ordered by ID."""
        return sorted(self.load().all_projects(), key=lambda p: p.id)

    def get_by_id(self, project_id: int) -> Project:
        """Get a project by ID.  Raises ``ProjectNotFoundError`` if missing."""
        project = self.load().get_by_id(project_id)
        if project is None:
            raise ProjectNotFoundError(project_id)
        return project

    def exists(self, path: str | os.PathLike[str]) -> bool:
        return self.load().contains(canonicalize(path))

    def get(self, path: str | os.PathLike[str]) -> Project | None:
        return self.load().get(canonicalize(path))

    def find_containing(self, path: str | os.PathLike[str]) -> Project | None:
        return self.load().find_containing(path)

    def find_by_watcher(self, watcher: WatcherConfig) -> list[Project]:
        """Projects rooted at or below the watcher's directory, ordered by ID."""
        root = canonicalize(watcher.path)
        scoped = watcher.model_copy(update={"path": root})
        return [p for p in self.all_projects() if scoped.contains(p.path)]

    # -- Mutation --------------------------------------------------------------

    def add_project(self, project: Project) -> Project:
        return self.add_projects([project])[0]

    def add_projects(self, projects: Iterable[Project]) -> list[Project]:
        """Insert a batch with one load and one save.  Returns the stored copies."""
        registry = self.load()
        stored = [registry.add_project(project) for project in projects]
        if stored:
            self._store.save(registry)
            logger.debug("ProjectManager: saved {} new projects", len(stored))
        return stored

    def update_project(self, project: Project) -> Project:
        """Replace a tracked project.  Raises ``ProjectNotFoundError`` if untracked."""
        registry = self.load()
        stored = registry.update_project(project)
        self._store.save(registry)
        return stored

    def update_projects(self, projects: Iterable[Project]) -> list[Project]:
        registry = self.load()
        stored = [registry.update_project(project) for project in projects]
        if stored:
            self._store.save(registry)
        return stored

    def remove_project(self, project_id: int) -> Project:
        """Remove one project.  Raises ``ProjectNotFoundError`` if missing."""
        registry = self.load()
        removed = registry.remove_project(project_id)
        self._store.save(registry)
        logger.info("Removed project {} ({})", removed.name, removed.path)
        return removed

    def remove_all(self) -> int:
        registry = self.load()
        count = registry.clear()
        self._store.save(registry)
        return count
