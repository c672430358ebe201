"""Project registry with a derived path index.

The registry is the persisted source of truth across process invocations.
It maps each project's canonical root path to its record and keeps a
secondary **path index** from every descendant path of a tracked project to
that project's root, so the watch loop can answer "which project owns this
changed path" without walking the disk.

The path index is a snapshot: it is rebuilt for one project whenever that
project is inserted or updated, and goes stale in between.  Lookups fall
back to the nearest indexed ancestor, so files created after the last
snapshot still resolve to their owner.

All methods are synchronous and not thread-safe; callers mutate a registry
from a single thread (see ``managers.projects``).
"""

from __future__ import annotations

import os
from datetime import datetime
from pathlib import Path

from loguru import logger
from pydantic import BaseModel, Field

from cargo_projects.errors import ProjectNotFoundError
from cargo_projects.models.project import Project, utc_now


def canonicalize(path: str | os.PathLike[str]) -> Path:
    """Resolve symlinks and relative segments; tolerate missing paths."""
    return Path(path).expanduser().resolve(strict=False)


class ProjectRegistry(BaseModel):
    """Keyed collection of projects plus the descendant-path index."""

    projects: dict[str, Project] = Field(default_factory=dict)
    path_index: dict[str, str] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=utc_now)
    next_id: int = Field(default=1, ge=1)

    # -- Mutation --------------------------------------------------------------

    def add_project(self, project: Project) -> Project:
        """Insert *project* under a freshly assigned ID.

        This is the only place IDs are handed out.  An existing record at the
        same path is replaced.  Returns the stored copy.
        """
        stored = project.model_copy(update={"id": self.next_id})
        self.next_id += 1

        key = str(stored.path)
        self.projects[key] = stored
        self._reindex(key)
        self.last_updated = utc_now()
        logger.debug("Registry: added project {} as id={}", key, stored.id)
        return stored.model_copy()

    def update_project(self, project: Project) -> Project:
        """Replace the record at ``project.path``, keeping its ID and creation time.

        Refreshes that project's path-index subtree.  Raises
        ``ProjectNotFoundError`` if the path is not tracked.
        """
        key = str(project.path)
        existing = self.projects.get(key)
        if existing is None:
            raise ProjectNotFoundError(project.id)

        stored = project.model_copy(update={"id": existing.id, "created_at": existing.created_at})
        self.projects[key] = stored
        self._reindex(key)
        self.last_updated = utc_now()
        return stored.model_copy()

    def remove_project(self, project_id: int) -> Project:
        """Drop a project and its index entries.  Raises ``ProjectNotFoundError``."""
        key = next((k for k, p in self.projects.items() if p.id == project_id), None)
        if key is None:
            raise ProjectNotFoundError(project_id)

        project = self.projects.pop(key)
        self._drop_index(key)
        self.last_updated = utc_now()
        return project

    def clear(self) -> int:
        """Remove every project.  ``next_id`` is kept so IDs are never reused."""
        count = len(self.projects)
        self.projects.clear()
        self.path_index.clear()
        self.last_updated = utc_now()
        return count

    # -- Query -----------------------------------------------------------------

    def contains(self, path: Path) -> bool:
        """Exact canonical-path membership."""
        return str(path) in self.projects

    def get(self, path: Path) -> Project | None:
        project = self.projects.get(str(path))
        return project.model_copy() if project else None

    def get_by_id(self, project_id: int) -> Project | None:
        for project in self.projects.values():
            if project.id == project_id:
                return project.model_copy()
        return None

    def all_projects(self) -> list[Project]:
        return [p.model_copy() for p in self.projects.values()]

    def find_containing(self, path: str | os.PathLike[str]) -> Project | None:
        """Return the project whose subtree contains *path*, if any.

        Tries the exact path first, then walks up its ancestors until one is
        found in the path index.
        """
        candidate = canonicalize(path)
        for current in (candidate, *candidate.parents):
            root = self.path_index.get(str(current))
            if root is not None:
                project = self.projects.get(root)
                return project.model_copy() if project else None
        return None

    # -- Path index ------------------------------------------------------------

    def _drop_index(self, root: str) -> None:
        self.path_index = {path: owner for path, owner in self.path_index.items() if owner != root}

    def _reindex(self, root: str) -> None:
        """Rebuild the index subtree for *root*.

        Subdirectories that are themselves tracked project roots keep their
        own entries: the innermost project owns a path.
        """
        self._drop_index(root)
        self.path_index[root] = root

        stack = [root]
        while stack:
            directory = stack.pop()
            try:
                with os.scandir(directory) as entries:
                    for entry in entries:
                        if entry.path in self.projects and entry.path != root:
                            continue
                        self.path_index[entry.path] = root
                        try:
                            if entry.is_dir(follow_symlinks=False):
                                stack.append(entry.path)
                        except OSError:
                            continue
            except OSError as exc:
                logger.debug("Registry: skipped {} while indexing {}: {}", directory, root, exc)
