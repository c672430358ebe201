"""Command handlers behind the CLI.

Each handler takes an ``AppContext`` (the wired-up managers and discovery
collaborators) and returns a result object or a domain value.  Handlers
raise domain exceptions; the CLI turns them into ``Error: ...`` lines.
"""

from __future__ import annotations

import os
import subprocess
import threading
from dataclasses import dataclass
from pathlib import Path

from loguru import logger

from cargo_projects.discovery.builder import ProjectBuilder
from cargo_projects.discovery.classifier import CargoMetadataResolver
from cargo_projects.discovery.pipeline import DiscoveryPipeline
from cargo_projects.discovery.sizes import directory_size, target_size
from cargo_projects.discovery.timing import BuildTimeEstimator
from cargo_projects.errors import CargoCommandError, WatcherNotFoundError
from cargo_projects.managers.projects import ProjectManager
from cargo_projects.managers.watchers import WatcherManager
from cargo_projects.models.project import Project
from cargo_projects.models.results import (
    ProjectListResult,
    ScanResult,
    UpdateResult,
    WatcherListResult,
)
from cargo_projects.models.watcher import WatcherConfig, WatcherRegistry
from cargo_projects.registry import ProjectRegistry, canonicalize
from cargo_projects.settings import ProjectsSettings
from cargo_projects.store.local import LocalDocumentStore
from cargo_projects.watch import WatchLoop, watch_events

UNNAMED_WATCHER = "unnamed"


@dataclass
class AppContext:
    """Everything a command needs, built once per CLI invocation."""

    # -- Storage ---------------------------------------------------------------
    projects: ProjectManager
    watchers: WatcherManager

    # -- Discovery -------------------------------------------------------------
    builder: ProjectBuilder
    estimator: BuildTimeEstimator
    pipeline: DiscoveryPipeline

    # -- Cargo / watch ---------------------------------------------------------
    cargo_bin: str = "cargo"
    build_timeout: float = 600.0
    debounce_ms: int = 2000

    @classmethod
    def from_settings(cls, settings: ProjectsSettings) -> AppContext:
        projects = ProjectManager(LocalDocumentStore(settings.registry_path, ProjectRegistry))
        watchers = WatcherManager(LocalDocumentStore(settings.watcher_registry_path, WatcherRegistry))
        estimator = BuildTimeEstimator(
            run_cargo_check=settings.run_cargo_check,
            cache=settings.cache_build_times,
            cargo_bin=settings.cargo_bin,
            timeout=settings.build_timeout,
        )
        builder = ProjectBuilder(
            CargoMetadataResolver(settings.cargo_bin, settings.cargo_timeout),
            estimator,
            size_threads=settings.thread_count,
        )
        pipeline = DiscoveryPipeline(
            projects,
            builder,
            max_depth=settings.max_scan_depth,
            threads=settings.thread_count,
        )
        return cls(
            projects=projects,
            watchers=watchers,
            builder=builder,
            estimator=estimator,
            pipeline=pipeline,
            cargo_bin=settings.cargo_bin,
            build_timeout=settings.build_timeout,
            debounce_ms=settings.debounce_ms,
        )


# ---------------------------------------------------------------------------
# Projects
# ---------------------------------------------------------------------------


def list_projects(ctx: AppContext, watcher_name: str | None = None) -> ProjectListResult:
    """All projects by ID, or only those under the named watcher.

    An unknown watcher name yields an empty list rather than an error.
    """
    if watcher_name is None:
        projects = ctx.projects.all_projects()
    else:
        try:
            watcher = ctx.watchers.get_watcher(watcher_name)
        except WatcherNotFoundError:
            logger.info("No watcher named {}", watcher_name)
            projects = []
        else:
            projects = ctx.projects.find_by_watcher(watcher)
    return ProjectListResult(projects=projects, total_count=len(projects))


def scan(ctx: AppContext, path: str | os.PathLike[str] = ".") -> ScanResult:
    return ctx.pipeline.scan(path)


def clean_project(ctx: AppContext, project_id: int) -> Project:
    """Run ``cargo clean`` in the project's directory.

    Raises ``ProjectNotFoundError`` for an unknown ID and
    ``CargoCommandError`` if cargo exits non-zero.  The stored target size
    is refreshed afterwards.
    """
    project = ctx.projects.get_by_id(project_id)
    try:
        proc = subprocess.run(  # noqa: S603
            [ctx.cargo_bin, "clean"],
            cwd=project.path,
            capture_output=True,
            text=True,
            timeout=ctx.build_timeout,
            check=False,
        )
    except subprocess.TimeoutExpired as exc:
        raise CargoCommandError(f"cargo clean timed out after {exc.timeout}s") from exc

    if proc.returncode != 0:
        raise CargoCommandError(proc.stderr)

    logger.info("Cleaned {} ({})", project.name, project.path)
    refreshed = project.model_copy(
        update={
            "size_bytes": directory_size(project.path),
            "target_size_bytes": target_size(project.path),
        }
    )
    return ctx.projects.update_project(refreshed)


def remove_project(ctx: AppContext, project_id: int) -> Project:
    return ctx.projects.remove_project(project_id)


def reset_projects(ctx: AppContext) -> int:
    """Forget every tracked project.  IDs keep counting from where they were."""
    return ctx.projects.remove_all()


def update_projects(ctx: AppContext) -> UpdateResult:
    """Recompute sizes and build time of every project; save only the changed ones.

    A build time the estimator cannot determine (0) keeps the stored value.
    """
    changed: list[Project] = []
    for project in ctx.projects.all_projects():
        refreshed = _remeasure(ctx, project)
        if _metrics(refreshed) != _metrics(project):
            changed.append(refreshed)

    stored = ctx.projects.update_projects(changed)
    return UpdateResult.from_names([p.name for p in stored])


def refresh_timings(ctx: AppContext) -> int:
    """Drop every cached build-time estimate.  Returns how many existed."""
    cleared = 0
    for project in ctx.projects.all_projects():
        if ctx.estimator.clear_cache(project.path):
            cleared += 1
    return cleared


def _remeasure(ctx: AppContext, project: Project) -> Project:
    threads = ctx.builder.size_threads
    build_time = ctx.estimator(project.path) or project.estimated_build_time_seconds
    return project.model_copy(
        update={
            "size_bytes": directory_size(project.path, threads=threads),
            "target_size_bytes": target_size(project.path, threads=threads),
            "estimated_build_time_seconds": build_time,
        }
    )


def _metrics(project: Project) -> tuple[int, int, int]:
    return project.size_bytes, project.target_size_bytes, project.estimated_build_time_seconds


# ---------------------------------------------------------------------------
# Watchers
# ---------------------------------------------------------------------------


def list_watchers(ctx: AppContext) -> WatcherListResult:
    return WatcherListResult(watchers=ctx.watchers.list_watchers())


def clean_watchers(ctx: AppContext) -> int:
    return ctx.watchers.clear()


def remove_watcher(ctx: AppContext, name: str) -> WatcherConfig:
    return ctx.watchers.remove_watcher(name)


def register_watcher(
    ctx: AppContext,
    path: str | os.PathLike[str] = ".",
    name: str | None = None,
) -> WatcherConfig:
    """Persist a watcher for *path*; the name defaults to the directory's name."""
    root = canonicalize(path)
    if not root.is_dir():
        raise NotADirectoryError(f"Watch path is not a directory: {root}")
    watcher = WatcherConfig(name=name or root.name or UNNAMED_WATCHER, path=root)
    return ctx.watchers.add_watcher(watcher)


def watch(ctx: AppContext, watcher: WatcherConfig, *, stop_event: threading.Event | None = None) -> None:
    """Keep the registry in sync with changes under *watcher* until interrupted."""
    logger.info("Watching {} as {}", watcher.path, watcher.name)
    loop = WatchLoop(ctx.projects, ctx.builder, root=watcher.path)
    loop.run(watch_events(Path(watcher.path), debounce_ms=ctx.debounce_ms, stop_event=stop_event))
