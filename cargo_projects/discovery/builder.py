"""Project builder: candidate directory -> fully populated ``Project``.

Builds for different directories share no mutable state, so a batch is a
plain fan-out over a thread pool.  Each unit of work yields either a project
or nothing; a failing directory is logged and dropped, never substituted
with a partial record, and never aborts the rest of the batch.
"""

from __future__ import annotations

import threading
from collections.abc import Callable, Iterable
from concurrent.futures import ThreadPoolExecutor, as_completed
from datetime import UTC, datetime
from pathlib import Path

from loguru import logger

from cargo_projects.discovery.classifier import (
    CargoMetadata,
    MetadataResolver,
    classify_manifest,
    recover_name,
)
from cargo_projects.discovery.scanner import MANIFEST_NAME
from cargo_projects.discovery.sizes import directory_size, target_size
from cargo_projects.models.enums import ProjectType
from cargo_projects.models.project import Project, utc_now

UNKNOWN_WORKSPACE = "unknown-workspace"
WORKSPACE_VERSION = "workspace"
UNKNOWN_VERSION = "unknown"

# Build-time estimator: project dir -> seconds (0 = unknown)
BuildTimeEstimate = Callable[[Path], int]


def _no_estimate(_path: Path) -> int:
    return 0


class _Progress:
    """Shared ``[n/total]`` counter used only for log lines."""

    def __init__(self, total: int) -> None:
        self.total = total
        self._count = 0
        self._lock = threading.Lock()

    def tick(self) -> int:
        with self._lock:
            self._count += 1
            return self._count


class ProjectBuilder:
    """Turns discovered directories into ``Project`` records (``id=0``)."""

    def __init__(
        self,
        resolver: MetadataResolver,
        estimator: BuildTimeEstimate | None = None,
        *,
        size_threads: int | None = None,
    ) -> None:
        self.resolver = resolver
        self.estimator = estimator or _no_estimate
        self.size_threads = size_threads

    # -- Single project --------------------------------------------------------

    def build(self, path: Path) -> Project:
        """Build one project.  Raises ``OSError`` if its manifest cannot be stat'ed."""
        manifest_path = path / MANIFEST_NAME
        project_type, metadata = classify_manifest(manifest_path, self.resolver)

        match project_type:
            case ProjectType.PACKAGE | ProjectType.WORKSPACE_WITH_PACKAGE:
                return self._package_project(path, project_type, metadata)
            case ProjectType.PURE_WORKSPACE:
                return self._workspace_project(path, metadata)
            case _:
                return self.malformed_project(path, metadata)

    def malformed_project(self, path: Path, metadata: CargoMetadata | None = None) -> Project:
        """Placeholder identity with real size data."""
        return Project(
            name=recover_name(path, metadata),
            path=path,
            version=UNKNOWN_VERSION,
            last_modified=_manifest_mtime(path, fallback=True),
            size_bytes=directory_size(path, threads=self.size_threads),
            target_size_bytes=target_size(path, threads=self.size_threads),
            dependencies_count=0,
            estimated_build_time_seconds=0,
            project_type=ProjectType.MALFORMED,
        )

    def _package_project(
        self,
        path: Path,
        project_type: ProjectType,
        metadata: CargoMetadata | None,
    ) -> Project:
        package = metadata.root_package(path / MANIFEST_NAME) if metadata else None
        if package is None:
            return self.malformed_project(path, metadata)

        return Project(
            name=package.name,
            path=path,
            version=package.version,
            last_modified=_manifest_mtime(path),
            size_bytes=directory_size(path, threads=self.size_threads),
            target_size_bytes=target_size(path, threads=self.size_threads),
            dependencies_count=len(package.dependencies),
            estimated_build_time_seconds=self.estimator(path),
            project_type=project_type,
        )

    def _workspace_project(self, path: Path, metadata: CargoMetadata | None) -> Project:
        name = (metadata.workspace_name() if metadata else None) or path.name or UNKNOWN_WORKSPACE
        return Project(
            name=name,
            path=path,
            version=WORKSPACE_VERSION,
            last_modified=_manifest_mtime(path),
            size_bytes=directory_size(path, threads=self.size_threads),
            target_size_bytes=target_size(path, threads=self.size_threads),
            dependencies_count=0,
            estimated_build_time_seconds=self.estimator(path),
            project_type=ProjectType.PURE_WORKSPACE,
        )

    # -- Batch -----------------------------------------------------------------

    def build_many(self, paths: Iterable[Path], *, max_workers: int | None = None) -> list[Project]:
        """Build every path concurrently; return only the successes.

        Result order follows completion order and is not deterministic.
        """
        paths = list(paths)
        if not paths:
            return []

        progress = _Progress(len(paths))
        built: list[Project] = []
        with ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix="builder") as pool:
            futures = [pool.submit(self._build_or_skip, path, progress) for path in paths]
            for future in as_completed(futures):
                project = future.result()
                if project is not None:
                    built.append(project)
        return built

    def _build_or_skip(self, path: Path, progress: _Progress) -> Project | None:
        count = progress.tick()
        try:
            project = self.build(path)
        except Exception as exc:
            logger.warning("[{}/{}] Failed: {} - {}", count, progress.total, path, exc)
            return None
        logger.info("[{}/{}] Processed: {} ({})", count, progress.total, project.name, path)
        return project


def _manifest_mtime(path: Path, *, fallback: bool = False) -> datetime:
    """Modification time of the project's manifest.

    With ``fallback`` a missing manifest yields the current time instead of
    raising ``OSError``.
    """
    try:
        mtime = (path / MANIFEST_NAME).stat().st_mtime
    except OSError:
        if fallback:
            return utc_now()
        raise
    return datetime.fromtimestamp(mtime, tz=UTC)
