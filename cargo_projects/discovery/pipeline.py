"""Discovery pipeline: scan -> partition -> build -> persist.

One ``scan`` call is one registry transaction: the registry is loaded once
to decide what is new, then all successfully built projects are inserted
with a single save.  Re-scanning a tree adds nothing that is already
tracked.
"""

from __future__ import annotations

import os
from pathlib import Path

from loguru import logger

from cargo_projects.discovery.builder import ProjectBuilder
from cargo_projects.discovery.scanner import DEFAULT_MAX_DEPTH, scan_for_manifests
from cargo_projects.managers.projects import ProjectManager
from cargo_projects.models.results import ScanResult
from cargo_projects.registry import canonicalize


class DiscoveryPipeline:
    def __init__(
        self,
        manager: ProjectManager,
        builder: ProjectBuilder,
        *,
        max_depth: int = DEFAULT_MAX_DEPTH,
        threads: int | None = None,
    ) -> None:
        self.manager = manager
        self.builder = builder
        self.max_depth = max_depth
        self.threads = threads

    def scan(self, root: str | os.PathLike[str]) -> ScanResult:
        """Discover and register every new project under *root*.

        Raises ``FileNotFoundError`` if *root* does not exist.
        """
        candidates = scan_for_manifests(root, max_depth=self.max_depth, threads=self.threads)
        logger.info("Found {} candidate directories under {}", len(candidates), root)

        new_paths = self._partition(candidates)
        if not new_paths:
            return ScanResult()

        built = self.builder.build_many(new_paths, max_workers=self.threads)
        if not built:
            return ScanResult()

        stored = self.manager.add_projects(built)
        logger.info("Added {} new projects", len(stored))
        return ScanResult.from_projects(stored)

    def _partition(self, candidates: set[Path]) -> list[Path]:
        registry = self.manager.load()
        new_paths: list[Path] = []
        for candidate in sorted(candidates):
            path = canonicalize(candidate)
            if registry.contains(path):
                logger.info("Already tracked: {}", path)
                continue
            logger.info("New project: {}", path)
            new_paths.append(path)
        return new_paths
