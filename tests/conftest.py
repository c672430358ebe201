"""Shared test fixtures.

Nothing here needs a Rust toolchain: ``cargo metadata`` is replaced by
``TomlResolver``, which reads the manifest with ``tomllib`` and answers the
way cargo does for the simple layouts the tests build.  Registries live
under ``tmp_path``.
"""

from __future__ import annotations

import os
import tomllib
from collections.abc import Callable
from pathlib import Path

import pytest

from cargo_projects.commands import AppContext
from cargo_projects.discovery.builder import ProjectBuilder
from cargo_projects.discovery.classifier import CargoMetadata, CargoPackage
from cargo_projects.discovery.pipeline import DiscoveryPipeline
from cargo_projects.discovery.timing import BuildTimeEstimator
from cargo_projects.errors import MetadataError
from cargo_projects.managers.projects import ProjectManager
from cargo_projects.managers.watchers import WatcherManager
from cargo_projects.models.watcher import WatcherRegistry
from cargo_projects.registry import ProjectRegistry
from cargo_projects.settings import get_settings
from cargo_projects.store.local import LocalDocumentStore

CrateFactory = Callable[..., Path]


class TomlResolver:
    """Offline stand-in for ``cargo metadata --no-deps``."""

    def __init__(self) -> None:
        self.calls: list[Path] = []

    def __call__(self, manifest_path: Path) -> CargoMetadata:
        self.calls.append(manifest_path)
        try:
            data = tomllib.loads(manifest_path.read_text(encoding="utf-8"))
        except (OSError, tomllib.TOMLDecodeError) as exc:
            raise MetadataError(f"cannot read {manifest_path}: {exc}") from exc

        root = manifest_path.parent.resolve()
        packages: list[CargoPackage] = []
        members: list[str] = []

        package = data.get("package")
        if package is not None:
            if "name" not in package:
                raise MetadataError(f"missing package name in {manifest_path}")
            version = package.get("version", "0.0.0")
            own_id = f"path+file://{root}#{package['name']}@{version}"
            deps = [{"name": name} for name in data.get("dependencies", {})]
            packages.append(
                CargoPackage(
                    id=own_id,
                    name=package["name"],
                    version=version,
                    manifest_path=root / "Cargo.toml",
                    dependencies=deps,
                )
            )
            members.append(own_id)

        workspace = data.get("workspace", {})
        for member in workspace.get("members", []):
            members.append(f"path+file://{root / member}#0.1.0")

        if package is None and not workspace:
            raise MetadataError(f"manifest {manifest_path} has neither [package] nor [workspace]")

        return CargoMetadata(
            packages=packages,
            workspace_members=members,
            workspace_root=root,
            workspace_metadata=workspace.get("metadata"),
        )


# ---------------------------------------------------------------------------
# Filesystem helpers
# ---------------------------------------------------------------------------


@pytest.fixture
def make_crate() -> CrateFactory:
    """Write a minimal package (manifest + ``src/main.rs``) and return its dir."""

    def _make(
        parent: Path,
        name: str,
        *,
        version: str = "0.1.0",
        dependencies: tuple[str, ...] = (),
        dirname: str | None = None,
    ) -> Path:
        crate = parent / (dirname or name)
        (crate / "src").mkdir(parents=True, exist_ok=True)
        deps = "".join(f'{dep} = "1"\n' for dep in dependencies)
        (crate / "Cargo.toml").write_text(
            f'[package]\nname = "{name}"\nversion = "{version}"\nedition = "2021"\n\n[dependencies]\n{deps}',
            encoding="utf-8",
        )
        (crate / "src" / "main.rs").write_text('fn main() { println!("hi"); }\n', encoding="utf-8")
        return crate

    return _make


# ---------------------------------------------------------------------------
# Wired components
# ---------------------------------------------------------------------------


@pytest.fixture
def resolver() -> TomlResolver:
    return TomlResolver()


@pytest.fixture
def registry_path(tmp_path: Path) -> Path:
    return tmp_path / "config" / "registry.json"


@pytest.fixture
def project_manager(registry_path: Path) -> ProjectManager:
    return ProjectManager(LocalDocumentStore(registry_path, ProjectRegistry))


@pytest.fixture
def watcher_manager(tmp_path: Path) -> WatcherManager:
    return WatcherManager(LocalDocumentStore(tmp_path / "config" / "watchers.json", WatcherRegistry))


@pytest.fixture
def estimator() -> BuildTimeEstimator:
    return BuildTimeEstimator(run_cargo_check=False)


@pytest.fixture
def builder(resolver: TomlResolver, estimator: BuildTimeEstimator) -> ProjectBuilder:
    return ProjectBuilder(resolver, estimator, size_threads=2)


@pytest.fixture
def pipeline(project_manager: ProjectManager, builder: ProjectBuilder) -> DiscoveryPipeline:
    return DiscoveryPipeline(project_manager, builder, threads=4)


@pytest.fixture
def app(
    project_manager: ProjectManager,
    watcher_manager: WatcherManager,
    builder: ProjectBuilder,
    estimator: BuildTimeEstimator,
    pipeline: DiscoveryPipeline,
    tmp_path: Path,
) -> AppContext:
    return AppContext(
        projects=project_manager,
        watchers=watcher_manager,
        builder=builder,
        estimator=estimator,
        pipeline=pipeline,
        cargo_bin=str(tmp_path / "no-such-cargo"),
        build_timeout=5.0,
        debounce_ms=50,
    )


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch: pytest.MonkeyPatch) -> None:
    """Keep ``CARGO_PROJECTS_*`` from the developer's shell out of tests."""
    for key in list(os.environ):
        if key.startswith("CARGO_PROJECTS_"):
            monkeypatch.delenv(key)
    get_settings.cache_clear()
