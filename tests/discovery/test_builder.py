from __future__ import annotations

from pathlib import Path

import pytest

from cargo_projects.discovery.builder import UNKNOWN_VERSION, WORKSPACE_VERSION, ProjectBuilder
from cargo_projects.discovery.classifier import CargoMetadata
from cargo_projects.errors import MetadataError
from cargo_projects.models.enums import ProjectType


def test_package_project(tmp_path: Path, make_crate, builder: ProjectBuilder) -> None:
    crate = make_crate(tmp_path, "demo", version="1.4.0", dependencies=("serde", "anyhow"))

    project = builder.build(crate.resolve())

    assert project.id == 0
    assert project.name == "demo"
    assert project.version == "1.4.0"
    assert project.dependencies_count == 2
    assert project.project_type is ProjectType.PACKAGE
    assert project.size_bytes > 0
    assert project.target_size_bytes == 0
    assert project.estimated_build_time_seconds == 0


def test_pure_workspace_uses_directory_name(tmp_path: Path, builder: ProjectBuilder) -> None:
    root = tmp_path / "mono"
    root.mkdir()
    (root / "Cargo.toml").write_text('[workspace]\nmembers = ["a"]\n', encoding="utf-8")

    project = builder.build(root.resolve())

    assert project.project_type is ProjectType.PURE_WORKSPACE
    assert project.name == "mono"
    assert project.version == WORKSPACE_VERSION
    assert project.dependencies_count == 0


def test_pure_workspace_prefers_metadata_name(tmp_path: Path, builder: ProjectBuilder) -> None:
    root = tmp_path / "mono"
    root.mkdir()
    (root / "Cargo.toml").write_text(
        '[workspace]\nmembers = ["a"]\n\n[workspace.metadata.package]\nname = "platform"\n',
        encoding="utf-8",
    )

    assert builder.build(root.resolve()).name == "platform"


def test_workspace_with_package(tmp_path: Path, builder: ProjectBuilder) -> None:
    root = tmp_path / "app"
    root.mkdir()
    (root / "Cargo.toml").write_text(
        '[package]\nname = "app"\nversion = "2.0.0"\n\n[workspace]\nmembers = ["plugins/x"]\n',
        encoding="utf-8",
    )

    project = builder.build(root.resolve())

    assert project.project_type is ProjectType.WORKSPACE_WITH_PACKAGE
    assert project.name == "app"
    assert project.version == "2.0.0"


def test_malformed_project_still_has_sizes(tmp_path: Path, builder: ProjectBuilder) -> None:
    root = tmp_path / "broken"
    (root / "target" / "debug").mkdir(parents=True)
    (root / "Cargo.toml").write_text("[package\nname = ", encoding="utf-8")
    (root / "target" / "debug" / "app").write_bytes(b"\0" * 512)

    project = builder.build(root.resolve())

    assert project.project_type is ProjectType.MALFORMED
    assert project.name == "broken"
    assert project.version == UNKNOWN_VERSION
    assert project.estimated_build_time_seconds == 0
    assert project.target_size_bytes == 512
    assert project.size_bytes >= 512


def test_malformed_without_manifest_uses_current_time(tmp_path: Path, resolver) -> None:
    root = tmp_path / "gone"
    root.mkdir()

    project = ProjectBuilder(resolver).build(root)

    assert project.project_type is ProjectType.MALFORMED
    assert project.last_modified is not None


def test_build_time_comes_from_estimator(tmp_path: Path, make_crate, resolver) -> None:
    crate = make_crate(tmp_path, "timed")
    builder = ProjectBuilder(resolver, lambda _path: 75)

    assert builder.build(crate.resolve()).estimated_build_time_seconds == 75


# ---------------------------------------------------------------------------
# Batch
# ---------------------------------------------------------------------------


def test_build_many_returns_successes(tmp_path: Path, make_crate, builder: ProjectBuilder) -> None:
    paths = [make_crate(tmp_path, f"crate-{i}").resolve() for i in range(6)]

    projects = builder.build_many(paths, max_workers=3)

    assert sorted(p.name for p in projects) == [f"crate-{i}" for i in range(6)]


def test_build_many_skips_failures(tmp_path: Path, make_crate) -> None:
    good = make_crate(tmp_path, "good").resolve()
    bad = make_crate(tmp_path, "bad").resolve()

    class FlakyResolver:
        def __call__(self, manifest_path: Path) -> CargoMetadata:
            if manifest_path.parent == bad:
                raise RuntimeError("resolver exploded")
            raise MetadataError("unresolvable")

    projects = ProjectBuilder(FlakyResolver()).build_many([good, bad])

    assert [p.path for p in projects] == [good]
    assert projects[0].project_type is ProjectType.MALFORMED


def test_build_many_empty(builder: ProjectBuilder) -> None:
    assert builder.build_many([]) == []


@pytest.mark.slow
def test_build_many_large_batch(tmp_path: Path, make_crate, builder: ProjectBuilder) -> None:
    paths = [make_crate(tmp_path, f"c{i:03d}").resolve() for i in range(60)]

    projects = builder.build_many(paths, max_workers=8)

    assert len({p.path for p in projects}) == 60
