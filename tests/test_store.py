"""Unit tests for LocalDocumentStore.

No cargo required -- uses a temporary directory.
"""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from cargo_projects.errors import RegistryParseError
from cargo_projects.models.enums import ProjectType
from cargo_projects.models.project import Project
from cargo_projects.models.watcher import WatcherConfig, WatcherRegistry
from cargo_projects.registry import ProjectRegistry
from cargo_projects.store.base import DocumentStore
from cargo_projects.store.local import LocalDocumentStore


@pytest.fixture
def store(tmp_path: Path) -> LocalDocumentStore[ProjectRegistry]:
    return LocalDocumentStore(tmp_path / "nested" / "registry.json", ProjectRegistry)


def test_satisfies_protocol(store: LocalDocumentStore[ProjectRegistry]) -> None:
    assert isinstance(store, DocumentStore)


def test_missing_file_loads_empty_registry(store: LocalDocumentStore[ProjectRegistry]) -> None:
    assert store.exists() is False

    registry = store.load()
    assert registry.projects == {}
    assert registry.path_index == {}
    assert registry.next_id == 1


def test_save_and_load(store: LocalDocumentStore[ProjectRegistry], tmp_path: Path) -> None:
    registry = ProjectRegistry()
    registry.add_project(
        Project(
            name="demo",
            path=tmp_path / "demo",
            version="1.2.3",
            size_bytes=2048,
            estimated_build_time_seconds=90,
            project_type=ProjectType.WORKSPACE_WITH_PACKAGE,
        )
    )
    store.save(registry)

    assert store.exists() is True
    loaded = store.load()
    assert loaded.next_id == 2
    project = loaded.get_by_id(1)
    assert project is not None
    assert project.name == "demo"
    assert project.version == "1.2.3"
    assert project.size_bytes == 2048
    assert project.estimated_build_time_seconds == 90
    assert project.project_type is ProjectType.WORKSPACE_WITH_PACKAGE


def test_document_is_pretty_json(store: LocalDocumentStore[ProjectRegistry]) -> None:
    store.save(ProjectRegistry())

    text = store.path.read_text(encoding="utf-8")
    assert "\n  " in text
    assert set(json.loads(text)) == {"projects", "path_index", "last_updated", "next_id"}


def test_save_leaves_no_temp_files(store: LocalDocumentStore[ProjectRegistry]) -> None:
    store.save(ProjectRegistry())
    store.save(ProjectRegistry())

    assert [p.name for p in store.path.parent.iterdir()] == ["registry.json"]


def test_corrupt_file_raises(store: LocalDocumentStore[ProjectRegistry]) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_text("{not json", encoding="utf-8")

    with pytest.raises(RegistryParseError, match="Failed to parse registry"):
        store.load()


def test_non_utf8_file_raises_parse_error(store: LocalDocumentStore[ProjectRegistry]) -> None:
    store.path.parent.mkdir(parents=True)
    store.path.write_bytes(b"\xff\xfe{not json")

    with pytest.raises(RegistryParseError, match="Failed to parse registry"):
        store.load()


def test_older_documents_get_defaults(store: LocalDocumentStore[ProjectRegistry]) -> None:
    """Records written before sizes, timing and type existed still load."""
    store.path.parent.mkdir(parents=True)
    store.path.write_text(
        json.dumps({
            "projects": {
                "/src/old": {
                    "id": 3,
                    "name": "old",
                    "path": "/src/old",
                    "version": "0.1.0",
                    "created_at": "2024-01-01T00:00:00Z",
                    "last_modified": "2024-01-01T00:00:00Z",
                    "size_bytes": 10,
                    "dependencies_count": 1,
                }
            },
            "path_index": {"/src/old": "/src/old"},
            "last_updated": "2024-01-01T00:00:00Z",
            "next_id": 4,
        }),
        encoding="utf-8",
    )

    project = store.load().get_by_id(3)
    assert project is not None
    assert project.target_size_bytes == 0
    assert project.estimated_build_time_seconds == 0
    assert project.project_type is ProjectType.PACKAGE


def test_watcher_registry_roundtrip(tmp_path: Path) -> None:
    store = LocalDocumentStore(tmp_path / "watchers.json", WatcherRegistry)
    registry = WatcherRegistry()
    registry.add_watcher(WatcherConfig(name="code", path=tmp_path))
    store.save(registry)

    loaded = store.load()
    assert list(loaded.watchers) == ["code"]
    assert loaded.watchers["code"].path == tmp_path
