from __future__ import annotations

from pathlib import Path

import pytest

from cargo_projects.settings import DEFAULT_CONFIG_DIR, ProjectsSettings, get_settings


def test_defaults() -> None:
    settings = ProjectsSettings(_env_file=None)

    assert settings.config_dir == DEFAULT_CONFIG_DIR
    assert settings.registry_path == DEFAULT_CONFIG_DIR / "registry.json"
    assert settings.watcher_registry_path == DEFAULT_CONFIG_DIR / "watchers.json"
    assert settings.max_scan_depth == 10
    assert settings.thread_count is None
    assert settings.run_cargo_check is False
    assert settings.debounce_ms == 2000


def test_config_dir_moves_both_documents(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CARGO_PROJECTS_CONFIG_DIR", str(tmp_path))

    settings = ProjectsSettings(_env_file=None)

    assert settings.registry_path == tmp_path / "registry.json"
    assert settings.watcher_registry_path == tmp_path / "watchers.json"


def test_explicit_registry_path_wins(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CARGO_PROJECTS_CONFIG_DIR", str(tmp_path / "cfg"))
    monkeypatch.setenv("CARGO_PROJECTS_REGISTRY_PATH", str(tmp_path / "elsewhere.json"))

    settings = ProjectsSettings(_env_file=None)

    assert settings.registry_path == tmp_path / "elsewhere.json"
    assert settings.watcher_registry_path == tmp_path / "cfg" / "watchers.json"


def test_env_overrides(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARGO_PROJECTS_MAX_SCAN_DEPTH", "3")
    monkeypatch.setenv("CARGO_PROJECTS_THREAD_COUNT", "2")
    monkeypatch.setenv("CARGO_PROJECTS_RUN_CARGO_CHECK", "true")

    settings = ProjectsSettings(_env_file=None)

    assert settings.max_scan_depth == 3
    assert settings.thread_count == 2
    assert settings.run_cargo_check is True


def test_invalid_depth_rejected(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("CARGO_PROJECTS_MAX_SCAN_DEPTH", "0")

    with pytest.raises(ValueError):
        ProjectsSettings(_env_file=None)


def test_get_settings_is_cached(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("CARGO_PROJECTS_CONFIG_DIR", str(tmp_path))

    assert get_settings() is get_settings()
    assert get_settings().config_dir == tmp_path
