"""Configuration loaded from CARGO_PROJECTS_* environment variables."""

from __future__ import annotations

from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

DEFAULT_CONFIG_DIR = Path.home() / ".config" / "cargo-projects"


class ProjectsSettings(BaseSettings):
    """cargo-projects settings.

    All fields are read from environment variables with the
    ``CARGO_PROJECTS_`` prefix.  For example,
    ``CARGO_PROJECTS_REGISTRY_PATH=/tmp/reg.json`` maps to ``registry_path``.

    Core components never read settings themselves: the CLI builds one
    instance and passes the relevant values into managers and the pipeline.
    """

    model_config = SettingsConfigDict(
        env_prefix="CARGO_PROJECTS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # -- Logging ---------------------------------------------------------------
    log_level: str = "WARNING"

    # -- Storage ---------------------------------------------------------------
    config_dir: Path = DEFAULT_CONFIG_DIR
    """Directory holding both registry documents unless they are set explicitly."""

    registry_path: Path | None = None
    """Project registry document.  Defaults to ``{config_dir}/registry.json``."""

    watcher_registry_path: Path | None = None
    """Watcher registry document.  Defaults to ``{config_dir}/watchers.json``."""

    # -- Discovery -------------------------------------------------------------
    max_scan_depth: int = Field(default=10, ge=1)
    thread_count: int | None = Field(default=None, ge=1)
    """Walker threads.  ``None`` sizes the pool from the CPU count."""

    # -- Cargo -----------------------------------------------------------------
    cargo_bin: str = "cargo"
    cargo_timeout: float = 60.0
    """Seconds allowed for ``cargo metadata``."""

    build_timeout: float = 600.0
    """Seconds allowed for ``cargo check --timings`` and ``cargo clean``."""

    run_cargo_check: bool = False
    """Let the build-time estimator run ``cargo check --timings`` when no data exists.

    Off by default: a scan over many projects would otherwise compile each one.
    """

    cache_build_times: bool = True

    # -- Watch -----------------------------------------------------------------
    debounce_ms: int = Field(default=2000, ge=0)

    @model_validator(mode="after")
    def _default_registry_paths(self) -> ProjectsSettings:
        if self.registry_path is None:
            self.registry_path = self.config_dir / "registry.json"
        if self.watcher_registry_path is None:
            self.watcher_registry_path = self.config_dir / "watchers.json"
        return self


@lru_cache(maxsize=1)
def get_settings() -> ProjectsSettings:
    """Return a cached settings instance.

    Reads from environment variables and ``.env`` on first call, then returns
    the same object.  Call ``get_settings.cache_clear()`` in tests to force a
    re-read after overriding env vars.
    """
    return ProjectsSettings()
