"""Watcher data model.

A watcher is a named directory whose projects can be listed together.  The
watcher registry is persisted separately from the project registry and is
never consulted by the discovery pipeline.
"""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from pydantic import BaseModel, Field

from cargo_projects.models.project import utc_now


class WatcherConfig(BaseModel):
    name: str
    path: Path
    created_at: datetime = Field(default_factory=utc_now)

    def contains(self, path: Path) -> bool:
        """Whether *path* lies at or below this watcher's directory."""
        return path == self.path or self.path in path.parents


class WatcherRegistry(BaseModel):
    """Persisted document: watcher name -> config."""

    watchers: dict[str, WatcherConfig] = Field(default_factory=dict)
    last_updated: datetime = Field(default_factory=utc_now)

    def add_watcher(self, watcher: WatcherConfig) -> None:
        self.watchers[watcher.name] = watcher
        self.last_updated = utc_now()

    def remove_watcher(self, name: str) -> WatcherConfig | None:
        watcher = self.watchers.pop(name, None)
        if watcher is not None:
            self.last_updated = utc_now()
        return watcher

    def clear(self) -> int:
        count = len(self.watchers)
        self.watchers.clear()
        self.last_updated = utc_now()
        return count
