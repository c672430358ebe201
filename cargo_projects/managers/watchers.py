"""Watcher registry operations."""

from __future__ import annotations

from loguru import logger

from cargo_projects.errors import WatcherNotFoundError
from cargo_projects.models.watcher import WatcherConfig, WatcherRegistry
from cargo_projects.store.base import DocumentStore


class WatcherManager:
    def __init__(self, store: DocumentStore[WatcherRegistry]) -> None:
        self._store = store

    def list_watchers(self) -> list[WatcherConfig]:
        """All watchers, oldest first."""
        return sorted(self._store.load().watchers.values(), key=lambda w: w.created_at)

    def get_watcher(self, name: str) -> WatcherConfig:
        """Get a watcher by name.  Raises ``WatcherNotFoundError`` if missing."""
        watcher = self._store.load().watchers.get(name)
        if watcher is None:
            raise WatcherNotFoundError(name)
        return watcher

    def add_watcher(self, watcher: WatcherConfig) -> WatcherConfig:
        """Register (or replace) the watcher with ``watcher.name``."""
        registry = self._store.load()
        registry.add_watcher(watcher)
        self._store.save(registry)
        logger.info("Registered watcher {} for {}", watcher.name, watcher.path)
        return watcher

    def remove_watcher(self, name: str) -> WatcherConfig:
        """Remove a watcher.  Raises ``WatcherNotFoundError`` if missing."""
        registry = self._store.load()
        watcher = registry.remove_watcher(name)
        if watcher is None:
            raise WatcherNotFoundError(name)
        self._store.save(registry)
        return watcher

    def clear(self) -> int:
        registry = self._store.load()
        count = registry.clear()
        self._store.save(registry)
        return count
