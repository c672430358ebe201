"""Data models for cargo-projects."""

from cargo_projects.models.enums import ChangeKind, ProjectType
from cargo_projects.models.events import FileEvent
from cargo_projects.models.project import Project
from cargo_projects.models.results import (
    ProjectListResult,
    ScanResult,
    UpdateResult,
    WatcherListResult,
)
from cargo_projects.models.watcher import WatcherConfig, WatcherRegistry

__all__ = [
    # Enums
    "ChangeKind",
    # Events
    "FileEvent",
    # Project
    "Project",
    # Results
    "ProjectListResult",
    "ProjectType",
    "ScanResult",
    "UpdateResult",
    "WatcherConfig",
    "WatcherListResult",
    # Watcher
    "WatcherRegistry",
]
