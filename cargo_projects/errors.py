"""Domain exceptions for cargo-projects.

Managers and commands raise these; the CLI is the only place that turns
them into an ``Error: ...`` line and a non-zero exit code.  Plain
``OSError`` is propagated untouched for I/O failures.
"""

from __future__ import annotations

from pathlib import Path


class ProjectsError(Exception):
    """Base class for all cargo-projects errors."""


class ProjectNotFoundError(ProjectsError, LookupError):
    """Raised when no tracked project has the requested ID."""

    def __init__(self, project_id: int) -> None:
        self.project_id = project_id
        super().__init__(f"Project not found with ID: {project_id}")


class WatcherNotFoundError(ProjectsError, LookupError):
    """Raised when no watcher is registered under the requested name."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Watcher not found: {name}")


class RegistryParseError(ProjectsError, ValueError):
    """Raised when a persisted registry document cannot be parsed."""

    def __init__(self, path: Path, reason: str) -> None:
        self.path = path
        super().__init__(f"Failed to parse registry at {path}: {reason}")


class MetadataError(ProjectsError):
    """Raised when ``cargo metadata`` cannot resolve a manifest."""


class CargoCommandError(ProjectsError):
    """Raised when a cargo subcommand exits with a non-zero status."""

    def __init__(self, stderr: str) -> None:
        self.stderr = stderr
        super().__init__(f"Cargo command failed: {stderr.strip()}")
