"""Project data model.

A project is one directory holding a ``Cargo.toml``.  The registry owns the
canonical copy; everything else works on value copies.
"""

from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from pydantic import BaseModel, Field

from cargo_projects.models.enums import ProjectType

GIB = 1024**3


def utc_now() -> datetime:
    return datetime.now(UTC)


class Project(BaseModel):
    """A tracked Cargo project."""

    id: int = Field(default=0, ge=0, description="Assigned by the registry; 0 until inserted")
    name: str
    path: Path
    version: str
    created_at: datetime = Field(default_factory=utc_now)
    last_modified: datetime = Field(default_factory=utc_now)
    size_bytes: int = 0
    target_size_bytes: int = 0
    dependencies_count: int = 0
    estimated_build_time_seconds: int = Field(default=0, description="0 means unknown")
    project_type: ProjectType = ProjectType.PACKAGE

    @property
    def size_gb(self) -> float:
        return self.size_bytes / GIB

    @property
    def target_size_gb(self) -> float:
        return self.target_size_bytes / GIB
