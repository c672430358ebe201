"""Command result objects handed to the output layer."""

from __future__ import annotations

from pydantic import BaseModel, Field

from cargo_projects.models.project import Project
from cargo_projects.models.watcher import WatcherConfig


class ScanResult(BaseModel):
    found_projects: list[Project] = Field(default_factory=list)
    added_count: int = 0

    @classmethod
    def from_projects(cls, projects: list[Project]) -> ScanResult:
        return cls(found_projects=projects, added_count=len(projects))


class ProjectListResult(BaseModel):
    projects: list[Project] = Field(default_factory=list)
    total_count: int = 0


class UpdateResult(BaseModel):
    updated_projects: list[str] = Field(default_factory=list)
    total_updated: int = 0

    @classmethod
    def from_names(cls, names: list[str]) -> UpdateResult:
        return cls(updated_projects=names, total_updated=len(names))


class WatcherListResult(BaseModel):
    watchers: list[WatcherConfig] = Field(default_factory=list)
