"""Filesystem change events delivered to the watch loop."""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel

from cargo_projects.models.enums import ChangeKind


class FileEvent(BaseModel):
    """One debounced change: which path, and what happened to it."""

    path: Path
    kind: ChangeKind
