"""Shared enumerations."""

from __future__ import annotations

from enum import StrEnum

# -- Project -----------------------------------------------------------------


class ProjectType(StrEnum):
    """Structural kind of a Cargo manifest."""

    PACKAGE = "package"
    """Regular package with a ``[package]`` section."""

    PURE_WORKSPACE = "pure_workspace"
    """Workspace root with only a ``[workspace]`` section."""

    WORKSPACE_WITH_PACKAGE = "workspace_with_package"
    """Workspace root that is also a package itself."""

    MALFORMED = "malformed"
    """Manifest that cargo could not resolve."""


# -- Watch -------------------------------------------------------------------


class ChangeKind(StrEnum):
    CREATE = "create"
    MODIFY = "modify"
    REMOVE = "remove"
