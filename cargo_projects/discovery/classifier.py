"""Manifest resolution and classification.

Structural metadata comes from ``cargo metadata``; the resolver is a plain
callable so tests (and alternative toolchains) can supply it.  Whatever goes
wrong while resolving a single manifest is reported as ``MetadataError`` and
turned into ``ProjectType.MALFORMED`` by ``classify_manifest``; it never
escapes a batch.
"""

from __future__ import annotations

import json
import subprocess
import tomllib
from pathlib import Path
from typing import Any, Protocol

from loguru import logger
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from cargo_projects.discovery.scanner import MANIFEST_NAME
from cargo_projects.errors import MetadataError
from cargo_projects.models.enums import ProjectType

UNKNOWN_PROJECT = "unknown-project"

# -- Metadata model ------------------------------------------------------------


class CargoPackage(BaseModel):
    """One entry of ``cargo metadata``'s ``packages`` array (fields we use)."""

    model_config = ConfigDict(extra="ignore")

    id: str
    name: str
    version: str
    manifest_path: Path
    dependencies: list[dict[str, Any]] = Field(default_factory=list)


class CargoMetadata(BaseModel):
    """Subset of ``cargo metadata --format-version 1`` output."""

    model_config = ConfigDict(extra="ignore")

    packages: list[CargoPackage] = Field(default_factory=list)
    workspace_members: list[str] = Field(default_factory=list)
    workspace_root: Path | None = None
    workspace_metadata: dict[str, Any] | None = None

    def root_package(self, manifest_path: Path) -> CargoPackage | None:
        """The package declared by *manifest_path* itself, if any."""
        target = manifest_path.resolve(strict=False)
        for package in self.packages:
            if package.manifest_path.resolve(strict=False) == target:
                return package
        return None

    def member_ids(self, manifest_path: Path) -> list[str]:
        """Workspace members declared by *manifest_path*, excluding its own package.

        A lone package is reported by cargo as a one-member workspace of
        itself, and a member crate points at its parent workspace root;
        neither counts as declaring members.
        """
        manifest_dir = manifest_path.resolve(strict=False).parent
        if self.workspace_root is None or self.workspace_root.resolve(strict=False) != manifest_dir:
            return []
        root = self.root_package(manifest_path)
        own_id = root.id if root else None
        return [member for member in self.workspace_members if member != own_id]

    def workspace_name(self) -> str | None:
        """``[workspace.metadata.package] name``, if declared."""
        package = (self.workspace_metadata or {}).get("package")
        if isinstance(package, dict) and isinstance(package.get("name"), str):
            return package["name"]
        return None


# -- Resolvers -----------------------------------------------------------------


class MetadataResolver(Protocol):
    def __call__(self, manifest_path: Path) -> CargoMetadata:
        """Resolve *manifest_path*.  Raises ``MetadataError`` on any failure."""
        ...


class CargoMetadataResolver:
    """Resolve manifests by running ``cargo metadata --no-deps``."""

    def __init__(self, cargo_bin: str = "cargo", timeout: float = 60.0) -> None:
        self.cargo_bin = cargo_bin
        self.timeout = timeout

    def __call__(self, manifest_path: Path) -> CargoMetadata:
        cmd = [
            self.cargo_bin,
            "metadata",
            "--format-version",
            "1",
            "--no-deps",
            "--manifest-path",
            str(manifest_path),
        ]
        try:
            proc = subprocess.run(  # noqa: S603
                cmd,
                capture_output=True,
                text=True,
                timeout=self.timeout,
                check=False,
            )
        except (OSError, subprocess.TimeoutExpired) as exc:
            msg = f"cargo metadata failed for {manifest_path}: {exc}"
            raise MetadataError(msg) from exc

        if proc.returncode != 0:
            msg = f"cargo metadata failed for {manifest_path}: {proc.stderr.strip()}"
            raise MetadataError(msg)

        try:
            return CargoMetadata.model_validate(json.loads(proc.stdout))
        except (json.JSONDecodeError, ValidationError) as exc:
            msg = f"Unexpected cargo metadata output for {manifest_path}: {exc}"
            raise MetadataError(msg) from exc


# -- Classification ------------------------------------------------------------


def classify(metadata: CargoMetadata, manifest_path: Path) -> ProjectType:
    """Map (has root package, has workspace members) onto a project type."""
    has_package = metadata.root_package(manifest_path) is not None
    has_members = bool(metadata.member_ids(manifest_path))

    match (has_package, has_members):
        case (True, False):
            return ProjectType.PACKAGE
        case (False, True):
            return ProjectType.PURE_WORKSPACE
        case (True, True):
            return ProjectType.WORKSPACE_WITH_PACKAGE
        case _:
            return ProjectType.MALFORMED


def classify_manifest(
    manifest_path: Path,
    resolver: MetadataResolver,
) -> tuple[ProjectType, CargoMetadata | None]:
    """Resolve and classify; a resolution failure yields ``MALFORMED`` and no metadata."""
    try:
        metadata = resolver(manifest_path)
    except MetadataError as exc:
        logger.debug("Classifier: {}", exc)
        return ProjectType.MALFORMED, None
    return classify(metadata, manifest_path), metadata


# -- Name recovery -------------------------------------------------------------


def read_package_name(manifest_path: Path) -> str | None:
    """Read ``[package] name`` straight from the manifest, without cargo."""
    try:
        with manifest_path.open("rb") as f:
            data = tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError):
        return None
    package = data.get("package")
    if isinstance(package, dict) and isinstance(package.get("name"), str):
        return package["name"]
    return None


def recover_name(project_dir: Path, metadata: CargoMetadata | None = None) -> str:
    """Best-effort name: resolved package, raw manifest, directory, placeholder."""
    manifest_path = project_dir / MANIFEST_NAME
    if metadata is not None:
        package = metadata.root_package(manifest_path)
        if package is not None:
            return package.name
    return read_package_name(manifest_path) or project_dir.name or UNKNOWN_PROJECT
