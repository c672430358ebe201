"""Local filesystem document store.

Persists a whole pydantic document (project registry or watcher registry)
as pretty-printed JSON at a fixed path.  There is no partial patching: every
``save`` rewrites the full file.

A save goes through a hidden sibling file that is flushed to disk and then
renamed over the document, so a reader only ever sees the old or the new
version.  There is no cross-process lock; two invocations that
interleave load/save cycles race, and the last writer wins.
"""

from __future__ import annotations

import contextlib
import os
import tempfile
from pathlib import Path
from typing import Generic

from pydantic import ValidationError

from cargo_projects.errors import RegistryParseError
from cargo_projects.store.base import DocumentT


class LocalDocumentStore(Generic[DocumentT]):
    """Load and save one pydantic document at ``path``.

    A missing file loads as a freshly constructed, empty document.
    """

    def __init__(self, path: str | Path, model: type[DocumentT]) -> None:
        self._path = Path(path)
        self._model = model

    @property
    def path(self) -> Path:
        return self._path

    # -- Read ------------------------------------------------------------------

    def load(self) -> DocumentT:
        """Read the document.  Raises ``RegistryParseError`` if it is corrupt."""
        if not self._path.exists():
            return self._model()
        raw = self._path.read_bytes()
        try:
            return self._model.model_validate_json(raw.decode("utf-8"))
        except (UnicodeDecodeError, ValidationError) as exc:
            raise RegistryParseError(self._path, str(exc)) from exc

    # -- Write -----------------------------------------------------------------

    def save(self, document: DocumentT) -> None:
        _atomic_write(self._path, document.model_dump_json(indent=2))

    def exists(self) -> bool:
        return self._path.exists()


# -- Helpers -------------------------------------------------------------------


def _atomic_write(path: Path, data: str) -> None:
    """Replace *path* with *data* in one rename.  Parent directories are created."""
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, staging = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".part")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(data)
            handle.flush()
            os.fsync(handle.fileno())
        os.replace(staging, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(staging)
        raise
