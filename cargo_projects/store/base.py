"""Document store interface for registry persistence.

Both the project registry and the watcher registry are single documents
that are read whole and written whole.  Absence of the backing document is
equivalent to an empty one, never an error.
"""

from __future__ import annotations

from typing import Protocol, TypeVar, runtime_checkable

from pydantic import BaseModel

DocumentT = TypeVar("DocumentT", bound=BaseModel)


@runtime_checkable
class DocumentStore(Protocol[DocumentT]):
    """Protocol for loading and saving one whole document."""

    def load(self) -> DocumentT:
        """Read the document, or a fresh empty one if it does not exist.

        Raises ``RegistryParseError`` if the stored document is corrupt.
        """
        ...

    def save(self, document: DocumentT) -> None:
        """Overwrite the stored document, creating parent directories."""
        ...

    def exists(self) -> bool:
        """Check whether the backing document exists."""
        ...
