"""Document store implementations for registry persistence."""

from cargo_projects.store.base import DocumentStore
from cargo_projects.store.local import LocalDocumentStore

__all__ = ["DocumentStore", "LocalDocumentStore"]
