"""Hierarchical store interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True, slots=True)
class RepositoryFile:
    """Handle to a file or folder in a hierarchical store."""
    id: str
    path: str
    name: str
    folder: bool = False

    @property
    def is_folder(self) -> bool:
        return self.folder


def normalize_path(path: str) -> str:
    """Absolute, slash-separated path without a trailing slash ("/" for the root)."""
    parts = [p for p in path.replace("\\", "/").split("/") if p]
    if any(p in (".", "..") for p in parts):
        raise ValueError(f"Relative path segments are not allowed: {path!r}")
    return "/" + "/".join(parts)


def parent_path(path: str) -> str:
    head, _, _ = normalize_path(path).rpartition("/")
    return head or "/"


class UnifiedRepository(ABC):
    """
    Abstract hierarchical file store.

    Paths are absolute and slash separated. Lookups of missing files
    return None; any other failure raises RepositoryError.
    """

    @abstractmethod
    def get_file(self, path: str) -> RepositoryFile | None:
        """Get a file or folder by path, or None if it does not exist."""
        ...

    @abstractmethod
    def get_folder(self, path: str, create: bool = False) -> RepositoryFile | None:
        """Get a folder by path, creating it (and its parents) if asked."""
        ...

    @abstractmethod
    def create_file(self, folder: RepositoryFile, name: str, content: bytes) -> RepositoryFile:
        """Create a file in a folder. Raises RepositoryError if it exists."""
        ...

    @abstractmethod
    def update_file(self, file: RepositoryFile, content: bytes) -> RepositoryFile:
        """Replace the content of an existing file."""
        ...

    @abstractmethod
    def get_content(self, file: RepositoryFile) -> bytes:
        """Read the content of a file."""
        ...

    @abstractmethod
    def delete_file(self, file: RepositoryFile) -> None:
        """Delete a file along with its metadata."""
        ...

    @abstractmethod
    def get_children(self, folder: RepositoryFile) -> list[RepositoryFile]:
        """List the direct children of a folder, sorted by name."""
        ...

    @abstractmethod
    def get_file_metadata(self, file_id: str) -> dict[str, Any]:
        """Get the metadata attached to a file (empty if none)."""
        ...

    @abstractmethod
    def set_file_metadata(self, file_id: str, metadata: dict[str, Any]) -> None:
        """Replace the metadata attached to a file."""
        ...
