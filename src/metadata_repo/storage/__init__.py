"""Hierarchical file stores backing the metadata repository."""

from .base import RepositoryFile, UnifiedRepository
from .memory import InMemoryRepository
from .filesystem import FileSystemRepository

__all__ = [
    "RepositoryFile",
    "UnifiedRepository",
    "InMemoryRepository",
    "FileSystemRepository",
]
