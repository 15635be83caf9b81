"""
Metadata Repository - domain-aware, locale-aware metadata storage

Turns a generic hierarchical file store into a repository of domain
documents:
- Domain documents persisted through a pluggable codec
- Per-locale localization files merged into domains on read
- Filename-safe storage paths derived from domain IDs
- In-memory cache of merged domains, invalidated on every write
"""

from .errors import (
    DomainAlreadyExistsException,
    DomainIdNullException,
    DomainParseError,
    DomainStorageException,
    InvalidArgument,
    MetadataRepositoryError,
    RepositoryError,
)
from .repository import MetadataDomainRepository

__version__ = "0.1.0"

__all__ = [
    "MetadataDomainRepository",
    "MetadataRepositoryError",
    "InvalidArgument",
    "DomainIdNullException",
    "DomainAlreadyExistsException",
    "DomainStorageException",
    "DomainParseError",
    "RepositoryError",
]
