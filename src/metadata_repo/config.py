"""Configuration for the metadata repository."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from .repository import MetadataDomainRepository


@dataclass
class RepositoryConfig:
    """Layout of the metadata folder."""
    metadata_folder: str = "/etc/metadata"
    domain_extension: str = "xmi"
    locale_extension: str = "properties"


@dataclass
class CacheConfig:
    """Cache configuration."""
    enabled: bool = True


@dataclass
class StorageConfig:
    """Hierarchical store configuration."""
    backend: str = "memory"  # memory | filesystem
    root: str | None = None  # Directory for the filesystem backend


@dataclass
class Config:
    """Main configuration container."""
    repository: RepositoryConfig = field(default_factory=RepositoryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)

    @classmethod
    def from_dict(cls, data: dict) -> Config:
        """Create config from dictionary."""
        return cls(
            repository=RepositoryConfig(**data.get("repository", {})),
            cache=CacheConfig(**data.get("cache", {})),
            storage=StorageConfig(**data.get("storage", {})),
        )

    @classmethod
    def from_yaml(cls, path: str) -> Config:
        """Load config from YAML file."""
        import yaml
        with open(path, "r") as f:
            data = yaml.safe_load(f)
        return cls.from_dict(data or {})

    @classmethod
    def from_json(cls, path: str) -> Config:
        """Load config from JSON file."""
        import json
        with open(path, "r") as f:
            data = json.load(f)
        return cls.from_dict(data)


def create_repository(config: Config | None = None) -> MetadataDomainRepository:
    """Build a metadata repository over the configured store."""
    from .cache.memory import DomainCache
    from .repository import MetadataDomainRepository
    from .storage import FileSystemRepository, InMemoryRepository

    config = config or Config()
    backend = config.storage.backend
    if backend == "memory":
        store = InMemoryRepository()
    elif backend == "filesystem":
        store = FileSystemRepository(config.storage.root)
    else:
        raise ValueError(f"Unknown storage backend: {backend}")

    return MetadataDomainRepository(
        store,
        cache=DomainCache(enabled=config.cache.enabled),
        config=config.repository,
    )
