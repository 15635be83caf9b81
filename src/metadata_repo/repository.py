"""
Domain-aware, locale-aware metadata repository.

Stores domain documents and their localization files in a single
metadata folder of a hierarchical store:

    /etc/metadata/steel-wheels.xmi               domain document
    /etc/metadata/steel-wheels.default.properties default localization
    /etc/metadata/steel-wheels.en_US.properties   en_US localization

Every stored file carries metadata naming the domain it belongs to, so
domains whose safe names are prefixes of one another ("steel-wheels",
"steel-wheels_test") are never confused. Domains are merged with their
localization files on load and cached until the next write.
"""

from __future__ import annotations

import logging
import threading
from typing import IO, Any, Mapping, Union

from .cache.memory import DomainCache
from .config import RepositoryConfig
from .domains.serializer import (
    DomainParser,
    DomainSerializer,
    YamlDomainParser,
    dump_properties,
    load_properties,
)
from .domains.types import Domain
from .errors import (
    DomainAlreadyExistsException,
    DomainIdNullException,
    DomainParseError,
    DomainStorageException,
    InvalidArgument,
    RepositoryError,
)
from .localization import LocalizationMerger
from .naming import (
    compute_domain_filename,
    compute_locale_filename,
    compute_repository_safe_name,
    normalize_locale,
    split_repository_filename,
)
from .storage.base import RepositoryFile, UnifiedRepository


logger = logging.getLogger(__name__)

# File metadata keys and values
PROPERTY_DOMAIN_ID = "domain-id"
PROPERTY_LOCALE = "locale"
PROPERTY_FILE_TYPE = "file-type"
FILE_TYPE_DOMAIN = "domain"
FILE_TYPE_LOCALE = "locale"

Properties = Union[Mapping[str, Any], bytes, str, IO[bytes], IO[str]]


class MetadataDomainRepository:
    """
    Repository of metadata domains on top of a hierarchical store.

    Collaborators are injected: the store, the document parser, the
    localization merger and the cache. Each public operation holds one
    re-entrant lock, so a reader never observes a half-applied write.
    Writers in other processes must coordinate externally.
    """

    def __init__(
        self,
        repository: UnifiedRepository,
        parser: DomainParser | None = None,
        merger: LocalizationMerger | None = None,
        cache: DomainCache | None = None,
        config: RepositoryConfig | None = None,
    ):
        if repository is None:
            raise InvalidArgument("A hierarchical store is required")

        self._repository = repository
        self._serializer = DomainSerializer(parser or YamlDomainParser())
        self._merger = merger or LocalizationMerger()
        self._cache = cache if cache is not None else DomainCache()
        self._config = config or RepositoryConfig()
        self._lock = threading.RLock()

        # Derived from the store: domain_id -> document, domain_id -> {locale -> file}
        self._domain_files: dict[str, RepositoryFile] | None = None
        self._locale_files: dict[str, dict[str, RepositoryFile]] = {}

    # =========================================================================
    # Collaborators
    # =========================================================================

    @property
    def repository(self) -> UnifiedRepository:
        return self._repository

    @property
    def parser(self) -> DomainParser:
        return self._serializer.parser

    def set_parser(self, parser: DomainParser) -> None:
        """Swap the document parser. Cached domains are dropped."""
        if parser is None:
            raise InvalidArgument("parser is required")
        with self._lock:
            self._serializer = DomainSerializer(parser)
            self._cache.invalidate_all()

    @property
    def merger(self) -> LocalizationMerger:
        return self._merger

    @property
    def cache(self) -> DomainCache:
        return self._cache

    @property
    def config(self) -> RepositoryConfig:
        return self._config

    # =========================================================================
    # Naming
    # =========================================================================

    def compute_repository_safe_name(self, value: str | None) -> str:
        return compute_repository_safe_name(value)

    def compute_domain_filename(self, domain_id: str) -> str:
        return compute_domain_filename(
            domain_id, self._config.metadata_folder, self._config.domain_extension
        )

    def compute_locale_filename(self, domain_id: str, locale: str | None) -> str:
        return compute_locale_filename(
            domain_id, locale, self._config.metadata_folder, self._config.locale_extension
        )

    def get_metadata_dir(self) -> RepositoryFile:
        """Get the metadata folder, creating it if missing."""
        try:
            return self._repository.get_folder(self._config.metadata_folder, create=True)
        except RepositoryError as e:
            raise DomainStorageException(
                f"Unable to open metadata folder {self._config.metadata_folder}: {e}"
            ) from e

    # =========================================================================
    # Domains
    # =========================================================================

    def store_domain(self, domain: Domain, overwrite: bool = False) -> None:
        """
        Store a domain document.

        Args:
            domain: The domain to store
            overwrite: Replace an existing document with the same ID

        Raises:
            DomainIdNullException: If the domain or its ID is missing
            DomainAlreadyExistsException: If the domain exists and overwrite is False
            DomainStorageException: If encoding or writing fails
        """
        domain_id = getattr(domain, "id", None) if domain is not None else None
        if not domain_id:
            raise DomainIdNullException("Domain ID must not be null or empty")

        content = self._serializer.encode(domain)

        with self._lock:
            path = self.compute_domain_filename(domain_id)
            existing = self._owned_file(path, domain_id, claim=True)
            if existing is not None and not overwrite:
                raise DomainAlreadyExistsException(domain_id)

            metadata = {PROPERTY_DOMAIN_ID: domain_id, PROPERTY_FILE_TYPE: FILE_TYPE_DOMAIN}
            file = self._write(path, existing, content, metadata, domain_id)

            if self._domain_files is not None:
                self._domain_files[domain_id] = file
            self._cache.invalidate(domain_id)

        logger.info(f"Stored domain {domain_id} at {path} ({len(content)} bytes)")

    def store_domain_stream(self, stream: IO[bytes] | bytes | None, domain_id: str | None,
                            overwrite: bool = False) -> None:
        """
        Parse a domain document and store it under ``domain_id``.

        Raises:
            InvalidArgument: If the stream is None
            DomainIdNullException: If domain_id is None or empty
            DomainStorageException: If the document cannot be parsed or written
        """
        if stream is None:
            raise InvalidArgument("stream is required")
        if not domain_id:
            raise DomainIdNullException("Domain ID must not be null or empty")

        try:
            domain = self._serializer.decode(stream)
        except Exception as e:
            raise DomainStorageException(
                f"Unable to parse domain document for '{domain_id}': {e!r}", domain_id
            ) from e

        domain.id = domain_id
        self.store_domain(domain, overwrite)

    def get_domain(self, domain_id: str) -> Domain | None:
        """
        Load a domain with its localization files applied.

        Returns:
            The merged domain, or None if no such domain is stored

        Raises:
            InvalidArgument: If domain_id is None or empty
            DomainStorageException: If the stored document cannot be read
        """
        if not domain_id:
            raise InvalidArgument("domain_id must be a non-empty string")

        with self._lock:
            cached = self._cache.get(domain_id)
            if cached is not None:
                logger.debug(f"Cache hit for domain {domain_id}")
                return cached

            domain = self._load_stored(domain_id)
            if domain is None:
                return None

            merged = self._merger.merge(domain, self.get_localization_files(domain_id))
            self._cache.put(domain_id, merged)
            return merged

    def get_domain_ids(self) -> set[str]:
        """IDs of all stored domains (empty set for an empty repository)."""
        with self._lock:
            return set(self._index())

    def remove_domain(self, domain_id: str) -> None:
        """
        Remove a domain and all of its localization files.

        Does nothing if the domain does not exist.

        Raises:
            InvalidArgument: If domain_id is None or empty
        """
        if not domain_id:
            raise InvalidArgument("domain_id must be a non-empty string")

        with self._lock:
            file = self._owned_file(self.compute_domain_filename(domain_id), domain_id)
            if file is None:
                logger.debug(f"Domain {domain_id} not found, nothing to remove")
                return

            self._index()
            locale_files = self._locale_files.pop(domain_id, {})
            for locale_file in locale_files.values():
                self._delete(locale_file, domain_id)
            self._delete(file, domain_id)

            if self._domain_files is not None:
                self._domain_files.pop(domain_id, None)
            self._cache.invalidate(domain_id)

        logger.info(f"Removed domain {domain_id} and {len(locale_files)} localization files")

    def remove_model(self, domain_id: str, model_id: str) -> None:
        """
        Remove a logical model from a stored domain.

        Does nothing if the domain or the model does not exist.

        Raises:
            InvalidArgument: If domain_id or model_id is None or empty
        """
        if not domain_id:
            raise InvalidArgument("domain_id must be a non-empty string")
        if not model_id:
            raise InvalidArgument("model_id must be a non-empty string")

        with self._lock:
            domain = self._load_stored(domain_id)
            if domain is None:
                return
            if not domain.remove_logical_model(model_id):
                logger.debug(f"Logical model {model_id} not found in domain {domain_id}")
                return
            self.store_domain(domain, overwrite=True)

        logger.info(f"Removed logical model {model_id} from domain {domain_id}")

    # =========================================================================
    # Localization
    # =========================================================================

    def add_localization_file(self, domain_id: str | None, locale: str | None,
                              properties: Properties | None) -> None:
        """
        Add or replace the localization file of a domain for one locale.

        A None or empty locale targets the default localization file. A
        None ``properties`` is accepted and does nothing.

        Args:
            domain_id: The domain the strings belong to
            locale: Locale code such as "en" or "en_US"
            properties: Mapping, YAML bytes/text or a stream of them

        Raises:
            InvalidArgument: If domain_id is missing
            DomainStorageException: If the bundle cannot be parsed or written
        """
        if properties is None:
            return
        if not domain_id:
            raise InvalidArgument("domain_id must be a non-empty string")
        locale = normalize_locale(locale)

        try:
            bundle = load_properties(properties)
        except DomainParseError as e:
            raise DomainStorageException(
                f"Invalid localization bundle for '{domain_id}' ({locale or 'default'}): {e}",
                domain_id,
            ) from e
        content = dump_properties(bundle)

        with self._lock:
            path = self.compute_locale_filename(domain_id, locale)
            existing = self._owned_file(path, domain_id, claim=True)
            metadata = {
                PROPERTY_DOMAIN_ID: domain_id,
                PROPERTY_LOCALE: locale,
                PROPERTY_FILE_TYPE: FILE_TYPE_LOCALE,
            }
            file = self._write(path, existing, content, metadata, domain_id)

            self._index()
            self._locale_files.setdefault(domain_id, {})[locale] = file
            self._cache.invalidate(domain_id)

        logger.info(f"Stored {len(bundle)} localized strings for domain {domain_id} "
                    f"({locale or 'default'})")

    def get_localization_files(self, domain_id: str) -> dict[str, dict[str, str]]:
        """
        Stored localization bundles of a domain, keyed by locale ("" = default).

        Raises:
            InvalidArgument: If domain_id is None or empty
            DomainStorageException: If a bundle cannot be read
        """
        if not domain_id:
            raise InvalidArgument("domain_id must be a non-empty string")

        with self._lock:
            self._index()
            bundles = {}
            for locale, file in self._locale_files.get(domain_id, {}).items():
                try:
                    bundles[locale] = load_properties(self._repository.get_content(file))
                except (DomainParseError, RepositoryError) as e:
                    raise DomainStorageException(
                        f"Unable to read localization file {file.path}: {e}", domain_id
                    ) from e
            return bundles

    # =========================================================================
    # Cache / reload
    # =========================================================================

    def reload_domains(self) -> None:
        """Rebuild the domain index from the store and drop the cache."""
        with self._lock:
            self._cache.invalidate_all()
            self._domain_files = None
            self._locale_files = {}
            count = len(self._index())
        logger.info(f"Reloaded {count} domains from {self._config.metadata_folder}")

    def flush_domains(self) -> None:
        """Drop every cached domain without touching the store."""
        self._cache.invalidate_all()

    # =========================================================================
    # Internals
    # =========================================================================

    def _index(self) -> dict[str, RepositoryFile]:
        """Domain index, built from the metadata folder on first use (caller holds lock)."""
        if self._domain_files is not None:
            return self._domain_files

        domains: dict[str, RepositoryFile] = {}
        locales: dict[str, dict[str, RepositoryFile]] = {}
        orphans: list[tuple[str, str, RepositoryFile]] = []

        try:
            children = self._repository.get_children(self.get_metadata_dir())
        except RepositoryError as e:
            raise DomainStorageException(f"Unable to list metadata folder: {e}") from e

        for child in children:
            if child.is_folder:
                continue
            try:
                metadata = self._repository.get_file_metadata(child.id)
            except RepositoryError as e:
                logger.warning(f"Skipping {child.path}: unreadable metadata ({e})")
                continue

            file_type = metadata.get(PROPERTY_FILE_TYPE)
            domain_id = metadata.get(PROPERTY_DOMAIN_ID)

            if file_type == FILE_TYPE_DOMAIN and domain_id:
                domains[domain_id] = child
            elif file_type == FILE_TYPE_LOCALE and domain_id:
                locales.setdefault(domain_id, {})[metadata.get(PROPERTY_LOCALE) or ""] = child
            else:
                self._classify_untagged(child, domains, orphans)

        # Untagged localization files only know their safe domain name
        safe_names = {compute_repository_safe_name(d): d for d in domains}
        for safe_id, locale, child in orphans:
            domain_id = safe_names.get(safe_id, safe_id)
            locales.setdefault(domain_id, {}).setdefault(locale, child)

        self._domain_files = domains
        self._locale_files = locales
        logger.debug(f"Indexed {len(domains)} domains and "
                     f"{sum(len(v) for v in locales.values())} localization files")
        return domains

    def _classify_untagged(self, child: RepositoryFile, domains: dict[str, RepositoryFile],
                           orphans: list[tuple[str, str, RepositoryFile]]) -> None:
        """Classify a file without repository metadata by its name."""
        domain_suffix = f".{self._config.domain_extension}"
        if child.name.endswith(domain_suffix):
            domain_id = child.name[: -len(domain_suffix)]
            logger.warning(f"Domain file {child.path} has no metadata, using '{domain_id}' as its ID")
            domains.setdefault(domain_id, child)
            return

        parts = split_repository_filename(child.name, self._config.locale_extension)
        if parts is None:
            logger.warning(f"Skipping unrecognized file {child.path}")
            return
        orphans.append((parts[0], parts[1], child))

    def _load_stored(self, domain_id: str) -> Domain | None:
        """Decode the stored document as written, without localization (caller holds lock)."""
        file = self._owned_file(self.compute_domain_filename(domain_id), domain_id)
        if file is None:
            return None
        try:
            domain = self._serializer.decode(self._repository.get_content(file))
        except (DomainParseError, RepositoryError) as e:
            raise DomainStorageException(
                f"Unable to load domain '{domain_id}' from {file.path}: {e}", domain_id
            ) from e
        domain.id = domain_id
        return domain

    def _owned_file(self, path: str, domain_id: str, claim: bool = False) -> RepositoryFile | None:
        """
        The file at ``path`` if it belongs to ``domain_id``.

        Two IDs can share a safe name ("a/b" and "a:b"). A file tagged with
        another domain's ID reads as missing, and claiming it for a write
        raises DomainStorageException.
        """
        try:
            file = self._repository.get_file(path)
            if file is None:
                return None
            owner = self._repository.get_file_metadata(file.id).get(PROPERTY_DOMAIN_ID)
        except RepositoryError as e:
            raise DomainStorageException(f"Unable to read {path}: {e}", domain_id) from e

        if owner is not None and owner != domain_id:
            if not claim:
                return None
            raise DomainStorageException(
                f"{path} belongs to domain '{owner}', not '{domain_id}'", domain_id
            )
        return file

    def _write(self, path: str, existing: RepositoryFile | None, content: bytes,
               metadata: dict[str, Any], domain_id: str) -> RepositoryFile:
        """
        Create or update a file in place and tag it (caller holds lock).

        A failed write leaves the store as it was: a new file is deleted
        again and an existing file gets its previous content back.
        """
        previous = None
        try:
            if existing is not None:
                previous = self._repository.get_content(existing)
                tagged = self._repository.get_file_metadata(existing.id) == metadata
                file = self._repository.update_file(existing, content)
            else:
                tagged = False
                folder = self.get_metadata_dir()
                file = self._repository.create_file(folder, path.rsplit("/", 1)[-1], content)
        except RepositoryError as e:
            raise DomainStorageException(f"Unable to write {path}: {e}", domain_id) from e

        if tagged:
            return file
        try:
            self._repository.set_file_metadata(file.id, metadata)
        except RepositoryError as e:
            self._roll_back(path, file, previous)
            raise DomainStorageException(f"Unable to tag {path}: {e}", domain_id) from e
        return file

    def _roll_back(self, path: str, file: RepositoryFile, previous: bytes | None) -> None:
        """Undo a write whose tagging failed; errors here are logged only."""
        try:
            if previous is None:
                self._repository.delete_file(file)
            else:
                self._repository.update_file(file, previous)
        except RepositoryError as e:
            logger.error(f"Unable to roll back {path}: {e}")

    def _delete(self, file: RepositoryFile, domain_id: str) -> None:
        try:
            self._repository.delete_file(file)
        except RepositoryError as e:
            raise DomainStorageException(f"Unable to delete {file.path}: {e}", domain_id) from e
        logger.debug(f"Deleted {file.path}")
