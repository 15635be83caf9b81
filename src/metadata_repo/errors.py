"""Exception hierarchy for the metadata repository."""

from __future__ import annotations


class MetadataRepositoryError(Exception):
    """Base exception for metadata repository errors."""
    pass


class InvalidArgument(MetadataRepositoryError, ValueError):
    """Raised when a required identifier or stream is missing or malformed.

    Always raised before the underlying store is touched.
    """
    pass


class DomainIdNullException(MetadataRepositoryError):
    """Raised when a domain (or domain ID argument) has no usable ID."""
    pass


class DomainAlreadyExistsException(MetadataRepositoryError):
    """Raised when storing over an existing domain without overwrite."""

    def __init__(self, domain_id: str):
        super().__init__(f"Domain '{domain_id}' already exists")
        self.domain_id = domain_id


class DomainStorageException(MetadataRepositoryError):
    """Raised when encoding, decoding or persisting a domain fails.

    The original failure is always available as ``__cause__``.
    """

    def __init__(self, message: str, domain_id: str | None = None):
        super().__init__(message)
        self.domain_id = domain_id


class DomainParseError(MetadataRepositoryError):
    """Raised by a codec when a document is not a valid domain."""
    pass


class RepositoryError(MetadataRepositoryError):
    """Raised by a hierarchical store backend when an operation fails."""
    pass
