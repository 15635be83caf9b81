"""
Domain model and serialization.

Domains are the stored documents of the metadata repository; the
serializer converts them to and from bytes through a pluggable parser.
"""

from .types import Domain, LocalizedString, LogicalModel, PhysicalModel, DEFAULT_LOCALE
from .serializer import (
    DomainParser,
    DomainSerializer,
    YamlDomainParser,
    dump_properties,
    load_properties,
)

__all__ = [
    "Domain",
    "LocalizedString",
    "LogicalModel",
    "PhysicalModel",
    "DEFAULT_LOCALE",
    "DomainParser",
    "DomainSerializer",
    "YamlDomainParser",
    "dump_properties",
    "load_properties",
]
