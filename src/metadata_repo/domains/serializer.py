"""
Domain serialization.

Converts Domain objects to and from bytes. The concrete document format
belongs to a DomainParser; DomainSerializer wraps a parser and turns
encoding failures into storage errors.

YAML document format:
    id: steel-wheels
    default_locale: en_US
    locales: [en_US, es]
    physical_models:
      - id: SampleData
        tables: [CUSTOMERS, ORDERS]
    logical_models:
      - id: BV_ORDERS
        physical_model: SampleData
        name:
          en_US: Orders
        description:
          en_US: Order information
          es: Informacion de pedidos
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import IO, Any, Mapping, Union

import yaml

from ..errors import DomainParseError, DomainStorageException
from .types import DEFAULT_LOCALE, Domain, LocalizedString, LogicalModel, PhysicalModel

Source = Union[bytes, str, IO[bytes], IO[str]]


def read_source(source: Source) -> bytes:
    """Read a byte string, text string or stream into bytes."""
    if isinstance(source, bytes):
        return source
    if isinstance(source, str):
        return source.encode("utf-8")
    data = source.read()
    if isinstance(data, str):
        return data.encode("utf-8")
    return data


class DomainParser(ABC):
    """Codec between Domain objects and documents."""

    @abstractmethod
    def generate(self, domain: Domain) -> str | bytes:
        """Render a domain as a document. May raise on malformed domains."""
        ...

    @abstractmethod
    def parse(self, source: Source) -> Domain:
        """
        Parse a document into a domain.

        Raises:
            DomainParseError: If the document is not a valid domain
        """
        ...


class YamlDomainParser(DomainParser):
    """
    YAML domain documents.

    Omits empty values to keep documents clean. Only authored strings
    (LocalizedString.values) are written; overrides from localization
    files never reach the document.
    """

    def generate(self, domain: Domain) -> str:
        data: dict[str, Any] = {"id": domain.id}

        if domain.default_locale != DEFAULT_LOCALE:
            data["default_locale"] = domain.default_locale
        if domain.locales:
            data["locales"] = list(domain.locales)
        if not domain.description.is_empty():
            data["description"] = dict(domain.description.values)

        if domain.physical_models:
            data["physical_models"] = [
                self._serialize_physical_model(model) for model in domain.physical_models
            ]
        if domain.logical_models:
            data["logical_models"] = [
                self._serialize_logical_model(model) for model in domain.logical_models
            ]

        return yaml.safe_dump(data, default_flow_style=False, sort_keys=False, allow_unicode=True)

    def parse(self, source: Source) -> Domain:
        raw = read_source(source)
        try:
            data = yaml.safe_load(raw)
        except yaml.YAMLError as e:
            raise DomainParseError(f"Invalid domain document: {e}") from e

        if not isinstance(data, dict):
            raise DomainParseError("Domain document must be a mapping")
        if not data.get("id"):
            raise DomainParseError("Domain document has no id")

        try:
            default_locale = data.get("default_locale", DEFAULT_LOCALE)
            return Domain(
                id=str(data["id"]),
                default_locale=default_locale,
                locales=list(data.get("locales", [default_locale])),
                description=LocalizedString.from_value(data.get("description")),
                physical_models=[
                    self._parse_physical_model(item) for item in data.get("physical_models") or []
                ],
                logical_models=[
                    self._parse_logical_model(item) for item in data.get("logical_models") or []
                ],
            )
        except (KeyError, TypeError, ValueError) as e:
            raise DomainParseError(f"Malformed domain document '{data.get('id')}': {e}") from e

    def _serialize_physical_model(self, model: PhysicalModel) -> dict[str, Any]:
        result: dict[str, Any] = {"id": model.id}
        if model.name:
            result["name"] = model.name
        if model.tables:
            result["tables"] = list(model.tables)
        return result

    def _serialize_logical_model(self, model: LogicalModel) -> dict[str, Any]:
        result: dict[str, Any] = {"id": model.id}
        if model.physical_model_id:
            result["physical_model"] = model.physical_model_id
        if model.name.values:
            result["name"] = dict(model.name.values)
        if model.description.values:
            result["description"] = dict(model.description.values)
        return result

    def _parse_physical_model(self, data: dict[str, Any]) -> PhysicalModel:
        return PhysicalModel(
            id=str(data["id"]),
            name=data.get("name", ""),
            tables=list(data.get("tables", [])),
        )

    def _parse_logical_model(self, data: dict[str, Any]) -> LogicalModel:
        return LogicalModel(
            id=str(data["id"]),
            name=LocalizedString.from_value(data.get("name")),
            description=LocalizedString.from_value(data.get("description")),
            physical_model_id=data.get("physical_model"),
        )


class DomainSerializer:
    """
    Wraps a DomainParser for the repository.

    encode() never lets a raw parser failure escape: anything the parser
    raises becomes a DomainStorageException. decode() leaves parser
    failures to the caller.
    """

    def __init__(self, parser: DomainParser):
        self.parser = parser

    def encode(self, domain: Domain) -> bytes:
        domain_id = getattr(domain, "id", None)
        try:
            document = self.parser.generate(domain)
        except Exception as e:
            raise DomainStorageException(
                f"Unable to encode domain '{domain_id}': {e!r}", domain_id
            ) from e

        if isinstance(document, str):
            return document.encode("utf-8")
        return document

    def decode(self, source: Source) -> Domain:
        return self.parser.parse(source)


def load_properties(source: Source | Mapping[str, Any]) -> dict[str, str]:
    """
    Load a localization bundle.

    Bundles are flat YAML mappings of property key to string. A mapping
    is accepted as is; an empty document is an empty bundle.

    Raises:
        DomainParseError: If the content is not a flat mapping
    """
    if isinstance(source, Mapping):
        data: Any = source
    else:
        try:
            data = yaml.safe_load(read_source(source))
        except yaml.YAMLError as e:
            raise DomainParseError(f"Invalid localization bundle: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, Mapping):
        raise DomainParseError("Localization bundle must be a mapping")

    properties = {}
    for key, value in data.items():
        if isinstance(value, (dict, list)):
            raise DomainParseError(f"Localization value for '{key}' must be a string")
        properties[str(key)] = "" if value is None else str(value)
    return properties


def dump_properties(properties: Mapping[str, str]) -> bytes:
    """Render a localization bundle, keys sorted for stable output."""
    data = {str(k): str(v) for k, v in sorted(properties.items())}
    return yaml.safe_dump(data, default_flow_style=False, allow_unicode=True).encode("utf-8")
