"""
Domain data model.

A Domain is a stored schema/model document. It owns an ordered list of
logical models (business views whose names and descriptions are
localizable) and a list of physical models (source tables).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

from ..localization import resolve
from ..naming import normalize_locale

DEFAULT_LOCALE = "en_US"


@dataclass
class LocalizedString:
    """
    A string with per-locale values.

    ``values`` holds the strings authored into the document. ``overrides``
    is populated from localization files when a domain is loaded and is
    never written back into the document.
    """
    values: dict[str, str] = field(default_factory=dict)
    overrides: dict[str, str] = field(default_factory=dict)

    def get(self, locale: str | None, fallback_locale: str | None = DEFAULT_LOCALE) -> str | None:
        """Resolve the string for a locale, overrides first."""
        return resolve(locale, [self.overrides, self.values], fallback_locale)

    def is_empty(self) -> bool:
        return not self.values and not self.overrides

    @classmethod
    def from_value(cls, value: Any) -> LocalizedString:
        """Build from a plain string (stored under the default locale) or a mapping."""
        if value is None:
            return cls()
        if isinstance(value, dict):
            return cls(values={normalize_locale(k): str(v) for k, v in value.items() if v is not None})
        return cls(values={DEFAULT_LOCALE: str(value)})


@dataclass
class PhysicalModel:
    """A physical source model (a connection and its tables)."""
    id: str
    name: str = ""
    tables: list[str] = field(default_factory=list)


@dataclass
class LogicalModel:
    """
    A business view over a physical model.

    ``name`` and ``description`` are localizable; their property keys are
    ``[LogicalModel-<id>].[name]`` and ``[LogicalModel-<id>].[description]``.
    """
    id: str
    name: LocalizedString = field(default_factory=LocalizedString)
    description: LocalizedString = field(default_factory=LocalizedString)
    physical_model_id: str | None = None

    # Set by the owning domain; used as the last-resort lookup locale
    default_locale: str = field(default=DEFAULT_LOCALE, compare=False)

    def get_name(self, locale: str | None = None) -> str | None:
        return self.name.get(locale, self.default_locale)

    def get_description(self, locale: str | None = None) -> str | None:
        return self.description.get(locale, self.default_locale)


@dataclass
class Domain:
    """
    A metadata domain, identified by a case-sensitive, unique ID.

    Logical models keep their insertion order; IDs are expected to be
    unique within the domain but lookups and removals use the first match.
    """
    id: str | None
    logical_models: list[LogicalModel] = field(default_factory=list)
    physical_models: list[PhysicalModel] = field(default_factory=list)
    description: LocalizedString = field(default_factory=LocalizedString)
    locales: list[str] = field(default_factory=lambda: [DEFAULT_LOCALE])
    default_locale: str = DEFAULT_LOCALE

    def __post_init__(self) -> None:
        for model in self.logical_models:
            model.default_locale = self.default_locale

    def find_logical_model(self, model_id: str) -> LogicalModel | None:
        """Get the first logical model with the given ID, or None."""
        for model in self.logical_models:
            if model.id == model_id:
                return model
        return None

    def add_logical_model(self, model: LogicalModel | str) -> LogicalModel:
        """Append a logical model (or a bare one built from an ID)."""
        if isinstance(model, str):
            model = LogicalModel(id=model)
        model.default_locale = self.default_locale
        self.logical_models.append(model)
        return model

    def remove_logical_model(self, model_id: str) -> bool:
        """
        Remove the first logical model with the given ID.

        Returns:
            True if a model was removed, False if none matched
        """
        for index, model in enumerate(self.logical_models):
            if model.id == model_id:
                del self.logical_models[index]
                return True
        return False

    def get_description(self, locale: str | None = None) -> str | None:
        return self.description.get(locale, self.default_locale)
