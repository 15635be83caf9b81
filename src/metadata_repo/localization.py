"""
Localization merge engine.

Localization files are flat property bundles keyed by
``[LogicalModel-<id>].[<field>]``. On load, each bundle's entries are
attached to the matching LocalizedString of the domain as per-locale
overrides; lookups then walk an ordered list of locale tiers.

Lookup order for a requested locale:
    1. stored files: exact -> language only -> other variants of the
       same language -> default file ("")
    2. embedded values: same order
    3. the domain's default locale, files before embedded values
    4. any embedded value
"""

from __future__ import annotations

import copy
import logging
from typing import TYPE_CHECKING, Iterable, Mapping, Sequence

from .naming import language_of, normalize_locale

if TYPE_CHECKING:
    from .domains.types import Domain


logger = logging.getLogger(__name__)

LOCALIZED_FIELDS = ("name", "description")


def logical_model_key(model_id: str, field_name: str) -> str:
    """Property key of a logical model field."""
    return f"[LogicalModel-{model_id}].[{field_name}]"


def locale_tiers(locale: str | None, available: Iterable[str]) -> list[str]:
    """
    Ordered locale codes to consult, restricted to those in ``available``.

    "en_US" -> ["en_US", "en", "en_GB", ""]
    "en"    -> ["en", "en_GB", "en_US", ""]
    """
    codes = set(available)
    requested = normalize_locale(locale)
    order: list[str] = []

    if requested:
        language = language_of(requested)
        order.append(requested)
        order.append(language)
        order.extend(sorted(
            code for code in codes
            if code and code != requested and language_of(code) == language
        ))
    order.append("")

    seen: set[str] = set()
    result = []
    for code in order:
        if code in codes and code not in seen:
            seen.add(code)
            result.append(code)
    return result


def resolve(
    locale: str | None,
    tiers: Sequence[Mapping[str, str]],
    fallback_locale: str | None = None,
) -> str | None:
    """
    Resolve a string from locale-keyed tiers, highest priority first.

    Each tier maps locale code to value. The requested locale is tried
    against every tier before the fallback locale is; if neither matches,
    the first value of the lowest tier that has one is returned.
    """
    for requested in (locale, fallback_locale):
        if requested is None:
            continue
        for tier in tiers:
            for code in locale_tiers(requested, tier.keys()):
                return tier[code]

    for tier in reversed(tiers):
        for value in tier.values():
            return value
    return None


class LocalizationMerger:
    """
    Overlays stored localization bundles onto a domain.

    The merge never mutates its input and never touches the embedded
    values, so re-encoding a merged domain yields the authored document.
    """

    def merge(self, domain: Domain, locale_files: Mapping[str | None, Mapping[str, str]]) -> Domain:
        """
        Return a copy of ``domain`` with overrides from ``locale_files``.

        Args:
            domain: The decoded base domain
            locale_files: Bundles keyed by locale code ("" or None = default)

        Returns:
            A new Domain whose localized fields carry the overrides
        """
        merged = copy.deepcopy(domain)
        bundles = {normalize_locale(code): dict(props) for code, props in locale_files.items()}

        applied = 0
        for model in merged.logical_models:
            for field_name in LOCALIZED_FIELDS:
                localized = getattr(model, field_name)
                localized.overrides.clear()
                key = logical_model_key(model.id, field_name)
                for code, props in bundles.items():
                    if key in props and props[key] is not None:
                        localized.overrides[code] = str(props[key])
                        applied += 1

        if applied:
            logger.debug(f"Applied {applied} localized strings to domain {merged.id} "
                         f"from {len(bundles)} locale files")
        return merged

