"""
Repository-safe naming.

Maps arbitrary domain IDs and locale codes onto file names that cannot
escape the metadata folder or break hierarchical paths.
"""

from __future__ import annotations

from urllib.parse import quote, unquote

from .errors import InvalidArgument

# Characters that delimit or are invalid in hierarchical repository paths
RESERVED_CHARACTERS = frozenset('/\\:*?"<>|')

DEFAULT_LOCALE_TOKEN = "default"


def compute_repository_safe_name(value: str | None) -> str:
    """
    Replace every reserved or control character with an underscore.

    Letters, digits, spaces, dots and non-ASCII characters are kept as is.
    The mapping is total and idempotent.
    """
    if not value:
        return ""
    return "".join(
        "_" if ch in RESERVED_CHARACTERS or ord(ch) < 0x20 or ord(ch) == 0x7F else ch
        for ch in value
    )


def compute_domain_filename(domain_id: str | None, folder: str, extension: str) -> str:
    """
    Full repository path of a domain document.

    Raises:
        InvalidArgument: If domain_id is None or empty
    """
    if not domain_id:
        raise InvalidArgument("domain_id must be a non-empty string")
    return f"{folder.rstrip('/')}/{compute_repository_safe_name(domain_id)}.{extension}"


def compute_locale_filename(
    domain_id: str | None,
    locale: str | None,
    folder: str,
    extension: str,
) -> str:
    """Full repository path of a domain's localization file."""
    if not domain_id:
        raise InvalidArgument("domain_id must be a non-empty string")
    token = compute_locale_token(locale)
    return f"{folder.rstrip('/')}/{compute_repository_safe_name(domain_id)}.{token}.{extension}"


def compute_locale_token(locale: str | None) -> str:
    """
    File name segment for a locale code.

    Codes are percent-encoded, dots included, so the token never contains a
    path separator or a dot and decodes back to the exact code. The default
    locale maps to "default"; a literal "default" code is escaped so the
    two never share a file.
    """
    code = normalize_locale(locale)
    if not code:
        return DEFAULT_LOCALE_TOKEN
    token = quote(code, safe="").replace(".", "%2E")
    if token == DEFAULT_LOCALE_TOKEN:
        return "%64" + token[1:]
    return token


def normalize_locale(locale: str | None) -> str:
    """
    Locale code as stored, "" for the default locale.

    Codes are opaque, case-sensitive strings: "en_US" and "en-US" are
    different locales.
    """
    if not locale:
        return ""
    return locale


def language_of(locale: str) -> str:
    """Language part of a locale code ("en_US" -> "en")."""
    return locale.split("_", 1)[0]


def split_repository_filename(name: str, extension: str) -> tuple[str, str] | None:
    """
    Split "<safe-id>.<locale-token>.<extension>" into (safe_id, locale).

    The default locale token maps back to "". Returns None when the name
    does not carry the extension or has no locale segment.
    """
    suffix = f".{extension}"
    if not name.endswith(suffix):
        return None
    stem = name[: -len(suffix)]
    safe_id, sep, token = stem.rpartition(".")
    if not sep or not safe_id or not token:
        return None
    if token == DEFAULT_LOCALE_TOKEN:
        return safe_id, ""
    return safe_id, unquote(token)
