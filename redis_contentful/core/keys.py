"""Cache key scheme: ``{type}:{identifierValue}:{entryId}``.

The entry id is the only component guaranteed to be unique, so it always
comes last; type and identifier value exist to make keys scannable by
pattern.
"""

from typing import Any

from .flatten import is_scalar

SEPARATOR = ":"
WILDCARD = "*"


def build_key(content_type: str, identifier_value: str, entry_id: str) -> str:
    """Build the cache key for an entry.

    Args:
        content_type: Content type id (may be empty)
        identifier_value: Localized identifier field value (may be empty)
        entry_id: Contentful entry id

    Returns:
        Cache key string
    """
    return f"{content_type}{SEPARATOR}{identifier_value}{SEPARATOR}{entry_id}"


def parse_type(key: str) -> str:
    """Get the content type part of a cache key."""
    return key.split(SEPARATOR, 1)[0]


def identifier_value(entry: dict[str, Any], identifier: str | None, locale: str) -> str:
    """Get the localized identifier field value of a raw entry.

    Returns "" when the field is missing, empty or not a string or number.
    """
    if not identifier:
        return ""

    values = (entry.get("fields") or {}).get(identifier)
    if not isinstance(values, dict):
        return ""

    value = values.get(locale)
    # Links and lists have no key-safe form
    if not is_scalar(value) or value == "":
        return ""
    return str(value)


def entry_key(entry: dict[str, Any], identifier: str | None, locale: str) -> str:
    """Build the cache key for a raw Contentful entry."""
    sys = entry.get("sys") or {}
    content_type = ((sys.get("contentType") or {}).get("sys") or {}).get("id") or ""
    return build_key(content_type, identifier_value(entry, identifier, locale), sys["id"])


def scan_pattern(content_type: str | None, search: str | None = None) -> str:
    """Build a SCAN pattern, using wildcards for empty parts."""
    return build_key(content_type or WILDCARD, search or WILDCARD, WILDCARD)


def deletion_pattern(entry_id: str) -> str:
    """Pattern matching every key stored for an entry id."""
    return build_key(WILDCARD, WILDCARD, entry_id)
