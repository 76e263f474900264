"""Flattening of Contentful entries into locale-resolved records.

A Contentful entry keeps every field as a ``{locale: value}`` mapping and
links other entries or assets by embedding them (once resolved) inside those
values. ``flatten`` turns such a graph into plain dictionaries holding a
single locale, which is the shape stored in Redis:

    {"id": "E1", "type": "post", "createdAt": "...", "updatedAt": "...",
     "title": "Hi", "author": {"id": "A1", "type": "author", ...}}
"""

from typing import Any

FlattenedEntry = dict[str, Any]


def is_entry(node: Any) -> bool:
    """Check whether a value looks like an entry or asset (has ``fields``)."""
    return isinstance(node, dict) and isinstance(node.get("fields"), dict)


def is_scalar(node: Any) -> bool:
    return isinstance(node, (str, int, float)) and not isinstance(node, bool)


def _node_key(node: dict[str, Any]) -> tuple[str, str]:
    sys = node.get("sys") or {}
    return sys.get("type", ""), sys.get("id", "")


def _header(node: dict[str, Any]) -> FlattenedEntry:
    """Build the bookkeeping part of a flattened entry from its ``sys`` block."""
    sys = node.get("sys") or {}
    header: FlattenedEntry = {"id": sys.get("id")}

    content_type = ((sys.get("contentType") or {}).get("sys") or {}).get("id")
    if content_type:
        header["type"] = content_type

    header["createdAt"] = sys.get("createdAt")
    header["updatedAt"] = sys.get("updatedAt")
    return header


def _resolve_field(
    localized: Any,
    locale: str,
    path: frozenset[tuple[str, str]],
) -> Any:
    if isinstance(localized, list):
        return [_flatten(item, locale, path) for item in localized]
    if is_entry(localized):
        return _flatten(localized, locale, path)
    if localized is None:
        return ""
    return localized


def _flatten(node: Any, locale: str, path: frozenset[tuple[str, str]]) -> Any:
    if is_entry(node):
        key = _node_key(node)
        # Entry already being flattened higher up: emit a reference stub
        if key in path:
            return _header(node)
        path = path | {key}

        details: FlattenedEntry = {}
        for field_key, values in node["fields"].items():
            localized = values.get(locale) if isinstance(values, dict) else None
            details[field_key] = _resolve_field(localized, locale, path)

        return {**_header(node), **details}

    if is_scalar(node):
        return node

    return None


def flatten(node: Any, locale: str) -> Any:
    """Flatten an entry (or a leaf value) for one locale.

    Args:
        node: Contentful entry/asset, or a scalar found inside a list field
        locale: Locale code to resolve every field to (e.g. "en-US")

    Returns:
        A flattened entry dict for entries, the value itself for strings and
        numbers, None for anything else
    """
    return _flatten(node, locale, frozenset())
