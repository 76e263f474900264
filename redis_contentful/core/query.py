"""Type-grouped lookups over the cache key space.

Queries are expressed as one of three variants:

- ``ByType("post")`` matches ``post:*:*``
- ``ByTypes(("post", "author"), search="hello")`` scans each type with
  ``{type}:{search}:*`` and concatenates the matches
- ``ByFilter("post", search="hello")`` / ``ByFilter(["post"], ...)`` behaves
  like ``ByTypes`` for a single type name or a list of them

``to_query`` maps the loose public input (a string, a list of strings or a
``{"type": ..., "search": ...}`` mapping) onto these variants.

Each pattern is resolved with a single SCAN page. Large key spaces may be
under-enumerated; a truncated scan is logged as a warning.
"""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any

from .errors import DeserializationError
from .keys import WILDCARD, build_key, parse_type, scan_pattern
from .store import RedisStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ByType:
    """All entries of one content type."""

    name: str


@dataclass(frozen=True)
class ByTypes:
    """Entries of several content types, optionally narrowed by identifier."""

    names: tuple[str, ...]
    search: str | None = None


@dataclass(frozen=True)
class ByFilter:
    """Entries matching a type (or types) and an optional identifier search."""

    types: str | tuple[str, ...] | None
    search: str | None = None


Query = ByType | ByTypes | ByFilter


def to_query(raw: Any) -> Query | None:
    """Convert public query input into a query variant.

    Args:
        raw: A type name, a list of type names, a mapping with "type" and
            optional "search", or an existing variant

    Returns:
        The matching variant, or None when the input is not understood
    """
    if isinstance(raw, (ByType, ByTypes, ByFilter)):
        return raw
    if isinstance(raw, str):
        return ByType(raw)
    if isinstance(raw, (list, tuple)):
        return ByTypes(tuple(raw))
    if isinstance(raw, dict):
        types = raw.get("type")
        if isinstance(types, (list, tuple)):
            types = tuple(types)
        return ByFilter(types, raw.get("search"))
    return None


def patterns_for(query: Query | None) -> list[str]:
    """Get the SCAN patterns needed to answer a query."""
    if isinstance(query, ByType):
        return [build_key(query.name, WILDCARD, WILDCARD)]
    if isinstance(query, ByTypes):
        return [scan_pattern(name, query.search) for name in query.names]
    if isinstance(query, ByFilter):
        if isinstance(query.types, str):
            return [scan_pattern(query.types, query.search)]
        if isinstance(query.types, tuple):
            return patterns_for(ByTypes(query.types, query.search))
    return []


class QueryEngine:
    """Resolves queries into grouped, deserialized cache records."""

    def __init__(self, store: RedisStore, scan_count: int = 10000) -> None:
        self.store = store
        self.scan_count = scan_count

    async def _scan(self, pattern: str) -> list[str]:
        cursor, keys = await self.store.scan(0, match=pattern, count=self.scan_count)
        if cursor:
            logger.warning(f"Scan for {pattern} returned a partial page; results may be incomplete")
        return keys

    async def keys(self, query: Any) -> list[str]:
        """Get the cache keys matching a query, in scan order."""
        patterns = patterns_for(to_query(query))
        pages = await asyncio.gather(*(self._scan(pattern) for pattern in patterns))
        return [key for page in pages for key in page]

    async def get(self, query: Any) -> dict[str, list[dict[str, Any]]]:
        """Get flattened entries grouped by content type.

        Args:
            query: See ``to_query`` for accepted forms

        Returns:
            Mapping of content type to the entries found for it

        Raises:
            DeserializationError: If a stored value is not valid JSON
        """
        keys = await self.keys(query)
        values = await asyncio.gather(*(self.store.get(key) for key in keys))

        grouped: dict[str, list[dict[str, Any]]] = {}
        for key, value in zip(keys, values):
            # Deleted between scan and fetch
            if value is None:
                continue
            try:
                record = json.loads(value)
            except json.JSONDecodeError as e:
                raise DeserializationError(key, value) from e
            grouped.setdefault(parse_type(key), []).append(record)

        logger.debug(f"Query matched {len(keys)} key(s) across {len(grouped)} type(s)")
        return grouped
