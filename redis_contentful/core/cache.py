"""Content cache facade: Contentful entries mirrored into Redis."""

import json
import logging
from pathlib import Path
from typing import Any

from ..models.config import CacheConfig
from .client import ContentfulClient
from .errors import ArgumentError, DeserializationError
from .operations import SyncOperations
from .query import QueryEngine
from .state import SyncState
from .store import RedisStore

logger = logging.getLogger(__name__)


def _require_key(operation: str, key: Any) -> None:
    if not isinstance(key, str):
        raise ArgumentError(f"{operation} - key should be a string")


class ContentCache:
    """Keeps a Redis copy of a Contentful space and answers lookups from it.

    Entries are stored flattened for the configured locale under keys of
    the form ``{type}:{identifier}:{id}``. Use ``sync()`` to bring the cache
    up to date and ``get()`` to read from it:

        async with ContentCache(config) as cache:
            await cache.sync()
            posts = (await cache.get("post")).get("post", [])
    """

    def __init__(
        self,
        config: CacheConfig | None = None,
        store: RedisStore | None = None,
        client: ContentfulClient | None = None,
    ) -> None:
        """Initialize the cache.

        Args:
            config: Cache configuration (defaults from environment)
            store: RedisStore (created from config if not provided)
            client: ContentfulClient (created lazily if not provided)
        """
        self.config = config or CacheConfig()
        self.store = store or RedisStore(self.config.redis)
        self.state = SyncState(self.store, self.config.settings.state_namespace)
        self.operations = SyncOperations(self.config, self.store, client=client, state=self.state)
        self.queries = QueryEngine(self.store, self.config.settings.scan_count)

    @classmethod
    def from_config_file(cls, config_path: Path) -> "ContentCache":
        """Create a cache from a YAML configuration file."""
        return cls(CacheConfig.load(config_path))

    async def __aenter__(self) -> "ContentCache":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.close()

    # -------------------------------------------------------------------------
    # Sync and Query
    # -------------------------------------------------------------------------

    async def sync(self, force_reset: bool = False) -> dict[str, str]:
        """Bring the cache up to date with Contentful.

        Args:
            force_reset: Wipe the cache and run a full initial sync

        Returns:
            {"message": "Sync Complete"}

        Raises:
            SyncError: On any failure during the cycle
        """
        result = await self.operations.sync(force_reset)
        return result.to_dict()

    async def get(self, query: Any) -> dict[str, list[dict[str, Any]]]:
        """Look up cached entries grouped by content type.

        Args:
            query: A type name, a list of type names, a mapping with
                "type" (name or list) and optional "search", or a query
                variant from ``redis_contentful.core.query``

        Returns:
            Mapping of content type to flattened entries; empty for
            unsupported input
        """
        return await self.queries.get(query)

    async def status(self) -> dict[str, Any]:
        """Get sync state summary."""
        return await self.state.status()

    # -------------------------------------------------------------------------
    # Custom Keys
    # -------------------------------------------------------------------------

    async def set_custom(self, key: str, value: Any, expire: int | None = None) -> None:
        """Store a JSON value under a key outside the entry key scheme.

        Args:
            key: Redis key
            value: Any JSON-serializable value
            expire: Optional time to live in seconds
        """
        _require_key("set_custom", key)
        await self.store.set(key, json.dumps(value), expire=expire)

    async def get_custom(self, key: str) -> Any:
        """Read a value stored with ``set_custom`` (None when missing)."""
        _require_key("get_custom", key)
        value = await self.store.get(key)
        if value is None:
            return None
        try:
            return json.loads(value)
        except json.JSONDecodeError as e:
            raise DeserializationError(key, value) from e

    async def delete_custom(self, key: str) -> int:
        """Delete a custom key. Returns the number of keys removed."""
        _require_key("delete_custom", key)
        return await self.store.delete(key)

    async def set_db(self, index: int = 0) -> None:
        """Switch the store to another Redis database."""
        logger.info(f"Switching to Redis database {index}")
        await self.store.select(index)

    async def close(self) -> None:
        """Close the Redis connection."""
        await self.store.close()
