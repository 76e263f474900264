"""Async Redis key-value store used as the content cache backend."""

import logging
from typing import Any

from redis.asyncio import Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from ..models.config import RedisConfig
from .errors import ContentConnectionError

logger = logging.getLogger(__name__)


class RedisStore:
    """Thin async wrapper around a single Redis connection.

    Only the primitives the cache needs are exposed. Connection failures
    surface as ContentConnectionError and are never retried here.
    """

    def __init__(self, config: RedisConfig | None = None, client: Redis | None = None) -> None:
        """Initialize the store.

        Args:
            config: Redis connection settings (defaults from environment)
            client: Optional pre-built redis.asyncio client
        """
        self.config = config or RedisConfig()
        self.database = self.config.database
        self._client = client
        self._closed = False

    @property
    def client(self) -> Redis:
        """Get or create the Redis client (lazy initialization)."""
        if self._closed:
            raise ContentConnectionError("Redis connection is closed")
        if self._client is None:
            self._client = self._connect(self.database)
        return self._client

    def _connect(self, database: int) -> Redis:
        logger.debug(f"Connecting to Redis {self.config.host}:{self.config.port}/{database}")
        return Redis(
            host=self.config.host,
            port=self.config.port,
            password=self.config.password,
            db=database,
            decode_responses=True,
            single_connection_client=True,
        )

    async def _call(self, command: str, *args: Any, **kwargs: Any) -> Any:
        """Run a Redis command, translating transport errors."""
        try:
            return await getattr(self.client, command)(*args, **kwargs)
        except (RedisConnectionError, RedisTimeoutError) as e:
            raise ContentConnectionError(
                f"Redis unreachable at {self.config.host}:{self.config.port}: {e}"
            ) from e

    async def ping(self) -> bool:
        return bool(await self._call("ping"))

    async def get(self, key: str) -> str | None:
        return await self._call("get", key)

    async def set(self, key: str, value: str, expire: int | None = None) -> None:
        """Store a value, optionally expiring after ``expire`` seconds."""
        if expire:
            await self._call("set", key, value, ex=expire)
        else:
            await self._call("set", key, value)

    async def hget(self, bucket: str, field: str) -> str | None:
        return await self._call("hget", bucket, field)

    async def hset(self, bucket: str, field: str, value: str) -> None:
        await self._call("hset", bucket, field, value)

    async def delete(self, *keys: str) -> int:
        if not keys:
            return 0
        return int(await self._call("delete", *keys))

    async def scan(
        self,
        cursor: int = 0,
        match: str | None = None,
        count: int | None = None,
    ) -> tuple[int, list[str]]:
        """Fetch one page of keys matching a pattern.

        Returns:
            Tuple of (next cursor, matched keys); a next cursor of 0 means
            the iteration is complete
        """
        next_cursor, keys = await self._call("scan", cursor=cursor, match=match, count=count)
        return int(next_cursor), list(keys)

    async def flush(self) -> None:
        """Remove every key of the selected database."""
        logger.info(f"Flushing Redis database {self.database}")
        await self._call("flushdb")

    async def select(self, index: int = 0) -> None:
        """Switch to another database by reconnecting."""
        if self._closed:
            raise ContentConnectionError("Redis connection is closed")
        await self._disconnect()
        self.database = index
        self._client = self._connect(index)
        await self.ping()

    async def _disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def close(self) -> None:
        """Close the connection. No automatic reconnection is attempted."""
        await self._disconnect()
        self._closed = True
