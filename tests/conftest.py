"""Shared fixtures: in-memory store and scripted Contentful client."""

from fnmatch import fnmatchcase
from typing import Any

import pytest

from redis_contentful.core.client import SyncResponse
from redis_contentful.core.errors import ContentConnectionError
from redis_contentful.models.config import CacheConfig, ContentfulConfig, RedisConfig, SyncSettings


class FakeStore:
    """In-memory stand-in for RedisStore with a controllable clock."""

    def __init__(self, page_limit: int | None = None) -> None:
        self.databases: dict[int, dict[str, Any]] = {}
        self.expiry: dict[tuple[int, str], float] = {}
        self.database = 0
        self.now = 0.0
        self.page_limit = page_limit
        self.closed = False
        self.fail_keys: set[str] = set()
        self.scans: list[tuple[str | None, int | None]] = []
        self.set_calls: list[tuple[str, str, int | None]] = []

    @property
    def data(self) -> dict[str, Any]:
        return self.databases.setdefault(self.database, {})

    def _check(self) -> None:
        if self.closed:
            raise ContentConnectionError("Redis connection is closed")

    def _expired(self, key: str) -> bool:
        deadline = self.expiry.get((self.database, key))
        if deadline is not None and self.now >= deadline:
            self.data.pop(key, None)
            self.expiry.pop((self.database, key), None)
            return True
        return False

    def advance(self, seconds: float) -> None:
        self.now += seconds

    async def ping(self) -> bool:
        self._check()
        return True

    async def get(self, key: str) -> str | None:
        self._check()
        if self._expired(key):
            return None
        value = self.data.get(key)
        return value if isinstance(value, str) else None

    async def set(self, key: str, value: str, expire: int | None = None) -> None:
        self._check()
        if key in self.fail_keys:
            raise ContentConnectionError(f"write to {key} failed")
        self.set_calls.append((key, value, expire))
        self.data[key] = value
        if expire:
            self.expiry[(self.database, key)] = self.now + expire
        else:
            self.expiry.pop((self.database, key), None)

    async def hget(self, bucket: str, field: str) -> str | None:
        self._check()
        return self.data.get(bucket, {}).get(field)

    async def hset(self, bucket: str, field: str, value: str) -> None:
        self._check()
        self.data.setdefault(bucket, {})[field] = value

    async def delete(self, *keys: str) -> int:
        self._check()
        removed = 0
        for key in keys:
            if self.data.pop(key, None) is not None:
                removed += 1
        return removed

    async def scan(self, cursor: int = 0, match: str | None = None, count: int | None = None) -> tuple[int, list[str]]:
        self._check()
        self.scans.append((match, count))
        keys = [
            key for key, value in self.data.items()
            if isinstance(value, str) and (match is None or fnmatchcase(key, match))
        ]
        if self.page_limit is not None and len(keys) > self.page_limit:
            return 17, keys[: self.page_limit]
        return 0, keys

    async def flush(self) -> None:
        self._check()
        self.data.clear()

    async def select(self, index: int = 0) -> None:
        self._check()
        self.database = index

    async def close(self) -> None:
        self.closed = True


class FakeContentfulClient:
    """Returns scripted sync responses and records how it was called."""

    def __init__(self, *responses: SyncResponse) -> None:
        self.responses = list(responses)
        self.calls: list[dict[str, Any]] = []

    def sync(self, initial: bool = False, sync_token: str | None = None) -> SyncResponse:
        self.calls.append({"initial": initial, "sync_token": sync_token})
        return self.responses.pop(0)

    def verify_connection(self) -> bool:
        return True


def make_entry(
    entry_id: str,
    content_type: str | None,
    fields: dict[str, Any] | None = None,
    locale: str = "en-US",
) -> dict[str, Any]:
    """Build a raw Contentful entry with every field in one locale."""
    sys: dict[str, Any] = {
        "id": entry_id,
        "type": "Entry",
        "createdAt": "2026-01-01T00:00:00.000Z",
        "updatedAt": "2026-01-02T00:00:00.000Z",
    }
    if content_type:
        sys["contentType"] = {"sys": {"type": "Link", "linkType": "ContentType", "id": content_type}}
    return {
        "sys": sys,
        "fields": {key: {locale: value} for key, value in (fields or {}).items()},
    }


def make_response(
    entries: list[dict[str, Any]] | None = None,
    deleted: list[str] | None = None,
    token: str = "token-1",
) -> SyncResponse:
    """Build a sync response."""
    return SyncResponse(
        entries=entries or [],
        deleted_entries=[{"sys": {"type": "DeletedEntry", "id": entry_id}} for entry_id in deleted or []],
        next_sync_token=token,
    )


def make_config(identifier: str | None = "title", content_types: list[str] | None = None) -> CacheConfig:
    return CacheConfig(
        redis=RedisConfig(host="localhost", port=6379, database=0, password=None),
        contentful=ContentfulConfig(
            space="space123",
            access_token="token",
            identifier=identifier,
            content_types=content_types or [],
        ),
        settings=SyncSettings(),
    )


@pytest.fixture
def store() -> FakeStore:
    return FakeStore()


@pytest.fixture
def config() -> CacheConfig:
    return make_config()
