"""Sync operations between Contentful and the Redis cache."""

import asyncio
import json
import logging
from dataclasses import dataclass
from typing import Any, Awaitable, Iterable

from ..models.config import CacheConfig
from .auth import ContentfulAuth
from .client import ContentfulClient
from .errors import SyncError
from .flatten import flatten
from .keys import deletion_pattern, entry_key
from .state import SyncState, SyncStateData
from .store import RedisStore

logger = logging.getLogger(__name__)

SYNC_COMPLETE = "Sync Complete"


async def gather_all(aws: Iterable[Awaitable[Any]]) -> list[Any]:
    """Await every awaitable, then raise the first failure if any.

    Nothing is still running once this returns or raises.
    """
    outcomes = await asyncio.gather(*aws, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return outcomes


@dataclass
class SyncResult:
    """Result of a sync cycle."""

    message: str
    initial: bool
    written: int = 0
    deleted: int = 0
    skipped: int = 0  # Entries dropped by the content type filter
    next_sync_token: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Public result shape returned by the cache."""
        return {"message": self.message}


class DeletionReconciler:
    """Removes cache records for entries deleted in Contentful.

    Type and identifier of a deleted entry are unknown, so every key ending
    in its id is matched with ``*:*:{id}`` and removed.
    """

    def __init__(self, store: RedisStore, scan_count: int = 10000) -> None:
        self.store = store
        self.scan_count = scan_count

    async def _remove(self, entry_id: str, keep: str | None = None) -> int:
        pattern = deletion_pattern(entry_id)
        cursor, keys = await self.store.scan(0, match=pattern, count=self.scan_count)
        if cursor:
            logger.warning(f"Deletion scan for {pattern} stopped after one page; keys may remain")

        keys = [key for key in keys if key != keep]
        if not keys:
            return 0

        logger.debug(f"Deleting {len(keys)} key(s) for entry {entry_id}")
        return await self.store.delete(*keys)

    async def reconcile(self, entry_ids: list[str]) -> int:
        """Delete the records of every given entry id concurrently.

        Returns:
            Number of keys removed
        """
        counts = await gather_all(self._remove(entry_id) for entry_id in entry_ids)
        return sum(counts)

    async def remove_stale(self, entry_id: str, key: str) -> int:
        """Delete records of an entry stored under any key other than ``key``."""
        return await self._remove(entry_id, keep=key)


class SyncOperations:
    """Drives initial and incremental syncs from Contentful into Redis."""

    def __init__(
        self,
        config: CacheConfig,
        store: RedisStore,
        client: ContentfulClient | None = None,
        state: SyncState | None = None,
    ) -> None:
        """Initialize sync operations.

        Args:
            config: Cache configuration
            store: Redis store receiving the flattened entries
            client: ContentfulClient (created lazily if not provided)
            state: SyncState manager (created if not provided)
        """
        self.config = config
        self.store = store
        self._client = client
        self.state = state or SyncState(store, config.settings.state_namespace)
        self.reconciler = DeletionReconciler(store, config.settings.scan_count)

    @property
    def client(self) -> ContentfulClient:
        """Get or create ContentfulClient."""
        if self._client is None:
            contentful = self.config.contentful
            auth = ContentfulAuth(
                space=contentful.space,
                access_token=contentful.access_token,
                environment=contentful.environment,
            )
            self._client = ContentfulClient(auth, timeout=self.config.settings.request_timeout)
        return self._client

    async def sync(self, force_reset: bool = False) -> SyncResult:
        """Run one sync cycle.

        Args:
            force_reset: Ignore the stored cursor, wipe the cache and re-sync
                everything

        Returns:
            SyncResult describing what was applied

        Raises:
            SyncError: On any failure, wrapping the original exception
        """
        try:
            state = SyncStateData() if force_reset else await self.state.load()
            return await self._run(state)
        except Exception as e:
            raise SyncError(f"Sync failed: {e}", e) from e

    async def _write(self, entry_id: str, key: str, value: str, prune: bool) -> None:
        # An updated identifier moves the entry to a new key
        if prune:
            await self.reconciler.remove_stale(entry_id, key)
        await self.store.set(key, value)

    async def _run(self, state: SyncStateData) -> SyncResult:
        initial = state.is_initial
        logger.info("Starting initial sync" if initial else "Starting incremental sync")

        response = await asyncio.to_thread(
            self.client.sync,
            initial=initial,
            sync_token=state.next_sync_token,
        )

        # Full set incoming: drop everything so no stale key survives
        if initial:
            await self.store.flush()

        contentful = self.config.contentful
        writes: list[Awaitable[None]] = []
        skipped = 0
        for entry in response.entries:
            content_type = entry["sys"].get("contentType", {}).get("sys", {}).get("id")
            if not contentful.allows(content_type):
                skipped += 1
                continue

            key = entry_key(entry, contentful.identifier, contentful.locale)
            value = json.dumps(flatten(entry, contentful.locale))
            writes.append(self._write(entry["sys"]["id"], key, value, prune=not initial))

        results = await gather_all(
            [*writes, self.reconciler.reconcile(response.deleted_entry_ids)]
        )

        # Cursor only advances once every write and deletion has landed
        await self.state.save(response.next_sync_token)

        result = SyncResult(
            message=SYNC_COMPLETE,
            initial=initial,
            written=len(writes),
            deleted=results[-1],
            skipped=skipped,
            next_sync_token=response.next_sync_token,
        )
        logger.info(
            f"Sync complete: {result.written} written, {result.deleted} deleted, "
            f"{result.skipped} filtered out"
        )
        return result
