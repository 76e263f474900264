"""Persisted sync state (the resumption cursor)."""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from ..models.config import DEFAULT_STATE_NAMESPACE
from .store import RedisStore

NEXT_SYNC_TOKEN_FIELD = "nextSyncToken"
LAST_SYNC_FIELD = "lastSync"


@dataclass
class SyncStateData:
    """Snapshot of the persisted sync state."""

    next_sync_token: str | None = None
    last_sync: str | None = None  # ISO timestamp of the last persisted cursor

    @property
    def is_initial(self) -> bool:
        """True when no cursor exists and a full sync is required."""
        return not self.next_sync_token

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "next_sync_token": self.next_sync_token,
            "last_sync": self.last_sync,
        }


class SyncState:
    """Reads and writes the single sync state record kept in Redis.

    The record is a hash stored under a reserved namespace key, shared by
    every process using the same database.
    """

    def __init__(self, store: RedisStore, namespace: str = DEFAULT_STATE_NAMESPACE) -> None:
        """Initialize state manager.

        Args:
            store: Store holding the state hash
            namespace: Key of the state hash
        """
        self.store = store
        self.namespace = namespace

    async def load(self) -> SyncStateData:
        """Load the current state (empty when never synced)."""
        return SyncStateData(
            next_sync_token=await self.store.hget(self.namespace, NEXT_SYNC_TOKEN_FIELD),
            last_sync=await self.store.hget(self.namespace, LAST_SYNC_FIELD),
        )

    async def save(self, next_sync_token: str) -> SyncStateData:
        """Persist a new resumption cursor."""
        state = SyncStateData(
            next_sync_token=next_sync_token,
            last_sync=datetime.now(timezone.utc).isoformat(),
        )
        await self.store.hset(self.namespace, NEXT_SYNC_TOKEN_FIELD, next_sync_token)
        await self.store.hset(self.namespace, LAST_SYNC_FIELD, state.last_sync or "")
        return state

    async def status(self) -> dict[str, Any]:
        """Get a summary of sync state."""
        state = await self.load()
        token = state.next_sync_token
        return {
            "namespace": self.namespace,
            "database": self.store.database,
            "synced": not state.is_initial,
            "next_sync_token": token[:8] + "..." if token else "N/A",
            "last_sync": state.last_sync,
        }
