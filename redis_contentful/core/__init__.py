"""Core sync and query functionality."""

from .auth import ContentfulAuth
from .cache import ContentCache
from .client import ContentfulAPIError, ContentfulClient, SyncResponse
from .errors import (
    ArgumentError,
    ContentConnectionError,
    DeserializationError,
    RedisContentfulError,
    SyncError,
)
from .flatten import flatten
from .operations import DeletionReconciler, SyncOperations, SyncResult
from .query import ByFilter, ByType, ByTypes, QueryEngine
from .state import SyncState, SyncStateData
from .store import RedisStore

__all__ = [
    "ArgumentError",
    "ByFilter",
    "ByType",
    "ByTypes",
    "ContentCache",
    "ContentConnectionError",
    "ContentfulAPIError",
    "ContentfulAuth",
    "ContentfulClient",
    "DeletionReconciler",
    "DeserializationError",
    "QueryEngine",
    "RedisContentfulError",
    "RedisStore",
    "SyncError",
    "SyncOperations",
    "SyncResponse",
    "SyncResult",
    "SyncState",
    "SyncStateData",
    "flatten",
]
