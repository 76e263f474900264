"""Data models for the content cache."""

from .config import (
    CacheConfig,
    ContentfulConfig,
    RedisConfig,
    SyncSettings,
)

__all__ = [
    "CacheConfig",
    "ContentfulConfig",
    "RedisConfig",
    "SyncSettings",
]
