"""Mirror a Contentful space into Redis for fast typed lookups."""

from .core import (
    ArgumentError,
    ContentCache,
    ContentConnectionError,
    DeserializationError,
    SyncError,
)
from .models import CacheConfig

__version__ = "0.1.0"

__all__ = [
    "ArgumentError",
    "CacheConfig",
    "ContentCache",
    "ContentConnectionError",
    "DeserializationError",
    "SyncError",
]
