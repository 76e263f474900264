"""Exception types raised by the content cache."""

from typing import Any


class RedisContentfulError(Exception):
    """Base class for all content cache errors."""


class ContentConnectionError(RedisContentfulError, ConnectionError):
    """Raised when Redis or the Contentful API cannot be reached."""


class SyncError(RedisContentfulError):
    """Raised when a sync cycle fails.

    The original exception is kept on ``cause`` (and chained as ``__cause__``)
    so callers can decide whether a retry makes sense.
    """

    def __init__(self, message: str, cause: BaseException | None = None) -> None:
        super().__init__(message)
        self.cause = cause


class ArgumentError(RedisContentfulError, TypeError):
    """Raised when a custom accessor receives an invalid argument."""


class DeserializationError(RedisContentfulError, ValueError):
    """Raised when a stored value is not valid JSON."""

    def __init__(self, key: str, value: Any = None) -> None:
        super().__init__(f"Malformed value stored under {key!r}")
        self.key = key
        self.value = value
