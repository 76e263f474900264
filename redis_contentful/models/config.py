"""Configuration models for the content cache."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml
from dotenv import load_dotenv

DEFAULT_ENVIRONMENT = "master"
DEFAULT_LOCALE = "en-US"
DEFAULT_STATE_NAMESPACE = "redis-contentful"


def _env_int(name: str, default: int) -> int:
    value = os.getenv(name)
    return int(value) if value else default


@dataclass
class RedisConfig:
    """Connection settings for the Redis store."""

    host: str = field(default_factory=lambda: os.getenv("REDIS_HOST", "localhost"))
    port: int = field(default_factory=lambda: _env_int("REDIS_PORT", 6379))
    database: int = field(default_factory=lambda: _env_int("REDIS_DB", 0))
    password: str | None = field(default_factory=lambda: os.getenv("REDIS_PASSWORD"))

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (password is never written out)."""
        return {
            "host": self.host,
            "port": self.port,
            "database": self.database,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RedisConfig":
        """Create from dictionary, falling back to environment defaults."""
        config = cls()
        if data.get("host"):
            config.host = data["host"]
        if data.get("port"):
            config.port = int(data["port"])
        if data.get("database") is not None:
            config.database = int(data["database"])
        if data.get("password"):
            config.password = data["password"]
        return config


@dataclass
class ContentfulConfig:
    """Settings for the Contentful content source."""

    space: str = ""
    access_token: str = ""
    environment: str = DEFAULT_ENVIRONMENT
    locale: str = DEFAULT_LOCALE
    identifier: str | None = None  # Field whose value is embedded in cache keys
    content_types: list[str] = field(default_factory=list)  # Empty means all types

    def allows(self, content_type: str | None) -> bool:
        """Check a content type against the allow-list."""
        if not self.content_types:
            return True
        return content_type in self.content_types

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary (access token is never written out)."""
        return {
            "space": self.space,
            "environment": self.environment,
            "locale": self.locale,
            "identifier": self.identifier,
            "content_types": list(self.content_types),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ContentfulConfig":
        """Create from dictionary."""
        return cls(
            space=data.get("space", ""),
            access_token=data.get("access_token", ""),
            environment=data.get("environment") or DEFAULT_ENVIRONMENT,
            locale=data.get("locale") or DEFAULT_LOCALE,
            identifier=data.get("identifier"),
            content_types=list(data.get("content_types") or []),
        )


@dataclass
class SyncSettings:
    """Sync and query behaviour settings."""

    # COUNT hint for the single SCAN page used per pattern
    scan_count: int = 10000
    state_namespace: str = DEFAULT_STATE_NAMESPACE
    request_timeout: int = 30
    verbose: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Convert to dictionary."""
        return {
            "scan_count": self.scan_count,
            "state_namespace": self.state_namespace,
            "request_timeout": self.request_timeout,
            "verbose": self.verbose,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "SyncSettings":
        """Create from dictionary."""
        return cls(
            scan_count=int(data.get("scan_count", 10000)),
            state_namespace=data.get("state_namespace", DEFAULT_STATE_NAMESPACE),
            request_timeout=int(data.get("request_timeout", 30)),
            verbose=data.get("verbose", False),
        )


@dataclass
class CacheConfig:
    """Main configuration for the content cache.

    Loaded from a YAML file with three sections:

        redis:
          host: localhost
          port: 6379
          database: 0
        contentful:
          space: abc123
          locale: en-US
          identifier: slug
          content_types: [post, author]
        settings:
          scan_count: 10000

    Credentials may be left out of the file and provided through the
    environment (or a .env file) instead.
    """

    redis: RedisConfig = field(default_factory=RedisConfig)
    contentful: ContentfulConfig = field(default_factory=ContentfulConfig)
    settings: SyncSettings = field(default_factory=SyncSettings)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "CacheConfig":
        """Create from dictionary."""
        return cls(
            redis=RedisConfig.from_dict(data.get("redis") or {}),
            contentful=ContentfulConfig.from_dict(data.get("contentful") or {}),
            settings=SyncSettings.from_dict(data.get("settings") or {}),
        )

    @classmethod
    def load(cls, config_path: Path) -> "CacheConfig":
        """Load configuration from YAML file."""
        load_dotenv()

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    def save(self, config_path: Path) -> None:
        """Save configuration to YAML file."""
        data = {
            "redis": self.redis.to_dict(),
            "contentful": self.contentful.to_dict(),
            "settings": self.settings.to_dict(),
        }

        with open(config_path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)
