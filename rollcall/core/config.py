"""Configuration management for rollcall.

This module provides centralized configuration loading from environment
variables and an optional ``rollcall.yaml`` with validation and type safety.

The store is enabled only when a Redis host is configured. That decision is
made once, when a StoreConfig is built, and the resulting value is injected
into the cache and metrics components.
"""

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from rollcall.core.exceptions import ConfigurationError

CONFIG_FILENAME = "rollcall.yaml"


class Settings(BaseSettings):
    """Application configuration from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    # Redis connection (empty host = store not configured)
    redis_host: str = Field(default="", description="Redis host, empty disables the store")
    redis_port: int = Field(default=6379, description="Redis port", ge=1, le=65535)
    redis_password: str = Field(default="", description="Redis password (REDIS_KEY)")
    redis_tls: bool = Field(default=False, description="Connect with TLS")
    redis_cache_db: int = Field(
        default=0, description="Logical DB for cached responses", ge=0, le=15
    )
    redis_metrics_db: int = Field(
        default=1, description="Logical DB for deployment metrics", ge=0, le=15
    )
    redis_timeout: float = Field(
        default=5.0, description="Socket timeout seconds", gt=0, le=60
    )

    # Response cache
    redis_cache_ttl: int = Field(
        default=3600, description="Scope key TTL in seconds (1 hour)", ge=1
    )
    redis_cache_codec: Literal["json", "msgpack"] = Field(
        default="json", description="Cached payload encoding"
    )


class LoggingSettings(BaseSettings):
    """Logging configuration from environment variables.

    Kept apart from Settings so that logging can be configured at import
    time without validating the store connection settings.
    """

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="ignore"
    )

    log_level: str = Field(default="INFO", description="Logging level")
    log_format: str = Field(default="", description="json or console (auto if empty)")
    environment: str = Field(default="development", description="Environment name")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"


class StoreConfig(BaseModel):
    """Configuration injected into StoreManager and its components.

    Attributes:
        enabled: Whether the store is configured; disabled calls are no-ops
        host: Redis host
        port: Redis port
        password: Redis password (None for no auth)
        tls: Connect with TLS (rediss://)
        cache_db: Logical database for cached responses
        metrics_db: Logical database for deployment metrics
        timeout: Socket and connect timeout in seconds
        cache_ttl: Expiry applied once to a new cache scope key
        codec: Cached payload encoding
    """

    enabled: bool = Field(default=False, description="Enable the store")
    host: str = Field(default="localhost", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str | None = Field(default=None, description="Redis password")
    tls: bool = Field(default=False, description="Use rediss://")
    cache_db: int = Field(default=0, description="Cache logical DB", ge=0)
    metrics_db: int = Field(default=1, description="Metrics logical DB", ge=0)
    timeout: float = Field(default=5.0, description="Socket timeout (seconds)", gt=0)
    cache_ttl: int = Field(default=3600, description="Scope TTL (seconds)", ge=1)
    codec: Literal["json", "msgpack"] = Field(default="json", description="Codec")

    @model_validator(mode="after")
    def validate_separate_databases(self) -> "StoreConfig":
        """Cache and metrics must not share a key space."""
        if self.cache_db == self.metrics_db:
            raise ValueError(
                f"cache_db and metrics_db must differ, both are {self.cache_db}"
            )
        return self

    def redis_url(self, db: int) -> str:
        """Build a connection URL for one logical database.

        The password is passed to the client separately and never appears
        in the URL, so the URL is safe to log.
        """
        scheme = "rediss" if self.tls else "redis"
        return f"{scheme}://{self.host}:{self.port}/{db}"

    @classmethod
    def disabled(cls) -> "StoreConfig":
        return cls(enabled=False)


def _read_yaml_section(path: Path) -> dict[str, Any]:
    if not path.exists():
        return {}
    try:
        with open(path) as f:
            config = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        raise ConfigurationError(
            f"Could not read {path}: {e}", details={"path": str(path)}
        ) from e
    if not isinstance(config, dict):
        return {}
    section = config.get("store", {})
    return section if isinstance(section, dict) else {}


def load_store_config(
    settings: Settings | None = None, path: str | Path | None = None
) -> StoreConfig:
    """Load store configuration.

    3-tier fallback chain:
        1. YAML config (rollcall.yaml ``store`` section)
        2. Environment variables (via Settings class - redis_host, etc.)
        3. Hardcoded defaults

    Args:
        settings: Settings instance (defaults to a fresh one read from env)
        path: YAML file location (defaults to ./rollcall.yaml)

    Returns:
        Validated StoreConfig

    Raises:
        ConfigurationError: YAML unreadable or resulting config invalid

    Example:
        >>> config = load_store_config()
        >>> config.cache_ttl
        3600
    """
    if settings is None:
        settings = Settings()

    values: dict[str, Any] = {
        "enabled": bool(settings.redis_host),
        "host": settings.redis_host or "localhost",
        "port": settings.redis_port,
        "password": settings.redis_password or None,
        "tls": settings.redis_tls,
        "cache_db": settings.redis_cache_db,
        "metrics_db": settings.redis_metrics_db,
        "timeout": settings.redis_timeout,
        "cache_ttl": settings.redis_cache_ttl,
        "codec": settings.redis_cache_codec,
    }

    overrides = _read_yaml_section(Path(path) if path else Path(CONFIG_FILENAME))
    if "host" in overrides and "enabled" not in overrides:
        overrides["enabled"] = bool(overrides["host"])
    values.update(overrides)

    try:
        return StoreConfig(**values)
    except ValueError as e:
        raise ConfigurationError(f"Invalid store configuration: {e}") from e
