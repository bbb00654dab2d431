"""Centralized configuration management using Pydantic Settings.

This module provides typed configuration for all application settings,
loaded from environment variables with sensible defaults.

Usage:
    from when2tz.config import get_settings
    settings = get_settings()
    backend = settings.store.backend
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class StoreSettings(BaseSettings):
    """Schedule store configuration."""

    model_config = SettingsConfigDict(env_prefix="STORE_", extra="ignore")

    backend: Literal["memory", "file", "redis", "postgres"] = Field(
        default="file", description="Which store backend holds schedules"
    )
    path: str = Field(default="data.json", description="JSON file used by the file backend")
    key_prefix: str = Field(default="when2tz:schedule:", description="Redis key prefix")

    @field_validator("backend", mode="before")
    @classmethod
    def normalize_backend(cls, v):
        if isinstance(v, str):
            return v.strip().lower()
        return v


class RedisSettings(BaseSettings):
    """Redis connection configuration."""

    model_config = SettingsConfigDict(env_prefix="REDIS_", extra="ignore")

    host: str = Field(default="redis", description="Redis host")
    port: int = Field(default=6379, description="Redis port")
    password: str = Field(default="", description="Redis password")
    max_connections: int = Field(default=50, description="Maximum pool connections")
    pool_timeout_sec: float = Field(default=5.0, description="Pool timeout in seconds")
    health_check_interval: int = Field(default=30, description="Health check interval in seconds")
    retry_on_timeout: bool = Field(default=True, description="Retry on timeout")
    socket_timeout: float = Field(default=5.0, description="Socket timeout in seconds")
    socket_connect_timeout: float = Field(default=5.0, description="Socket connect timeout in seconds")


class PostgresSettings(BaseSettings):
    """PostgreSQL connection configuration."""

    model_config = SettingsConfigDict(
        env_prefix="POSTGRES_",
        extra="ignore",
        populate_by_name=True,
    )

    host: str = Field(default="postgres", description="PostgreSQL host")
    port: int = Field(default=5432, description="PostgreSQL port")
    user: str = Field(default="devuser", description="PostgreSQL user")
    password: str = Field(default="", description="PostgreSQL password")
    database: str = Field(
        default="devdb",
        validation_alias="POSTGRES_DB",
        description="Database name",
    )
    pool_min_size: int = Field(default=1, description="Minimum pool size")
    pool_max_size: int = Field(default=10, description="Maximum pool size")
    pool_timeout: int = Field(default=30, description="Timeout for acquiring connections")

    def get_dsn(self) -> str:
        """Generate PostgreSQL DSN connection string."""
        return (
            f"host={self.host} port={self.port} user={self.user} "
            f"password={self.password} dbname={self.database} sslmode=disable"
        )


class ScheduleSettings(BaseSettings):
    """Limits and defaults applied when creating schedules."""

    model_config = SettingsConfigDict(env_prefix="SCHEDULE_", extra="ignore")

    max_slot_minutes: int = Field(default=240, gt=0, le=240, description="Largest accepted slot length")
    default_slot_minutes: int = Field(default=30, gt=0, le=240, description="Slot length when none is given")
    default_time_zone: str = Field(default="UTC", description="Zone used when none is given")
    id_length: int = Field(default=10, ge=6, description="Length of generated schedule ids")
    max_days: int = Field(default=62, gt=0, description="Longest accepted date range in days")

    @model_validator(mode="after")
    def default_within_max(self) -> "ScheduleSettings":
        if self.default_slot_minutes > self.max_slot_minutes:
            raise ValueError("default_slot_minutes must not exceed max_slot_minutes")
        return self


class CorsSettings(BaseSettings):
    """CORS configuration."""

    model_config = SettingsConfigDict(extra="ignore", populate_by_name=True)

    origins_raw: str = Field(
        default="http://localhost:3000",
        validation_alias="CORS_ORIGINS",
    )
    origins_regex: str = Field(
        default="",
        validation_alias="CORS_ORIGINS_REGEX",
        description="Regex pattern for origins",
    )

    @property
    def origins(self) -> list[str]:
        """Parse comma-separated origins into list."""
        return [o.strip() for o in self.origins_raw.split(",") if o.strip()]

    @property
    def allow_credentials(self) -> bool:
        """Credentials not allowed with wildcard origins."""
        return self.origins != ["*"] and not self.origins_regex


class DebugSettings(BaseSettings):
    """Debug flags configuration."""

    model_config = SettingsConfigDict(extra="ignore")

    request: bool = Field(default=False, alias="request_debug")
    store: bool = Field(default=False, alias="store_debug")

    @field_validator("*", mode="before")
    @classmethod
    def parse_bool(cls, v):
        if isinstance(v, str):
            return v.lower() in ("1", "true", "yes")
        return bool(v)


class Settings:
    """Main application settings combining all configuration sections.

    This is not a BaseSettings subclass to avoid env var conflicts.
    Each subsetting is loaded independently with its own prefix.
    """

    def __init__(self) -> None:
        self.store = StoreSettings()
        self.redis = RedisSettings()
        self.postgres = PostgresSettings()
        self.schedule = ScheduleSettings()
        self.cors = CorsSettings()
        self.debug = DebugSettings()


@lru_cache
def get_settings() -> Settings:
    """Get cached Settings instance (singleton pattern)."""
    return Settings()


def clear_settings_cache() -> None:
    """Clear cached settings (useful for testing)."""
    get_settings.cache_clear()
