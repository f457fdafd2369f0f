"""Library configuration using Pydantic Settings with YAML support.

This module provides centralized configuration management with:
- YAML-based configuration files organized by domain
- Environment-specific overrides (development, test, production)
- Environment variable loading for secrets
- Type validation and coercion
- Caching for performance
"""

from __future__ import annotations

from enum import StrEnum
from functools import lru_cache
from typing import TYPE_CHECKING

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_source import MultiYamlConfigSettingsSource


if TYPE_CHECKING:
    from pydantic_settings import PydanticBaseSettingsSource


class StoreBackend(StrEnum):
    """Entry store implementation to construct.

    - MEMORY: Process-local store, used in tests and as the default
    - REDIS: Redis hashes, one per entity kind
    """

    MEMORY = "memory"
    REDIS = "redis"


# =============================================================================
# Nested Configuration Models (from YAML)
# =============================================================================


class AppSettings(BaseModel):
    """Application identity settings."""

    name: str = "Shopping Companion Cache"
    version: str = "0.1.0"
    debug: bool = False


class LoggingSettings(BaseModel):
    """Logging configuration settings."""

    level: str = "INFO"
    format: str = "json"
    file: str | None = None


class RedisSettings(BaseModel):
    """Redis configuration settings."""

    host: str = "localhost"
    port: int = 6379
    user: str | None = None  # Redis ACL username (Redis 6.0+)
    store_db: int = 0
    queue_db: int = 1
    max_connections: int = 20


class StoreSettings(BaseModel):
    """Entry store selection."""

    backend: StoreBackend = StoreBackend.MEMORY
    key_prefix: str = "companion"


class CacheSettings(BaseModel):
    """Product cache lifecycle thresholds."""

    stale_threshold_hours: float = 24.0  # Refresh after one day
    max_age_hours: float = 168.0  # Delete unpinned entries after 7 days
    eviction_batch_size: int = 10
    max_entries: int = 500
    recent_window_hours: float = 72.0  # Window of interactions feeding scores


class ScoringSettings(BaseModel):
    """Weights for the cache-value scoring function.

    The score blends a saturating access-frequency term with an
    exponentially decaying recency term. Weights are normalized at use,
    so they only need to be non-negative.
    """

    frequency_weight: float = Field(default=0.6, ge=0.0)
    recency_weight: float = Field(default=0.4, ge=0.0)
    frequency_saturation: float = Field(default=5.0, gt=0.0)  # Accesses for ~63%
    recency_half_life_hours: float = Field(default=24.0, gt=0.0)


class PriceTrackingSettings(BaseModel):
    """Price-drop alert and price history retention settings."""

    drop_alert_percent: float = 10.0
    history_retention_days: int = 90
    history_limit: int = 100


class InteractionSettings(BaseModel):
    """Interaction log retention and query limits."""

    retention_days: int = 30
    recent_limit: int = 1000
    by_type_limit: int = 100


class ArqSettings(BaseModel):
    """ARQ background worker configuration."""

    queue_name: str = "companion:queue:jobs"
    health_check_key: str = "companion:queue:health-check"
    cron_enabled: bool = True


# =============================================================================
# Main Settings Class
# =============================================================================


class Settings(BaseSettings):
    """Library settings with YAML + environment variable support.

    Configuration is loaded from multiple sources with the following priority
    (highest to lowest):
    1. Values passed to ``Settings()``
    2. Environment variables
    3. .env file (secrets only)
    4. Environment-specific YAML files (config/environments/{APP_ENV}/)
    5. Base YAML files (config/base/)
    6. Default values in code

    Environment variables can override any setting using the nested delimiter '__'.
    For example: CACHE__MAX_ENTRIES=1000 overrides cache.max_entries.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_ignore_empty=True,
        extra="ignore",
        case_sensitive=False,
        env_nested_delimiter="__",
    )

    APP_ENV: str = "development"

    app: AppSettings = AppSettings()
    logging: LoggingSettings = LoggingSettings()
    redis: RedisSettings = RedisSettings()
    store: StoreSettings = StoreSettings()
    cache: CacheSettings = CacheSettings()
    scoring: ScoringSettings = ScoringSettings()
    price_tracking: PriceTrackingSettings = PriceTrackingSettings()
    interactions: InteractionSettings = InteractionSettings()
    arq: ArqSettings = ArqSettings()

    # Secrets (from .env only - never in YAML)
    REDIS_PASSWORD: str = ""

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Place the YAML source between the .env file and Docker secrets."""
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            MultiYamlConfigSettingsSource(settings_cls),
            file_secret_settings,
        )

    def _build_redis_url(self, db: int) -> str:
        """Build a Redis URL, with ACL user and password when configured.

        URL format: redis://[user:password@]host:port/db
        """
        auth_part = ""
        if self.redis.user and self.REDIS_PASSWORD:
            auth_part = f"{self.redis.user}:{self.REDIS_PASSWORD}@"
        elif self.REDIS_PASSWORD:
            auth_part = f":{self.REDIS_PASSWORD}@"
        elif self.redis.user:
            auth_part = f"{self.redis.user}@"

        return f"redis://{auth_part}{self.redis.host}:{self.redis.port}/{db}"

    @property
    def redis_store_url(self) -> str:
        """Redis URL of the entry store database."""
        return self._build_redis_url(self.redis.store_db)

    @property
    def redis_queue_url(self) -> str:
        """Redis URL of the ARQ queue database."""
        return self._build_redis_url(self.redis.queue_db)

    @property
    def is_development(self) -> bool:
        """Check if running in development environment."""
        return self.APP_ENV == "development"

    @property
    def is_testing(self) -> bool:
        """Check if running in test environment."""
        return self.APP_ENV == "test"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance.

    Using lru_cache ensures settings are only loaded once.
    """
    return Settings()
