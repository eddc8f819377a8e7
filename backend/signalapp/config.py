"""Application configuration."""

from functools import lru_cache

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Indicator cache
    indicator_cache_enabled: bool = True
    indicator_cache_ttl_seconds: float = 300.0
    indicator_cache_max_entries: int = 1024
    indicator_cache_sample_size: int = 10  # trailing averages hashed into cache keys

    # Strategies (empty = every registered strategy)
    enabled_strategies: list[str] = []

    # Logging
    log_level: str = "INFO"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
