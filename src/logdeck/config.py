"""
logdeck Configuration Module.

Handles application settings, feature flags, and storage configuration.
Uses pydantic-settings for validation and type safety.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class FeatureFlags(BaseSettings):
    """Feature flags for enabling/disabling endpoint groups."""

    model_config = SettingsConfigDict(env_prefix="FEATURE_")

    ingest: bool = True
    query: bool = True
    stats: bool = True
    bulk: bool = True
    stream: bool = True

    def to_dict(self) -> dict[str, bool]:
        """Return feature flags as dictionary for health endpoint."""
        return {
            "ingest": self.ingest,
            "query": self.query,
            "stats": self.stats,
            "bulk": self.bulk,
            "stream": self.stream,
        }


class StorageSettings(BaseSettings):
    """JSON file storage configuration."""

    model_config = SettingsConfigDict(env_prefix="STORAGE_")

    path: str = Field(default="data/logs.json", description="Path of the JSON file holding all log records")
    encoding: str = Field(default="utf-8", description="Encoding used to read and write the log file")


class Settings(BaseSettings):
    """Main application settings."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Application
    app_env: Literal["development", "staging", "production"] = "development"
    app_debug: bool = False
    app_log_level: str = "INFO"

    # HTTP surface
    api_prefix: str = Field(default="/api", description="Prefix mounted in front of the logs router")
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])

    # Query defaults
    default_page_size: int = Field(default=50, ge=1)
    max_page_size: int = Field(default=1000, ge=1)

    # Live tail
    stream_poll_seconds: float = Field(
        default=1.0,
        gt=0,
        description="Interval between file polls while streaming new records",
    )

    # Nested settings
    features: FeatureFlags = Field(default_factory=FeatureFlags)
    storage: StorageSettings = Field(default_factory=StorageSettings)

    @property
    def is_production(self) -> bool:
        """Check if running in production."""
        return self.app_env == "production"


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
