"""
Session Monitor - Configuration Settings

Centralized configuration using Pydantic Settings for type-safe
environment variable handling with validation.
"""

from functools import lru_cache
from typing import Literal

from pydantic import Field, computed_field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application settings loaded from environment variables.

    All settings can be overridden via environment variables.
    Example: HISTORY_MAX_SNAPSHOTS=5000 will set history_max_snapshots to 5000
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # =========================================================================
    # Application Settings
    # =========================================================================
    app_env: Literal["development", "staging", "production"] = Field(
        default="development",
        description="Application environment"
    )
    app_debug: bool = Field(
        default=True,
        description="Enable debug mode"
    )
    app_log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging level"
    )

    # =========================================================================
    # API Configuration
    # =========================================================================
    api_host: str = Field(
        default="0.0.0.0",
        description="API server bind address"
    )
    api_port: int = Field(
        default=8000,
        description="API server port"
    )
    api_prefix: str = Field(
        default="/api/session-monitor",
        description="Route prefix for the session monitor endpoints"
    )

    # =========================================================================
    # Security / Access Control
    # =========================================================================
    api_token: str | None = Field(
        default=None,
        description="API token for session monitor endpoints (optional)"
    )
    metrics_token: str | None = Field(
        default=None,
        description="Token required to access /metrics (optional)"
    )
    cors_allow_origins: str = Field(
        default="http://localhost:3000,http://localhost:8501",
        description="Comma-separated list of allowed CORS origins"
    )

    # =========================================================================
    # Metrics Configuration
    # =========================================================================
    metrics_enabled: bool = Field(
        default=True,
        description="Export session counters as Prometheus metrics"
    )
    metrics_external_enabled: bool = Field(
        default=False,
        description="Enable standalone metrics server (binds separate port)"
    )
    metrics_port: int = Field(
        default=9100,
        description="Prometheus metrics port"
    )

    # =========================================================================
    # Session History
    # =========================================================================
    history_max_snapshots: int = Field(
        default=10000,
        ge=1,
        description="Capacity of the snapshot history ring (oldest evicted first)"
    )
    history_query_default_count: int = Field(
        default=100,
        ge=1,
        description="Default number of snapshots returned by /history"
    )
    history_query_max_count: int = Field(
        default=10000,
        ge=1,
        description="Hard ceiling for maxCount on /history"
    )
    snapshot_interval_seconds: int = Field(
        default=60,
        ge=0,
        description="Periodic snapshot sampling interval (0 disables sampling)"
    )

    # =========================================================================
    # Deployment Windows
    # =========================================================================
    deployment_window_default_minutes: int = Field(
        default=5,
        ge=1,
        description="Default length of a candidate deployment window"
    )
    deployment_window_default_lookback_hours: int = Field(
        default=24,
        ge=1,
        description="Default history lookback for deployment window search"
    )
    deployment_window_max_lookback_hours: int = Field(
        default=168,
        ge=1,
        description="Upper bound for the deployment window lookback"
    )
    deployment_windows_max_results: int = Field(
        default=10,
        ge=1,
        description="Maximum number of ranked windows returned"
    )

    # =========================================================================
    # Deployment Status File
    # =========================================================================
    status_file_path: str = Field(
        default="wwwroot/reconnection-status.json",
        description="JSON status document polled by clients for deployment banners"
    )

    @computed_field  # type: ignore[prop-decorator]
    @property
    def cors_allow_origins_list(self) -> list[str]:
        """Return CORS origins as a list."""
        if not self.cors_allow_origins:
            return []
        return [origin.strip() for origin in self.cors_allow_origins.split(",") if origin.strip()]

    @model_validator(mode="after")
    def _validate_production_security(self) -> "Settings":
        """Enforce required security settings in production."""
        if self.app_env == "production":
            missing: list[str] = []
            if not self.api_token:
                missing.append("API_TOKEN")
            if not self.metrics_token:
                missing.append("METRICS_TOKEN")
            if missing:
                raise ValueError(
                    "Missing required settings for production: "
                    + ", ".join(missing)
                )
        return self


@lru_cache
def get_settings() -> Settings:
    """
    Get cached settings instance.

    Uses LRU cache to avoid re-parsing environment on every call.
    """
    return Settings()


# Singleton settings instance for easy import
settings = get_settings()
