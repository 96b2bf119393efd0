"""
Shared configuration management for the User Posts Gateway.
"""

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="USER_POSTS_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment name.")
    log_level: str = Field(default="info", description="Root log level.")

    # Server
    server_host: str = Field(default="127.0.0.1", description="Bind host for the HTTP server.")
    server_port: int = Field(default=8080, ge=1, le=65535, description="Bind port for the HTTP server.")


class GatewaySettings(BaseConfig):
    """Settings for the user posts gateway."""

    # Upstream
    user_api_base_url: str = Field(
        default="https://jsonplaceholder.typicode.com",
        min_length=1,
        description="Base URL of the upstream users/posts REST API.",
    )

    # Cache
    cache_enabled: bool = Field(default=True, description="Disable to bypass the in-memory cache.")
    cache_ttl_seconds: float = Field(default=300.0, gt=0, description="Lifetime of a cache entry (5m).")
    cache_cleanup_interval_seconds: float = Field(
        default=600.0,
        description="Interval between sweeps of expired entries (10m). Non-positive disables sweeping.",
    )


def get_settings(**overrides) -> GatewaySettings:
    """Load gateway settings from the environment, applying explicit overrides."""
    return GatewaySettings(**overrides)
