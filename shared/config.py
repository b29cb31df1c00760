"""
Shared configuration management for Civic Sights services.
"""

from typing import List, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="CIVIC_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )

    # Environment
    env: str = Field(default="local", description="Deployment environment")
    log_level: str = Field(default="info", description="Log level")

    # Durable storage
    postgres_dsn: str = Field(default="postgres://localhost:5432/civic_sights")
    postgres_connect_timeout: float = Field(default=5.0, description="Seconds to wait for a connection")
    postgres_command_timeout: float = Field(default=30.0, description="Seconds per statement")
    postgres_min_pool_size: int = Field(default=2)
    postgres_max_pool_size: int = Field(default=10)

    # Observability
    enable_tracing: bool = Field(default=False)
    otel_exporter: Optional[str] = Field(
        default=None,
        description="OTLP endpoint; unset defers to OTEL_EXPORTER_OTLP_* variables"
    )
    enable_console_tracing: bool = Field(default=False)

    # Cross-origin requests; only the gateway origin by default
    allowed_origins: List[str] = Field(default_factory=lambda: ["http://localhost:8000"])


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""

    service_name: str
    port: int
    host: str = "0.0.0.0"

    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


class ArticlesConfig(ServiceConfig):
    """Configuration for the articles service."""

    # Gateway-only access
    gateway_only: bool = Field(default=True, description="Reject requests that bypass the API gateway")
    gateway_token: str = Field(default="", description="Shared secret sent by the gateway")
    allowed_ips: List[str] = Field(default_factory=lambda: ["127.0.0.1", "localhost", "::1"])
    bypass_paths: List[str] = Field(default_factory=lambda: ["/health", "/metrics", "/articles/health"])

    # Premium content
    paid_roles: List[str] = Field(default_factory=lambda: ["PAID_USER", "ROLE_PAID_USER"])

    # Pagination
    default_page_size: int = Field(default=25, ge=1)
    max_page_size: int = Field(default=100, ge=1)

    def __init__(self, service_name: str = "articles", port: int = 8020, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)


def get_config(service_name: str, port: int) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port)


def get_articles_config(**overrides) -> ArticlesConfig:
    """Get configuration for the articles service."""
    return ArticlesConfig(**overrides)
