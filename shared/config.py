"""
Shared configuration management for the SEO metadata service.
"""

from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    """Base configuration class with common settings."""

    model_config = SettingsConfigDict(
        env_prefix="SEO_",
        env_file=".env",
        case_sensitive=False,
        extra="ignore"
    )
    
    # Environment
    env: str = Field(default="local")
    log_level: str = Field(default="info")
    
    # External services
    redis_url: str = Field(default="redis://localhost:6379/0")
    postgres_dsn: str = Field(default="postgres://localhost:5432/seo")
    store_backend: str = Field(default="postgres", description="postgres | memory")
    cache_backend: str = Field(default="redis", description="redis | memory")
    
    # Cache policy
    cache_namespace: str = Field(default="seo-svc")
    cache_ttl_seconds: int = Field(default=3600)
    operation_timeout_seconds: float = Field(default=5.0)
    
    # RPC front end
    grpc_enabled: bool = Field(default=True)
    grpc_port: int = Field(default=50051)
    
    # Service discovery
    discovery_url: Optional[str] = Field(default=None)
    public_scheme: str = Field(default="http")
    public_domain: str = Field(default="localhost")
    
    # Observability
    enable_tracing: bool = Field(default=False)
    otel_exporter: str = Field(default="http://localhost:4317")
    enable_console_tracing: bool = Field(default=False)

    @field_validator("store_backend")
    @classmethod
    def _check_store_backend(cls, value: str) -> str:
        if value not in ("postgres", "memory"):
            raise ValueError(f"unsupported store backend: {value}")
        return value

    @field_validator("cache_backend")
    @classmethod
    def _check_cache_backend(cls, value: str) -> str:
        if value not in ("redis", "memory"):
            raise ValueError(f"unsupported cache backend: {value}")
        return value

    @field_validator("cache_ttl_seconds")
    @classmethod
    def _check_ttl(cls, value: int) -> int:
        # Entries must always expire so that a missed invalidation is bounded
        if value <= 0:
            raise ValueError("cache_ttl_seconds must be positive")
        return value


class ServiceConfig(BaseConfig):
    """Service-specific configuration."""
    
    service_name: str
    port: int
    host: str = "0.0.0.0"
    
    def __init__(self, service_name: str, port: int, **kwargs):
        super().__init__(service_name=service_name, port=port, **kwargs)

    @property
    def public_address(self) -> str:
        """Address announced to service discovery."""
        return f"{self.public_scheme}://{self.public_domain}:{self.port}"


def get_config(service_name: str, port: int, **overrides) -> ServiceConfig:
    """Get configuration for a specific service."""
    return ServiceConfig(service_name=service_name, port=port, **overrides)
