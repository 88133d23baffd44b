"""Configuration schema using Pydantic.

Single data model and defaults for the service, persisted to ~/.mcpforge/config.json.
"""

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerConfig(BaseModel):
    """HTTP transport binding configuration."""
    host: str = "0.0.0.0"
    port: int = 3001
    cors_origins: list[str] = Field(default_factory=lambda: ["*"])
    # Only behind a trusted proxy: X-Client-Id becomes the rate-limit identity instead of the peer address.
    trust_client_id_header: bool = False


class ProtocolConfig(BaseModel):
    """Envelope protocol tag and advertised service version."""
    jsonrpc: str = "2.0"
    service_version: str = "2.0.0"
    server_name: str = "AgentForge MCP Server"
    description: str = "MCP server for AgentForge static analysis and project setup"


def _default_priority_limits() -> dict[str, int]:
    return {"low": 10, "normal": 30, "high": 60, "critical": 100}


class LimitsConfig(BaseModel):
    """Rate-limit tiers and concurrency ceilings."""
    window_seconds: int = 60
    priority_limits: dict[str, int] = Field(default_factory=_default_priority_limits)
    max_concurrent_requests: int = 50
    max_concurrent_batches: int = 10
    max_batch_size: int = 100
    max_retry_count: int = 5
    retry_warning_threshold: int = 3
    concurrency_retry_after_seconds: int = 30


class CacheConfig(BaseModel):
    """Result cache for cacheable methods."""
    enabled: bool = True
    max_entries: int = 1000
    ttl_seconds: float = 300.0  # 0 disables expiry


class LoggingConfig(BaseModel):
    """Loguru sink settings."""
    level: str = "INFO"
    file_enabled: bool = False


class Config(BaseSettings):
    """Root configuration for mcpforge."""
    server: ServerConfig = Field(default_factory=ServerConfig)
    protocol: ProtocolConfig = Field(default_factory=ProtocolConfig)
    limits: LimitsConfig = Field(default_factory=LimitsConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
    # Method handler providers as "package.module:attribute".
    providers: list[str] = Field(default_factory=list)

    model_config = SettingsConfigDict(
        env_prefix="MCPFORGE_",
        env_nested_delimiter="__",
    )
