"""
Configuration Management Module

Configures application parameters via environment variables or .env file.
Covers the provider connection, the tool-call loop limits, the response store
backend and MCP tool loading.
"""

from functools import lru_cache
from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Application Configuration Class

    All configuration items can be overridden by environment variables, with names matching fields (uppercase).
    """

    # Application Config
    APP_NAME: str = "Responses Gateway"
    DEBUG: bool = False
    # Gateway log level (DEBUG, INFO, WARNING, ...); derived from DEBUG when unset
    LOG_LEVEL: Optional[str] = None

    # Provider Config
    # Base URL used when the request carries no x-model-provider header
    MODEL_BASE_URL: str = "https://api.groq.com/openai/v1"
    # Request timeout for provider and MCP HTTP calls (seconds)
    HTTP_TIMEOUT: int = 300

    # Tool Loop Config
    # Max function calls allowed in one logical response
    MAX_TOOL_CALLS: int = 10
    # Max duration of a streaming session (ms)
    MAX_STREAMING_TIMEOUT_MS: int = 60000
    # Overall timeout of a non-streaming request (seconds)
    REQUEST_TIMEOUT_SECONDS: int = 30

    # Response Store Config
    # "memory" keeps responses in a bounded LRU cache, "redis" uses Redis
    RESPONSE_STORE_TYPE: Literal["memory", "redis"] = "memory"
    # Max responses kept by the in-memory store
    RESPONSE_STORE_CACHE_SIZE: int = 10000
    # Expiry of stored responses in Redis (None means never expires)
    RESPONSE_STORE_TTL_SECONDS: Optional[int] = None
    # Redis connection URL (only used when RESPONSE_STORE_TYPE is "redis")
    REDIS_URL: str = "redis://localhost:6379/0"

    # Tool Config
    # Enable loading tools from MCP servers
    TOOLS_MCP_ENABLED: bool = True
    # JSON file describing MCP servers: {"mcpServers": {"name": {"url": "..."}}}
    MCP_SERVER_CONFIG_FILE_PATH: str = "mcp-servers-config.json"

    # CORS Config
    # Comma-separated list of allowed origins for CORS
    # Example: "http://localhost:3000,https://example.com"
    ALLOWED_ORIGINS: str = ""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
    )


@lru_cache()
def get_settings() -> Settings:
    """
    Get application configuration (Singleton)

    Uses lru_cache to ensure configuration is loaded only once.

    Returns:
        Settings: Application configuration instance
    """
    return Settings()
