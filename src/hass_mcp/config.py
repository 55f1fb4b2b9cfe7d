"""
Configuration management for the Home Assistant MCP server.
"""

import os

# Load environment variables from .env file with HAMCP_ENV_FILE support
# Use absolute path to ensure .env is found regardless of cwd
from pathlib import Path

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

project_root = Path(__file__).parent.parent.parent

env_file = os.getenv("HAMCP_ENV_FILE", ".env")
env_path = project_root / env_file

# Load the specified environment file (silently, since env vars may come from other sources)
if env_path.exists():
    load_dotenv(env_path)
else:
    default_env_path = project_root / ".env"
    if default_env_path.exists():
        load_dotenv(default_env_path)


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Home Assistant connection
    homeassistant_url: str = Field(alias="HOMEASSISTANT_URL")
    homeassistant_token: str = Field(alias="HOMEASSISTANT_TOKEN")

    # Request timeout in seconds
    timeout: int = Field(30, alias="HA_TIMEOUT")

    # Resource rendering
    search_default_limit: int = Field(20, alias="SEARCH_DEFAULT_LIMIT")
    entity_preview_limit: int = Field(5, alias="ENTITY_PREVIEW_LIMIT")

    # Development/Debug configuration
    debug: bool = Field(False, alias="DEBUG")
    log_level: str = Field("INFO", alias="LOG_LEVEL")

    # MCP Server configuration
    mcp_server_name: str = Field("hass-mcp", alias="MCP_SERVER_NAME")

    # Tool filtering - comma-separated list of module names to enable
    # Special values: "all" (default), "readonly" (no service calls)
    enabled_tool_modules: str = Field("all", alias="ENABLED_TOOL_MODULES")

    @field_validator("homeassistant_url")
    @classmethod
    def validate_homeassistant_url(cls, v: str) -> str:
        """Ensure URL is properly formatted."""
        if not v.startswith(("http://", "https://")):
            raise ValueError("Home Assistant URL must start with http:// or https://")
        return v.rstrip("/")

    @field_validator("homeassistant_token")
    @classmethod
    def validate_homeassistant_token(cls, v: str) -> str:
        """Ensure token is not empty."""
        if not v or not v.strip() or v == "your_long_lived_access_token_here":
            raise ValueError("Home Assistant token must be provided")
        return v.strip()

    @field_validator("timeout", "search_default_limit", "entity_preview_limit")
    @classmethod
    def validate_positive(cls, v: int) -> int:
        """Ensure numeric limits are positive."""
        if v <= 0:
            raise ValueError("Value must be a positive integer")
        return v

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Ensure log level is valid."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of {valid_levels}")
        return v.upper()

    model_config = SettingsConfigDict(
        env_file=".env", env_file_encoding="utf-8", case_sensitive=False, extra="allow"
    )


def get_settings() -> Settings:
    """Get application settings."""
    return Settings()  # type: ignore[call-arg]


# Global settings instance
_settings: Settings | None = None


def get_global_settings() -> Settings:
    """Get global settings instance (singleton pattern)."""
    global _settings
    if _settings is None:
        _settings = get_settings()
    return _settings
