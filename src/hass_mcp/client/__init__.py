"""Home Assistant API clients."""

from .rest_client import (
    HomeAssistantAPIError,
    HomeAssistantAuthError,
    HomeAssistantClient,
    HomeAssistantConnectionError,
    HomeAssistantError,
)

__all__ = [
    "HomeAssistantAPIError",
    "HomeAssistantAuthError",
    "HomeAssistantClient",
    "HomeAssistantConnectionError",
    "HomeAssistantError",
]
