"""
Home Assistant MCP Server

A Model Context Protocol server exposing Home Assistant entity states as
hass:// resources and its REST API as tools.
"""

__version__ = "1.0.0"
__license__ = "MIT"

from .client.rest_client import HomeAssistantClient
from .config import Settings
from .errors import (
    ErrorCode,
    create_error_response,
    get_error_code,
    get_error_message,
    is_error_response,
)
from .resources import ResourceRouter, RestStateProvider, parse_resource_uri
from .server import HomeAssistantMCPServer

__all__ = [
    "Settings",
    "HomeAssistantClient",
    "HomeAssistantMCPServer",
    "ResourceRouter",
    "RestStateProvider",
    "parse_resource_uri",
    # Error handling exports
    "ErrorCode",
    "create_error_response",
    "is_error_response",
    "get_error_code",
    "get_error_message",
]
