"""
Home Assistant MCP server assembly.

Wires the HTTP client, the state provider, the hass:// resource router and
the auto-discovered tools onto one FastMCP instance.
"""

import logging
from typing import Any

from fastmcp import FastMCP

from .client.rest_client import HomeAssistantClient
from .config import Settings, get_global_settings
from .resources import ResourceRouter, RestStateProvider, register_entity_resources
from .tools.registry import ToolsRegistry

logger = logging.getLogger(__name__)

SERVER_INSTRUCTIONS = """\
Home Assistant entity states and actions.

Read hass:// resources for Markdown views (hass://entities, \
hass://entities/{entity_id}, hass://entities/domain/{domain}/summary, \
hass://search/{query}) or use the ha_* tools for structured data and service calls.
"""


class HomeAssistantMCPServer:
    """FastMCP server exposing Home Assistant resources and tools."""

    def __init__(
        self,
        client: Any | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_global_settings()
        self.client = client or HomeAssistantClient(
            base_url=self.settings.homeassistant_url,
            token=self.settings.homeassistant_token,
            timeout=self.settings.timeout,
        )
        self.provider = RestStateProvider(self.client)
        self.router = ResourceRouter(
            self.provider,
            default_search_limit=self.settings.search_default_limit,
            preview_limit=self.settings.entity_preview_limit,
        )

        self.mcp = FastMCP(
            name=self.settings.mcp_server_name,
            instructions=SERVER_INSTRUCTIONS,
        )

        register_entity_resources(self.mcp, self.router)
        self.tools_registry = ToolsRegistry(self, enabled_modules=self.settings.enabled_tool_modules)
        self.tools_registry.register_all_tools()

        logger.info(f"MCP server '{self.settings.mcp_server_name}' ready")

    async def close(self) -> None:
        """Release the HTTP client."""
        if hasattr(self.client, "close"):
            await self.client.close()
