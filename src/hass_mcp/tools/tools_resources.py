"""
Tool access to hass:// resources, for MCP clients that cannot read resources.
"""

import logging
from typing import Any

from .helpers import log_tool_usage

logger = logging.getLogger(__name__)


def register_resources_tools(mcp: Any, client: Any, **kwargs: Any) -> None:
    """Register the resource reader tool."""
    router = kwargs.get("router")
    if not router:
        raise ValueError("router is required for resource tools registration")

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["resources"],
            "title": "Read Resource",
        }
    )
    @log_tool_usage
    async def ha_read_resource(uri: str) -> str:
        """Read a hass:// resource and return its Markdown document.

        URIs:
        - hass://entities (all entities, first 5 per domain)
        - hass://entities/{entity_id} (lean view)
        - hass://entities/{entity_id}/detailed (every attribute)
        - hass://entities/domain/{domain} (every entity of a domain)
        - hass://entities/domain/{domain}/summary (state distribution and attribute summary)
        - hass://search/{query}[/{limit}] (search, default limit 20)

        Errors are returned as text in the document, never raised.
        """
        return await router.resolve(uri)
