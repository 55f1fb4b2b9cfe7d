"""
Registration of ``hass://`` resources on a FastMCP server.

Every resource rebuilds its canonical URI and hands it to the router, so the
MCP surface and ``ResourceRouter.resolve`` share one code path.
"""

import logging
from typing import Any
from urllib.parse import quote

from .router import ResourceRouter

logger = logging.getLogger(__name__)

MIME_TYPE = "text/markdown"


def register_entity_resources(mcp: Any, router: ResourceRouter) -> None:
    """Register the six entity views with the MCP server."""

    @mcp.resource(
        "hass://entities",
        name="all_entities",
        description="All Home Assistant entities grouped by domain (first few per domain)",
        mime_type=MIME_TYPE,
    )
    async def all_entities_resource() -> str:
        return await router.resolve("hass://entities")

    @mcp.resource(
        "hass://entities/{entity_id}",
        name="entity",
        description="State and key attributes of one entity",
        mime_type=MIME_TYPE,
    )
    async def entity_resource(entity_id: str) -> str:
        return await router.resolve(f"hass://entities/{quote(entity_id, safe='')}")

    @mcp.resource(
        "hass://entities/{entity_id}/detailed",
        name="entity_detailed",
        description="Every attribute and the context data of one entity",
        mime_type=MIME_TYPE,
    )
    async def entity_detailed_resource(entity_id: str) -> str:
        return await router.resolve(f"hass://entities/{quote(entity_id, safe='')}/detailed")

    @mcp.resource(
        "hass://entities/domain/{domain}",
        name="domain_entities",
        description="Every entity of one domain with its domain-relevant attributes",
        mime_type=MIME_TYPE,
    )
    async def domain_resource(domain: str) -> str:
        return await router.resolve(f"hass://entities/domain/{quote(domain, safe='')}")

    @mcp.resource(
        "hass://entities/domain/{domain}/summary",
        name="domain_summary",
        description="State distribution and attribute summary for one domain",
        mime_type=MIME_TYPE,
    )
    async def domain_summary_resource(domain: str) -> str:
        return await router.resolve(f"hass://entities/domain/{quote(domain, safe='')}/summary")

    @mcp.resource(
        "hass://search/{query}",
        name="search",
        description="Entities whose ID, name or state contains the query",
        mime_type=MIME_TYPE,
    )
    async def search_resource(query: str) -> str:
        return await router.resolve(f"hass://search/{quote(query, safe='')}")

    @mcp.resource(
        "hass://search/{query}/{limit}",
        name="search_with_limit",
        description="Entity search returning at most {limit} results",
        mime_type=MIME_TYPE,
    )
    async def search_with_limit_resource(query: str, limit: str) -> str:
        return await router.resolve(f"hass://search/{quote(query, safe='')}/{quote(limit, safe='')}")

    logger.debug("Registered hass:// entity resources")
