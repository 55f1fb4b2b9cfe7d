"""
Service call tools for the Home Assistant MCP server.
"""

import logging
from typing import Annotated, Any

from pydantic import Field

from ..errors import ErrorCode, create_error_response, create_validation_error
from .helpers import exception_to_structured_error, log_tool_usage, raise_tool_error
from .util_helpers import parse_json_param

logger = logging.getLogger(__name__)


def register_service_tools(mcp: Any, client: Any, **kwargs: Any) -> None:
    """Register service call tools with the MCP server."""

    @mcp.tool(
        annotations={
            "destructiveHint": True,
            "tags": ["service"],
            "title": "Call Service",
        }
    )
    @log_tool_usage
    async def ha_call_service(
        domain: str,
        service: str,
        entity_id: str | None = None,
        data: Annotated[
            dict[str, Any] | str | None,
            Field(
                default=None,
                description="Service data as an object or JSON string (e.g. {\"brightness\": 128})",
            ),
        ] = None,
    ) -> dict[str, Any]:
        """Call any Home Assistant service (action).

        EXAMPLES:
        - ha_call_service("light", "turn_on", entity_id="light.kitchen", data={"brightness": 128})
        - ha_call_service("climate", "set_temperature", entity_id="climate.hall", data={"temperature": 21})
        - ha_call_service("automation", "trigger", entity_id="automation.morning")
        """
        try:
            service_data = parse_json_param(data, "data") or {}
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e), parameter="data", invalid_json=True))

        if entity_id:
            service_data = {**service_data, "entity_id": entity_id}

        try:
            changed_states = await client.call_service(domain, service, service_data)
        except Exception as e:
            context: dict[str, Any] = {"domain": domain, "service": service}
            if entity_id:
                context["entity_id"] = entity_id
            exception_to_structured_error(e, context=context, raise_error=True)

        logger.info(f"Called service {domain}.{service}")
        return {
            "success": True,
            "domain": domain,
            "service": service,
            "changed_entities": [state.get("entity_id") for state in changed_states],
            "message": f"Successfully called {domain}.{service}",
        }

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["service"],
            "title": "List Services",
        }
    )
    @log_tool_usage
    async def ha_list_services(domain: str | None = None) -> dict[str, Any]:
        """List available services, optionally for a single domain, with their fields."""
        try:
            services = await client.get_services()
        except Exception as e:
            exception_to_structured_error(e, raise_error=True)

        if domain:
            services = [entry for entry in services if entry.get("domain") == domain]
            if not services:
                raise_tool_error(
                    create_error_response(
                        ErrorCode.SERVICE_NOT_FOUND,
                        f"No services found for domain: {domain}",
                        context={"domain": domain},
                    )
                )

        result: dict[str, Any] = {}
        for entry in services:
            result[entry.get("domain", "unknown")] = {
                name: {
                    "description": info.get("description", ""),
                    "fields": sorted(info.get("fields", {})),
                }
                for name, info in sorted(entry.get("services", {}).items())
            }

        return {
            "success": True,
            "domain_count": len(result),
            "services": result,
        }
