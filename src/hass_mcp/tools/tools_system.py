"""
System tools for the Home Assistant MCP server: API status, configuration,
template rendering, the error log and event types.
"""

import logging
from typing import Annotated, Any

from pydantic import Field

from ..errors import create_validation_error
from .helpers import exception_to_structured_error, log_tool_usage, raise_tool_error
from .util_helpers import coerce_int_param

logger = logging.getLogger(__name__)

# Subset of /api/config worth returning to an agent
CONFIG_KEYS = (
    "location_name",
    "version",
    "time_zone",
    "unit_system",
    "latitude",
    "longitude",
    "elevation",
    "country",
    "language",
    "currency",
    "state",
    "safe_mode",
)


def register_system_tools(mcp: Any, client: Any, **kwargs: Any) -> None:
    """Register Home Assistant system tools."""

    @mcp.tool(annotations={"idempotentHint": True, "readOnlyHint": True, "tags": ["system"], "title": "API Status"})
    @log_tool_usage
    async def ha_api_status() -> dict[str, Any]:
        """Verify that the Home Assistant API is online and the token is accepted."""
        try:
            status = await client.get_api_status()
        except Exception as e:
            exception_to_structured_error(e, raise_error=True)

        return {
            "success": True,
            "online": True,
            "message": status.get("message", "API is accessible"),
            "url": getattr(client, "base_url", None),
        }

    @mcp.tool(annotations={"idempotentHint": True, "readOnlyHint": True, "tags": ["system"], "title": "Get Configuration"})
    @log_tool_usage
    async def ha_get_config() -> dict[str, Any]:
        """Get core Home Assistant configuration (version, location, time zone, units, components)."""
        try:
            config = await client.get_config()
        except Exception as e:
            exception_to_structured_error(e, raise_error=True)

        components = config.get("components", [])
        return {
            "success": True,
            "config": {key: config[key] for key in CONFIG_KEYS if key in config},
            "component_count": len(components),
            "components": sorted(components),
        }

    @mcp.tool(annotations={"idempotentHint": True, "readOnlyHint": True, "tags": ["system"], "title": "Render Template"})
    @log_tool_usage
    async def ha_render_template(template: str) -> dict[str, Any]:
        """Render a Home Assistant (Jinja2) template.

        EXAMPLES:
        - ha_render_template("{{ states('sensor.temperature') }}")
        - ha_render_template("{{ states.light | selectattr('state', 'eq', 'on') | list | count }}")
        """
        if not template or not template.strip():
            raise_tool_error(create_validation_error("Template must not be empty", parameter="template"))

        try:
            rendered = await client.render_template(template)
        except Exception as e:
            exception_to_structured_error(e, context={"template": template}, raise_error=True)

        return {"success": True, "template": template, "result": rendered}

    @mcp.tool(annotations={"idempotentHint": True, "readOnlyHint": True, "tags": ["system"], "title": "Get Error Log"})
    @log_tool_usage
    async def ha_get_error_log(
        max_lines: Annotated[
            int | str,
            Field(default=200, description="Return only the last N lines (default: 200)"),
        ] = 200,
    ) -> dict[str, Any]:
        """Get the tail of the Home Assistant error log for the current session."""
        try:
            max_lines_int = coerce_int_param(max_lines, "max_lines", default=200, min_value=1)
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e), parameter="max_lines"))

        try:
            log_text = await client.get_error_log()
        except Exception as e:
            exception_to_structured_error(e, raise_error=True)

        lines = log_text.splitlines()
        tail = lines[-max_lines_int:]
        return {
            "success": True,
            "total_lines": len(lines),
            "returned_lines": len(tail),
            "truncated": len(tail) < len(lines),
            "log": "\n".join(tail),
        }

    @mcp.tool(annotations={"idempotentHint": True, "readOnlyHint": True, "tags": ["system"], "title": "List Event Types"})
    @log_tool_usage
    async def ha_get_events() -> dict[str, Any]:
        """List the event types on the Home Assistant event bus with their listener counts."""
        try:
            events = await client.get_events()
        except Exception as e:
            exception_to_structured_error(e, raise_error=True)

        event_types = sorted(
            (
                {"event": event.get("event"), "listener_count": event.get("listener_count", 0)}
                for event in events
                if isinstance(event, dict) and event.get("event")
            ),
            key=lambda event: event["event"],
        )
        return {"success": True, "count": len(event_types), "events": event_types}
