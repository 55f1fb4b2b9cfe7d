"""
Automation tools for the Home Assistant MCP server.

Listing reads automation.* states; enabling, disabling, triggering and
reloading go through the automation domain's services.
"""

import logging
from typing import Annotated, Any, Literal

from pydantic import Field

from ..errors import ErrorCode, create_error_response, create_validation_error
from ..resources.aggregation import filter_by_domain, sort_by_entity_id
from ..resources.models import FetchFailure, is_valid_entity_id
from ..resources.projection import lean_projection
from .helpers import exception_to_structured_error, log_tool_usage, raise_tool_error
from .tools_entities import raise_fetch_failure
from .util_helpers import coerce_bool_param

logger = logging.getLogger(__name__)

AUTOMATION_DOMAIN = "automation"

TOGGLE_RESULTS = {"turn_on": "enabled", "turn_off": "disabled", "toggle": "toggled"}


def _require_automation_id(entity_id: str) -> None:
    if not is_valid_entity_id(entity_id) or not entity_id.startswith(f"{AUTOMATION_DOMAIN}."):
        raise_tool_error(
            create_error_response(
                ErrorCode.ENTITY_INVALID_ID,
                f"Entity ID must be an automation (start with '{AUTOMATION_DOMAIN}.'), got '{entity_id}'",
                suggestions=["Use ha_list_automations() to find automation entity IDs"],
                context={"entity_id": entity_id, "parameter": "entity_id"},
            )
        )


def register_automations_tools(mcp: Any, client: Any, **kwargs: Any) -> None:
    """Register automation tools with the MCP server."""
    provider = kwargs.get("provider")
    if not provider:
        raise ValueError("provider is required for automation tools registration")

    async def _call_automation_service(service: str, data: dict[str, Any]) -> None:
        try:
            await client.call_service(AUTOMATION_DOMAIN, service, data)
        except Exception as e:
            context = {"domain": AUTOMATION_DOMAIN, "service": service, **data}
            exception_to_structured_error(e, context=context, raise_error=True)
        logger.info(f"Called service {AUTOMATION_DOMAIN}.{service}")

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["automation"],
            "title": "List Automations",
        }
    )
    @log_tool_usage
    async def ha_list_automations() -> dict[str, Any]:
        """List automations with their enabled state and last trigger time.

        An automation whose state is 'on' is enabled. The last trigger time is
        under attributes.last_triggered (absent if it never ran).
        """
        result = await provider.fetch_all_entities()
        if isinstance(result, FetchFailure):
            raise_fetch_failure(result)

        automations = []
        for entity in sort_by_entity_id(filter_by_domain(result, AUTOMATION_DOMAIN)):
            summary = lean_projection(entity)
            summary["enabled"] = entity.state == "on"
            automations.append(summary)

        response: dict[str, Any] = {
            "success": True,
            "count": len(automations),
            "automations": automations,
        }
        if not automations:
            response["message"] = "No automations found"
        return response

    @mcp.tool(
        annotations={
            "destructiveHint": True,
            "tags": ["automation"],
            "title": "Enable or Disable Automation",
        }
    )
    @log_tool_usage
    async def ha_toggle_automation(
        entity_id: Annotated[
            str, Field(description="Automation entity ID (e.g. 'automation.living_room_lights')")
        ],
        action: Annotated[
            Literal["turn_on", "turn_off", "toggle"],
            Field(default="toggle", description="turn_on enables, turn_off disables"),
        ] = "toggle",
    ) -> dict[str, Any]:
        """Enable, disable or toggle an automation."""
        _require_automation_id(entity_id)
        await _call_automation_service(action, {"entity_id": entity_id})
        return {
            "success": True,
            "entity_id": entity_id,
            "action": action,
            "message": f"Automation {entity_id} has been {TOGGLE_RESULTS[action]}",
        }

    @mcp.tool(
        annotations={
            "destructiveHint": True,
            "tags": ["automation"],
            "title": "Trigger Automation",
        }
    )
    @log_tool_usage
    async def ha_trigger_automation(
        entity_id: Annotated[str, Field(description="Automation entity ID to run")],
        skip_condition: Annotated[
            bool | str,
            Field(default=False, description="Run the actions even if the conditions do not pass"),
        ] = False,
    ) -> dict[str, Any]:
        """Run an automation's actions now.

        EXAMPLES:
        - ha_trigger_automation("automation.morning")
        - ha_trigger_automation("automation.morning", skip_condition=True)
        """
        _require_automation_id(entity_id)
        try:
            skip = coerce_bool_param(skip_condition, "skip_condition", default=False)
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e), parameter="skip_condition"))

        data: dict[str, Any] = {"entity_id": entity_id}
        if skip:
            data["skip_condition"] = True
        await _call_automation_service("trigger", data)
        return {
            "success": True,
            "entity_id": entity_id,
            "message": f"Automation {entity_id} has been triggered",
        }

    @mcp.tool(
        annotations={
            "destructiveHint": True,
            "idempotentHint": True,
            "tags": ["automation"],
            "title": "Reload Automations",
        }
    )
    @log_tool_usage
    async def ha_reload_automations() -> dict[str, Any]:
        """Reload automations from the Home Assistant configuration files."""
        await _call_automation_service("reload", {})
        return {"success": True, "message": "Automations reloaded"}
