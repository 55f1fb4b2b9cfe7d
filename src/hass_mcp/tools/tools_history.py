"""
History and logbook tools for the Home Assistant MCP server.
"""

import logging
from datetime import UTC, datetime, timedelta
from typing import Annotated, Any

from pydantic import Field

from ..errors import create_validation_error
from .helpers import exception_to_structured_error, log_tool_usage, raise_tool_error
from .util_helpers import coerce_bool_param, coerce_int_param

logger = logging.getLogger(__name__)

DEFAULT_HOURS = 24


def _default_start_time(hours: int) -> str:
    return (datetime.now(UTC) - timedelta(hours=hours)).isoformat()


def _validate_timestamp(value: str | None, param_name: str) -> str | None:
    """Accept ISO 8601 timestamps (a trailing 'Z' included)."""
    if value is None or not value.strip():
        return None
    value = value.strip()
    try:
        datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"{param_name} must be an ISO 8601 timestamp, got '{value}'") from None
    return value


def register_history_tools(mcp: Any, client: Any, **kwargs: Any) -> None:
    """Register history and logbook tools."""

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["history"],
            "title": "Get Entity History",
        }
    )
    @log_tool_usage
    async def ha_get_history(
        entity_id: str,
        start_time: Annotated[
            str | None,
            Field(default=None, description="ISO 8601 start (default: 24 hours ago)"),
        ] = None,
        end_time: Annotated[
            str | None,
            Field(default=None, description="ISO 8601 end (default: now)"),
        ] = None,
        minimal_response: bool | str = True,
        limit: Annotated[
            int | str,
            Field(default=100, description="Return only the most recent N state changes"),
        ] = 100,
    ) -> dict[str, Any]:
        """Get the state history of one entity.

        Returns the most recent state changes (oldest first) and the number of
        changes per state value.
        """
        try:
            start = _validate_timestamp(start_time, "start_time") or _default_start_time(DEFAULT_HOURS)
            end = _validate_timestamp(end_time, "end_time")
            minimal = coerce_bool_param(minimal_response, "minimal_response", default=True)
            limit_int = coerce_int_param(limit, "limit", default=100, min_value=1)
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e)))

        try:
            history = await client.get_history(
                entity_id=entity_id,
                start_time=start,
                end_time=end,
                minimal_response=bool(minimal),
            )
        except Exception as e:
            exception_to_structured_error(e, context={"entity_id": entity_id}, raise_error=True)

        changes = history[0] if history else []
        state_counts: dict[str, int] = {}
        for change in changes:
            state = change.get("state") or "unknown"
            state_counts[state] = state_counts.get(state, 0) + 1

        recent = changes[-limit_int:]
        return {
            "success": True,
            "entity_id": entity_id,
            "start_time": start,
            "end_time": end,
            "total_changes": len(changes),
            "returned": len(recent),
            "state_counts": state_counts,
            "changes": [
                {
                    "state": change.get("state"),
                    "last_changed": change.get("last_changed"),
                }
                for change in recent
            ],
        }

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["history"],
            "title": "Get Logbook",
        }
    )
    @log_tool_usage
    async def ha_get_logbook(
        entity_id: str | None = None,
        start_time: Annotated[
            str | None,
            Field(default=None, description="ISO 8601 start (default: 24 hours ago)"),
        ] = None,
        end_time: str | None = None,
        limit: Annotated[
            int | str,
            Field(default=50, description="Return only the most recent N entries"),
        ] = 50,
    ) -> dict[str, Any]:
        """Get logbook entries (who/what changed and why), optionally for one entity."""
        try:
            start = _validate_timestamp(start_time, "start_time") or _default_start_time(DEFAULT_HOURS)
            end = _validate_timestamp(end_time, "end_time")
            limit_int = coerce_int_param(limit, "limit", default=50, min_value=1)
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e)))

        try:
            entries = await client.get_logbook(entity_id=entity_id, start_time=start, end_time=end)
        except Exception as e:
            context = {"entity_id": entity_id} if entity_id else None
            exception_to_structured_error(e, context=context, raise_error=True)

        recent = entries[-limit_int:]
        return {
            "success": True,
            "entity_id": entity_id,
            "start_time": start,
            "total_entries": len(entries),
            "returned": len(recent),
            "entries": recent,
        }
