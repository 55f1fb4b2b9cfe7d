"""
Entity state tools for the Home Assistant MCP server.

Structured (JSON) counterparts of the hass:// resources: single entity state
with field selection, listing, search and per-domain statistics.
"""

import logging
from typing import Annotated, Any, NoReturn

from pydantic import Field

from ..errors import ErrorCode, create_error_response, create_validation_error
from ..resources.aggregation import (
    build_state_histogram,
    filter_by_domain,
    group_by_domain,
    sort_by_entity_id,
    sorted_state_counts,
    state_percentage,
    summarize_attributes,
    top_attributes,
)
from ..resources.handlers import entity_matches
from ..resources.models import EntityRecord, FetchFailure, is_valid_entity_id
from ..resources.projection import filter_fields, full_projection, lean_projection
from .helpers import exception_to_structured_error, log_tool_usage, raise_tool_error
from .util_helpers import coerce_bool_param, coerce_int_param, parse_string_list_param

logger = logging.getLogger(__name__)

MAX_LIST_LIMIT = 500
SUMMARY_MAX_LISTED_VALUES = 5


def project_entity(
    entity: EntityRecord, fields: list[str] | None, detailed: bool
) -> tuple[str, dict[str, Any]]:
    """
    Choose the projection for an entity.

    An explicit field list always wins, even an empty one. Without a field
    list the detailed flag selects the full record, otherwise the lean view.

    Returns:
        (mode, projected entity)
    """
    if fields is not None:
        return "fields", filter_fields(entity, fields)
    if detailed:
        return "detailed", full_projection(entity)
    return "lean", lean_projection(entity)


def raise_fetch_failure(failure: FetchFailure, entity_id: str | None = None) -> NoReturn:
    """Report a state provider failure as a tool error."""
    context = {"entity_id": entity_id} if entity_id else None
    if failure.error is not None:
        exception_to_structured_error(failure.error, context=context, raise_error=True)
    # Home Assistant answered, but with a record that failed validation
    raise_tool_error(
        create_error_response(
            ErrorCode.ENTITY_INVALID_ID if entity_id else ErrorCode.INTERNAL_ERROR,
            failure.message,
            context=context,
        )
    )


def register_entities_tools(mcp: Any, client: Any, **kwargs: Any) -> None:
    """Register entity state tools with the MCP server."""
    provider = kwargs.get("provider")
    if not provider:
        raise ValueError("provider is required for entity tools registration")

    async def _fetch_states() -> list[EntityRecord]:
        result = await provider.fetch_all_entities()
        if isinstance(result, FetchFailure):
            raise_fetch_failure(result)
        return result

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["entities"],
            "title": "Get Entity",
        }
    )
    @log_tool_usage
    async def ha_get_entity(
        entity_id: str,
        fields: Annotated[
            list[str] | str | None,
            Field(
                default=None,
                description=(
                    "Fields to return: 'state', 'attributes', 'attr.<name>', "
                    "'last_updated', 'last_changed', 'context'. Omit for the lean view."
                ),
            ),
        ] = None,
        detailed: Annotated[
            bool | str,
            Field(default=False, description="Return every attribute (ignored when fields is given)"),
        ] = False,
    ) -> dict[str, Any]:
        """Get the state of one Home Assistant entity.

        By default returns a lean view: state, friendly name and the attributes
        that matter for the entity's domain (e.g. brightness for lights,
        unit_of_measurement for sensors).

        EXAMPLES:
        - ha_get_entity("light.kitchen")
        - ha_get_entity("climate.living_room", fields=["state", "attr.temperature"])
        - ha_get_entity("sensor.power", detailed=True)
        """
        if not is_valid_entity_id(entity_id):
            raise_tool_error(
                create_error_response(
                    ErrorCode.ENTITY_INVALID_ID,
                    f"Invalid entity ID: {entity_id!r}",
                    context={"entity_id": entity_id, "parameter": "entity_id"},
                )
            )

        try:
            parsed_fields = parse_string_list_param(fields, "fields")
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e), parameter="fields"))

        try:
            detailed_bool = coerce_bool_param(detailed, "detailed", default=False)
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e), parameter="detailed"))

        entity = await provider.fetch_entity(entity_id)
        if isinstance(entity, FetchFailure):
            raise_fetch_failure(entity, entity_id)

        mode, projected = project_entity(entity, parsed_fields, bool(detailed_bool))
        return {"success": True, "mode": mode, "entity": projected}

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["entities"],
            "title": "List Entities",
        }
    )
    @log_tool_usage
    async def ha_list_entities(
        domain: str | None = None,
        limit: Annotated[
            int | str,
            Field(default=100, description="Maximum number of entities to return (default: 100)"),
        ] = 100,
    ) -> dict[str, Any]:
        """List entities with their lean state, optionally filtered by domain.

        Results are sorted by entity_id. 'total' is the number of matching
        entities before the limit is applied.
        """
        try:
            limit_int = coerce_int_param(limit, "limit", default=100, min_value=1, max_value=MAX_LIST_LIMIT)
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e), parameter="limit"))

        entities = await _fetch_states()
        if domain:
            entities = filter_by_domain(entities, domain)

        ordered = sort_by_entity_id(entities)
        shown = ordered[:limit_int]
        response: dict[str, Any] = {
            "success": True,
            "total": len(ordered),
            "count": len(shown),
            "by_domain": {d: len(members) for d, members in sorted(group_by_domain(ordered).items())},
            "entities": [lean_projection(entity) for entity in shown],
        }
        if domain:
            response["domain"] = domain
        if not ordered:
            response["message"] = (
                f"No entities found for domain: {domain}" if domain else "No entities found"
            )
        return response

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["entities", "search"],
            "title": "Search Entities",
        }
    )
    @log_tool_usage
    async def ha_search_entities(
        query: str,
        limit: Annotated[
            int | str,
            Field(default=20, description="Maximum number of results (default: 20)"),
        ] = 20,
    ) -> dict[str, Any]:
        """Find entities whose entity_id, friendly name or state contains the query.

        Matching is a case-insensitive substring match. Results keep Home
        Assistant's order and are truncated to 'limit'.
        """
        if not query or not query.strip():
            raise_tool_error(create_validation_error("No search query provided", parameter="query"))

        try:
            limit_int = coerce_int_param(limit, "limit", default=20, min_value=1, max_value=MAX_LIST_LIMIT)
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e), parameter="limit"))

        entities = await _fetch_states()
        matches = [entity for entity in entities if entity_matches(entity, query)]
        shown = matches[:limit_int]
        return {
            "success": True,
            "query": query,
            "total_matches": len(matches),
            "count": len(shown),
            "results": [lean_projection(entity) for entity in shown],
        }

    @mcp.tool(
        annotations={
            "idempotentHint": True,
            "readOnlyHint": True,
            "tags": ["entities"],
            "title": "Get Domain Summary",
        }
    )
    @log_tool_usage
    async def ha_get_domain_summary(
        domain: str,
        example_limit: Annotated[
            int | str,
            Field(default=3, description="Example entities per state (default: 3)"),
        ] = 3,
    ) -> dict[str, Any]:
        """Summarize one domain: state distribution with examples and attribute variety.

        Attributes are ranked by number of distinct values (top 10); values are
        listed only when there are at most 5 of them.
        """
        try:
            example_limit_int = coerce_int_param(example_limit, "example_limit", default=3, min_value=0)
        except ValueError as e:
            raise_tool_error(create_validation_error(str(e), parameter="example_limit"))

        entities = filter_by_domain(await _fetch_states(), domain)
        if not entities:
            raise_tool_error(
                create_error_response(
                    ErrorCode.RESOURCE_NOT_FOUND,
                    f"No entities found for domain: {domain}",
                    suggestions=["Use ha_list_entities() to see available domains"],
                    context={"domain": domain},
                )
            )

        histogram = build_state_histogram(entities, example_limit_int)
        attributes = []
        for name, values in top_attributes(summarize_attributes(entities)):
            entry: dict[str, Any] = {"name": name, "distinct_values": len(values)}
            if len(values) <= SUMMARY_MAX_LISTED_VALUES:
                entry["values"] = sorted(values)
            attributes.append(entry)

        return {
            "success": True,
            "domain": domain,
            "total": histogram.total,
            "states": [
                {
                    "state": state,
                    "count": count,
                    "percentage": state_percentage(count, histogram.total),
                    "examples": histogram.state_examples[state],
                }
                for state, count in sorted_state_counts(histogram)
            ],
            "attributes": attributes,
        }
