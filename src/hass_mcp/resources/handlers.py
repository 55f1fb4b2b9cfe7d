"""
Markdown renderers for ``hass://`` resources.

Each handler takes the already-parsed URI parameters plus the result of a
single provider fetch and returns a complete document. Failures are rendered
as text; nothing here raises for upstream or empty results.
"""

import json
from typing import Any

from .aggregation import (
    build_state_histogram,
    filter_by_domain,
    group_by_domain,
    sort_by_entity_id,
    sorted_state_counts,
    state_percentage,
    summarize_attributes,
    top_attributes,
)
from .models import (
    EMPTY_RESULT_POLICIES,
    EmptyResultPolicy,
    EntityRecord,
    FetchFailure,
    ResourceKind,
    get_domain,
)
from .projection import full_projection, important_attributes, lean_projection

ALL_ENTITIES_PREVIEW_LIMIT = 5
SUMMARY_EXAMPLE_LIMIT = 3
SUMMARY_TOP_ATTRIBUTES = 10
SUMMARY_MAX_LISTED_VALUES = 5
COMPLEX_PLACEHOLDER = "*[Complex data]*"


def entity_uri(entity_id: str) -> str:
    return f"hass://entities/{entity_id}"


def domain_uri(domain: str) -> str:
    return f"hass://entities/domain/{domain}"


def domain_summary_uri(domain: str) -> str:
    return f"hass://entities/domain/{domain}/summary"


def _title(domain: str) -> str:
    return domain[:1].upper() + domain[1:]


def _is_complex(value: Any) -> bool:
    return isinstance(value, dict | list)


def _format_scalar(value: Any) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if value is None:
        return "null"
    return str(value)


def render_empty_result(kind: ResourceKind, heading: str, message: str) -> str:
    """Render a filter that matched nothing, as an error or a plain message."""
    if EMPTY_RESULT_POLICIES[kind] is EmptyResultPolicy.ERROR:
        return f"{heading}\n\nError: {message}\n"
    return f"{heading}\n\n{message}\n"


def _format_entity_line(entity_id: str, state: Any, friendly_name: Any, link: bool = False) -> str:
    label = f"[**{entity_id}**]({entity_uri(entity_id)})" if link else f"**{entity_id}**"
    line = f"- {label}: {_format_scalar(state)}"
    if friendly_name and friendly_name != entity_id:
        line += f" ({friendly_name})"
    return line


def render_entity_detail(entity_id: str, result: EntityRecord | FetchFailure) -> str:
    """Lean view of one entity: name, state, domain and key attributes."""
    if isinstance(result, FetchFailure):
        return f"# Entity: {entity_id}\n\nError retrieving entity: {result.message}"

    domain = get_domain(entity_id)
    projected = lean_projection(result, domain)
    attributes: dict[str, Any] = projected.get("attributes", {})

    lines = [f"# Entity: {entity_id}", ""]

    friendly_name = attributes.get("friendly_name")
    if friendly_name and friendly_name != entity_id:
        lines += [f"**Name**: {friendly_name}", ""]

    lines += [f"**State**: {_format_scalar(projected.get('state'))}", ""]
    lines += [f"**Domain**: {domain}", ""]

    key_attributes = {k: v for k, v in attributes.items() if k != "friendly_name"}
    if key_attributes:
        lines += ["## Key Attributes", ""]
        for key, value in key_attributes.items():
            shown = COMPLEX_PLACEHOLDER if _is_complex(value) else _format_scalar(value)
            lines.append(f"- **{key}**: {shown}")
        lines.append("")

    if result.last_updated:
        lines.append(f"**Last Updated**: {result.last_updated}")

    lines += ["", f"Full details: {entity_uri(entity_id)}/detailed"]
    return "\n".join(lines) + "\n"


def render_entity_detail_verbose(entity_id: str, result: EntityRecord | FetchFailure) -> str:
    """Every attribute of one entity, sorted by name, plus context data."""
    if isinstance(result, FetchFailure):
        return f"# Entity: {entity_id} (Detailed)\n\nError retrieving entity: {result.message}"

    domain = get_domain(entity_id)
    data = full_projection(result)
    attributes: dict[str, Any] = data["attributes"]

    lines = [f"# Entity: {entity_id} (Detailed)", ""]

    friendly_name = attributes.get("friendly_name")
    if friendly_name and friendly_name != entity_id:
        lines += [f"**Name**: {friendly_name}", ""]

    lines += [f"**State**: {_format_scalar(data.get('state'))}", ""]
    lines += [f"**Domain**: {domain}", ""]

    if attributes:
        lines += ["## All Attributes", ""]
        for key in sorted(attributes):
            value = attributes[key]
            if _is_complex(value):
                lines.append(f"- **{key}**:")
                lines.append("```json")
                lines.append(json.dumps(value, indent=2, default=str, ensure_ascii=False))
                lines.append("```")
            else:
                lines.append(f"- **{key}**: {_format_scalar(value)}")
        lines.append("")

    lines += ["## Context Data", ""]
    if result.last_updated:
        lines.append(f"**Last Updated**: {result.last_updated}")
    if result.last_changed:
        lines.append(f"**Last Changed**: {result.last_changed}")
    if result.context:
        lines.append(f"**Context ID**: {result.context.get('id')}")
        if result.context.get("user_id"):
            lines.append(f"**User ID**: {result.context['user_id']}")

    return "\n".join(lines) + "\n"


def render_all_entities(
    result: list[EntityRecord] | FetchFailure,
    preview_limit: int = ALL_ENTITIES_PREVIEW_LIMIT,
) -> str:
    """All entities grouped by domain, showing only the first few of each."""
    if isinstance(result, FetchFailure):
        return f"Error retrieving entities: {result.message}"

    lines = ["# Home Assistant Entities", ""]
    if not result:
        return render_empty_result(ResourceKind.ALL_ENTITIES, lines[0], "No entities found.")

    lines += [
        f"Total entities: {len(result)}",
        "",
        "**Note**: For better performance and token efficiency, consider using:",
        "- Domain filtering: `hass://entities/domain/{domain}`",
        "- Entity search: `hass://search/{query}`",
        "",
    ]

    groups = group_by_domain(result)
    for domain in sorted(groups):
        members = sort_by_entity_id(groups[domain])
        lines += [f"## {_title(domain)} ({len(members)})", ""]
        for entity in members[:preview_limit]:
            lines.append(_format_entity_line(entity.entity_id, entity.state, entity.friendly_name))
        if len(members) > preview_limit:
            lines.append(
                f"- ... and {len(members) - preview_limit} more "
                f"(see [{domain_uri(domain)}]({domain_uri(domain)}))"
            )
        lines.append("")

    return "\n".join(lines)


def render_domain_listing(domain: str, result: list[EntityRecord] | FetchFailure) -> str:
    """Every entity of a domain with its important attributes."""
    if isinstance(result, FetchFailure):
        return f"Error retrieving entities: {result.message}"

    heading = f"# {_title(domain)} Entities"
    entities = filter_by_domain(result, domain)
    if not entities:
        return render_empty_result(ResourceKind.DOMAIN_LISTING, heading, f"No entities found for domain: {domain}")

    lines = [heading, "", f"Found {len(entities)} entities:", ""]
    for entity in sort_by_entity_id(entities):
        projected = lean_projection(entity, domain)
        attributes: dict[str, Any] = projected.get("attributes", {})
        lines.append(
            _format_entity_line(entity.entity_id, projected.get("state"), attributes.get("friendly_name"))
        )
        for name in important_attributes(domain):
            if name in attributes:
                value = attributes[name]
                shown = COMPLEX_PLACEHOLDER if _is_complex(value) else _format_scalar(value)
                lines.append(f"  - {name}: {shown}")

    lines += [
        "",
        "## Related Resources",
        "",
        f"- [View domain summary]({domain_summary_uri(domain)})",
    ]
    return "\n".join(lines) + "\n"


def render_domain_summary(domain: str, result: list[EntityRecord] | FetchFailure) -> str:
    """State distribution and attribute variety for one domain."""
    if isinstance(result, FetchFailure):
        return f"Error retrieving entities: {result.message}"

    heading = f"# {_title(domain)} Domain Summary"
    entities = filter_by_domain(result, domain)
    if not entities:
        return render_empty_result(ResourceKind.DOMAIN_SUMMARY, heading, f"No entities found for domain: {domain}")

    histogram = build_state_histogram(entities, SUMMARY_EXAMPLE_LIMIT)

    lines = [heading, "", f"**Total Entities**: {histogram.total}", "", "## State Distribution", ""]
    for state, count in sorted_state_counts(histogram):
        percentage = state_percentage(count, histogram.total)
        lines.append(f"- **{state}**: {count} entities ({percentage}%)")
        for example in histogram.state_examples[state]:
            example_line = f"  - {example['entity_id']}"
            if example["friendly_name"] != example["entity_id"]:
                example_line += f" ({example['friendly_name']})"
            lines.append(example_line)
        lines.append("")

    ranked = top_attributes(summarize_attributes(entities), SUMMARY_TOP_ATTRIBUTES)
    if ranked:
        lines += ["## Attribute Summary", ""]
        for name, values in ranked:
            line = f"- **{name}**: {len(values)} distinct value{'s' if len(values) != 1 else ''}"
            if len(values) <= SUMMARY_MAX_LISTED_VALUES:
                line += ": " + ", ".join(sorted(values))
            lines.append(line)
        lines.append("")

    lines += ["## Related Resources", "", f"- [List all {domain} entities]({domain_uri(domain)})"]
    return "\n".join(lines) + "\n"


def entity_matches(entity: EntityRecord, term: str) -> bool:
    """Case-insensitive substring match on entity_id, friendly_name or state."""
    term = term.lower()
    if term in entity.entity_id.lower():
        return True
    friendly_name = entity.friendly_name
    if friendly_name and term in friendly_name.lower():
        return True
    return bool(entity.state and term in entity.state.lower())


def render_search(query: str, limit: int, result: list[EntityRecord] | FetchFailure) -> str:
    """Entities matching a free-text query, grouped by domain."""
    if isinstance(result, FetchFailure):
        return f"Error retrieving entities: {result.message}"

    heading = f"# Entity Search Results for '{query}'"
    matches = [entity for entity in result if entity_matches(entity, query)]
    if not matches:
        return render_empty_result(ResourceKind.SEARCH, heading, f'No entities found matching "{query}"')

    shown = matches[:limit]
    summary = f"Found {len(matches)} matching entities"
    if len(shown) < len(matches):
        summary += f" (showing first {len(shown)})"
    lines = [heading, "", summary + ":", ""]

    groups = group_by_domain(shown)
    for domain in sorted(groups):
        members = sort_by_entity_id(groups[domain])
        lines += [f"## {_title(domain)} ({len(members)})", ""]
        for entity in members:
            projected = lean_projection(entity, domain)
            lines.append(
                _format_entity_line(
                    entity.entity_id,
                    projected.get("state"),
                    projected.get("attributes", {}).get("friendly_name"),
                    link=True,
                )
            )
        lines.append("")

    return "\n".join(lines)
