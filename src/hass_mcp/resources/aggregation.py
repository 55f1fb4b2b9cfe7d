"""
Set-level statistics over entity snapshots.

Used by the domain summary and the all-entities listing. Every function makes
one pass over its input and never mutates it.
"""

import json
from collections.abc import Iterable
from typing import Any

from .models import EntityRecord, StateHistogram, get_domain

DEFAULT_EXAMPLE_LIMIT = 3
DEFAULT_TOP_ATTRIBUTES = 10
UNKNOWN_STATE = "unknown"


def group_by_domain(entities: Iterable[EntityRecord]) -> dict[str, list[EntityRecord]]:
    """Partition entities by domain, keeping input order within each group."""
    groups: dict[str, list[EntityRecord]] = {}
    for entity in entities:
        groups.setdefault(get_domain(entity.entity_id), []).append(entity)
    return groups


def filter_by_domain(entities: Iterable[EntityRecord], domain: str) -> list[EntityRecord]:
    """Entities whose ID starts with ``"{domain}."``."""
    prefix = f"{domain}."
    return [entity for entity in entities if entity.entity_id.startswith(prefix)]


def sort_by_entity_id(entities: Iterable[EntityRecord]) -> list[EntityRecord]:
    return sorted(entities, key=lambda entity: entity.entity_id)


def build_state_histogram(
    entities: Iterable[EntityRecord], example_limit: int = DEFAULT_EXAMPLE_LIMIT
) -> StateHistogram:
    """
    Count entities per state and keep the first few examples of each.

    A missing state counts as ``"unknown"``. Examples are the first
    ``example_limit`` entities seen in each state; later ones are not sampled.
    """
    histogram = StateHistogram()
    for entity in entities:
        state = entity.state or UNKNOWN_STATE
        histogram.total += 1
        histogram.state_counts[state] = histogram.state_counts.get(state, 0) + 1
        examples = histogram.state_examples.setdefault(state, [])
        if len(examples) < example_limit:
            examples.append(
                {
                    "entity_id": entity.entity_id,
                    "friendly_name": entity.friendly_name or entity.entity_id,
                }
            )
    return histogram


def serialize_attribute_value(value: Any) -> str:
    """
    Serialize an attribute value for distinct-value comparison.

    Keys are NOT sorted: two equal objects whose keys were inserted in a
    different order serialize differently and count as two values.
    """
    return json.dumps(value, default=str, ensure_ascii=False)


def summarize_attributes(entities: Iterable[EntityRecord]) -> dict[str, set[str]]:
    """Map each attribute name to the set of distinct serialized values seen."""
    summary: dict[str, set[str]] = {}
    for entity in entities:
        for name, value in entity.attributes.items():
            summary.setdefault(name, set()).add(serialize_attribute_value(value))
    return summary


def top_attributes(
    summary: dict[str, set[str]], limit: int = DEFAULT_TOP_ATTRIBUTES
) -> list[tuple[str, set[str]]]:
    """Attributes with the most distinct values first; ties keep first-seen order."""
    ranked = sorted(summary.items(), key=lambda item: len(item[1]), reverse=True)
    return ranked[:limit]


def sorted_state_counts(histogram: StateHistogram) -> list[tuple[str, int]]:
    """State counts, most frequent first; ties keep first-seen order."""
    return sorted(histogram.state_counts.items(), key=lambda item: item[1], reverse=True)


def state_percentage(count: int, total: int) -> float:
    """Share of ``total`` as a percentage rounded to one decimal."""
    if total <= 0:
        return 0.0
    return round(count / total * 100, 1)
