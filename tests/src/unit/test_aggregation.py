"""Unit tests for set-level entity statistics."""

import pytest

from hass_mcp.resources.aggregation import (
    build_state_histogram,
    filter_by_domain,
    group_by_domain,
    serialize_attribute_value,
    sort_by_entity_id,
    sorted_state_counts,
    state_percentage,
    summarize_attributes,
    top_attributes,
)
from hass_mcp.resources.models import EntityRecord


def make_entity(entity_id, state="on", **attributes):
    return EntityRecord.model_validate(
        {"entity_id": entity_id, "state": state, "attributes": attributes}
    )


@pytest.fixture
def mixed_entities():
    return [
        make_entity("light.b", "off"),
        make_entity("sensor.temp", "21"),
        make_entity("light.a", "on"),
        make_entity("switch.pump", "on"),
        make_entity("lightning.detector", "clear"),
    ]


class TestGroupByDomain:
    """Tests for group_by_domain."""

    def test_partitions_every_entity_exactly_once(self, mixed_entities):
        groups = group_by_domain(mixed_entities)

        assert sum(len(members) for members in groups.values()) == len(mixed_entities)
        grouped_ids = [e.entity_id for members in groups.values() for e in members]
        assert sorted(grouped_ids) == sorted(e.entity_id for e in mixed_entities)

    def test_preserves_input_order_within_group(self, mixed_entities):
        groups = group_by_domain(mixed_entities)
        assert [e.entity_id for e in groups["light"]] == ["light.b", "light.a"]

    def test_empty_input(self):
        assert group_by_domain([]) == {}


class TestFilterAndSort:
    """Tests for filter_by_domain and sort_by_entity_id."""

    def test_filter_uses_domain_prefix_with_dot(self, mixed_entities):
        result = filter_by_domain(mixed_entities, "light")
        assert [e.entity_id for e in result] == ["light.b", "light.a"]

    def test_sort_by_entity_id(self, mixed_entities):
        result = sort_by_entity_id(mixed_entities)
        assert [e.entity_id for e in result][:2] == ["light.a", "light.b"]

    def test_input_is_not_mutated(self, mixed_entities):
        before = [e.entity_id for e in mixed_entities]
        sort_by_entity_id(mixed_entities)
        filter_by_domain(mixed_entities, "light")
        assert [e.entity_id for e in mixed_entities] == before


class TestBuildStateHistogram:
    """Tests for build_state_histogram."""

    def test_counts_sum_to_total(self):
        entities = [make_entity(f"light.l{i}", "on" if i % 3 else "off") for i in range(10)]

        histogram = build_state_histogram(entities)

        assert histogram.total == 10
        assert sum(histogram.state_counts.values()) == 10

    def test_examples_are_first_k_per_state(self):
        entities = [make_entity(f"light.l{i}", "on") for i in range(6)]

        histogram = build_state_histogram(entities, example_limit=3)

        assert [ex["entity_id"] for ex in histogram.state_examples["on"]] == [
            "light.l0",
            "light.l1",
            "light.l2",
        ]

    @pytest.mark.parametrize("limit", [0, 1, 2, 5])
    def test_examples_never_exceed_limit(self, limit):
        entities = [make_entity(f"fan.f{i}", "on" if i % 2 else "off") for i in range(7)]

        histogram = build_state_histogram(entities, example_limit=limit)

        assert all(len(examples) <= limit for examples in histogram.state_examples.values())

    def test_missing_state_counts_as_unknown(self):
        entities = [make_entity("sensor.a", None), make_entity("sensor.b", "12")]

        histogram = build_state_histogram(entities)

        assert histogram.state_counts == {"unknown": 1, "12": 1}

    def test_example_friendly_name_falls_back_to_entity_id(self):
        entities = [make_entity("light.a", "on", friendly_name="Lamp"), make_entity("light.b", "on")]

        histogram = build_state_histogram(entities)

        assert histogram.state_examples["on"] == [
            {"entity_id": "light.a", "friendly_name": "Lamp"},
            {"entity_id": "light.b", "friendly_name": "light.b"},
        ]

    def test_empty_input(self):
        histogram = build_state_histogram([])
        assert histogram.total == 0
        assert histogram.state_counts == {}

    def test_sorted_state_counts_ties_keep_first_seen_order(self):
        entities = [
            make_entity("cover.a", "closed"),
            make_entity("cover.b", "open"),
            make_entity("cover.c", "opening"),
            make_entity("cover.d", "open"),
        ]

        ranked = sorted_state_counts(build_state_histogram(entities))

        assert ranked == [("open", 2), ("closed", 1), ("opening", 1)]


class TestSummarizeAttributes:
    """Tests for summarize_attributes and distinct-value serialization."""

    def test_collects_distinct_values(self):
        entities = [
            make_entity("sensor.a", unit_of_measurement="°C"),
            make_entity("sensor.b", unit_of_measurement="°C"),
            make_entity("sensor.c", unit_of_measurement="%"),
        ]

        summary = summarize_attributes(entities)

        assert summary["unit_of_measurement"] == {'"°C"', '"%"'}

    def test_structurally_equal_values_collapse(self):
        entities = [
            make_entity("light.a", rgb_color=[255, 0, 0]),
            make_entity("light.b", rgb_color=[255, 0, 0]),
        ]

        assert len(summarize_attributes(entities)["rgb_color"]) == 1

    def test_key_order_is_not_canonicalized(self):
        """Deep-equal objects with different key order count as two values."""
        entities = [
            make_entity("climate.a", preset={"mode": "eco", "target": 19}),
            make_entity("climate.b", preset={"target": 19, "mode": "eco"}),
        ]

        assert len(summarize_attributes(entities)["preset"]) == 2

    def test_number_and_numeric_string_are_distinct(self):
        assert serialize_attribute_value(1) != serialize_attribute_value("1")

    def test_insertion_order_follows_first_sighting(self):
        entities = [make_entity("fan.a", percentage=50), make_entity("fan.b", preset_mode="auto")]
        assert list(summarize_attributes(entities)) == ["percentage", "preset_mode"]


class TestTopAttributes:
    """Tests for top_attributes."""

    def test_sorted_by_distinct_count_descending(self):
        summary = {"a": {"1"}, "b": {"1", "2", "3"}, "c": {"1", "2"}}
        assert [name for name, _ in top_attributes(summary)] == ["b", "c", "a"]

    def test_ties_keep_insertion_order(self):
        summary = {"first": {"1", "2"}, "second": {"3", "4"}, "third": {"5"}}
        assert [name for name, _ in top_attributes(summary)] == ["first", "second", "third"]

    def test_limit(self):
        summary = {f"attr{i}": {str(v) for v in range(i + 1)} for i in range(15)}

        ranked = top_attributes(summary, limit=10)

        assert len(ranked) == 10
        assert ranked[0][0] == "attr14"


class TestStatePercentage:
    """Tests for state_percentage."""

    def test_rounds_to_one_decimal(self):
        assert state_percentage(1, 3) == 33.3
        assert state_percentage(2, 3) == 66.7

    def test_zero_total(self):
        assert state_percentage(0, 0) == 0.0
