"""Unit tests for entity records and resource types."""

import pytest
from pydantic import ValidationError

from hass_mcp.resources.models import (
    EMPTY_RESULT_POLICIES,
    EmptyResultPolicy,
    EntityRecord,
    ResourceKind,
    get_domain,
    is_valid_entity_id,
)


class TestGetDomain:
    """Tests for get_domain."""

    def test_domain_is_text_before_first_dot(self):
        assert get_domain("light.kitchen") == "light"
        assert get_domain("sensor.outdoor.temperature") == "sensor"

    def test_id_without_dot_is_its_own_domain(self):
        assert get_domain("nodot") == "nodot"


class TestIsValidEntityId:
    """Tests for is_valid_entity_id."""

    @pytest.mark.parametrize("entity_id", ["light.kitchen", "sensor.outdoor.temperature", "input_number.level_2"])
    def test_accepts(self, entity_id):
        assert is_valid_entity_id(entity_id)

    @pytest.mark.parametrize(
        "entity_id",
        ["kitchen", ".kitchen", "light.", "", "light.a\x00b", "light.a\nb", "light.a/../config"],
    )
    def test_rejects(self, entity_id):
        assert not is_valid_entity_id(entity_id)


class TestEntityRecord:
    """Tests for EntityRecord validation."""

    def test_minimal_record(self):
        """A record with only entity_id gets empty attributes and no state."""
        entity = EntityRecord.model_validate({"entity_id": "light.kitchen"})

        assert entity.state is None
        assert entity.attributes == {}
        assert entity.domain == "light"
        assert entity.friendly_name is None

    @pytest.mark.parametrize("entity_id", ["kitchen", ".kitchen", "light.", "", "light.a\x00b"])
    def test_rejects_malformed_entity_id(self, entity_id):
        with pytest.raises(ValidationError):
            EntityRecord.model_validate({"entity_id": entity_id, "state": "on"})

    def test_rejects_missing_entity_id(self):
        with pytest.raises(ValidationError):
            EntityRecord.model_validate({"state": "on"})

    def test_numeric_state_is_coerced_to_string(self):
        entity = EntityRecord.model_validate({"entity_id": "sensor.temp", "state": 21.5})
        assert entity.state == "21.5"

    def test_boolean_state_is_coerced_to_on_off(self):
        entity = EntityRecord.model_validate({"entity_id": "binary_sensor.door", "state": True})
        assert entity.state == "on"

    def test_null_attributes_become_empty(self):
        entity = EntityRecord.model_validate({"entity_id": "light.a", "attributes": None})
        assert entity.attributes == {}

    def test_friendly_name_from_attributes(self):
        entity = EntityRecord.model_validate(
            {"entity_id": "light.a", "attributes": {"friendly_name": "Lamp"}}
        )
        assert entity.friendly_name == "Lamp"


class TestEmptyResultPolicies:
    """The empty-result behavior differs per view and is pinned here."""

    def test_domain_views_treat_empty_as_error(self):
        assert EMPTY_RESULT_POLICIES[ResourceKind.DOMAIN_LISTING] is EmptyResultPolicy.ERROR
        assert EMPTY_RESULT_POLICIES[ResourceKind.DOMAIN_SUMMARY] is EmptyResultPolicy.ERROR

    def test_search_and_listing_treat_empty_as_message(self):
        assert EMPTY_RESULT_POLICIES[ResourceKind.SEARCH] is EmptyResultPolicy.MESSAGE
        assert EMPTY_RESULT_POLICIES[ResourceKind.ALL_ENTITIES] is EmptyResultPolicy.MESSAGE
