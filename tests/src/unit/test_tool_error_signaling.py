"""Unit tests for tool error signaling via the MCP protocol.

Tool failures are raised as FastMCP ToolError so the protocol response has
isError=true, with the structured error serialized as JSON in the message.
"""

import json

import pytest
from fastmcp.exceptions import ToolError

from hass_mcp.client.rest_client import (
    HomeAssistantAPIError,
    HomeAssistantAuthError,
    HomeAssistantConnectionError,
)
from hass_mcp.errors import (
    ErrorCode,
    create_auth_error,
    create_entity_not_found_error,
    create_error_response,
    create_validation_error,
    get_error_code,
    get_error_message,
    is_error_response,
)
from hass_mcp.tools.helpers import exception_to_structured_error, log_tool_usage, raise_tool_error


def tool_error_data(exc_info):
    return json.loads(str(exc_info.value))


class TestRaiseToolError:
    """Tests for the raise_tool_error helper function."""

    def test_tool_error_contains_structured_json(self):
        error_response = create_error_response(ErrorCode.ENTITY_NOT_FOUND, "Entity light.test not found")

        with pytest.raises(ToolError) as exc_info:
            raise_tool_error(error_response)

        error_data = tool_error_data(exc_info)
        assert error_data["success"] is False
        assert error_data["error"]["code"] == "ENTITY_NOT_FOUND"
        assert error_data["error"]["message"] == "Entity light.test not found"
        assert "suggestion" in error_data["error"]


class TestExceptionToStructuredError:
    """Tests for exception_to_structured_error."""

    def test_returns_dict_without_raise(self):
        result = exception_to_structured_error(ValueError("bad value"))

        assert is_error_response(result)
        assert get_error_code(result) == "VALIDATION_FAILED"

    def test_raises_tool_error_when_requested(self):
        with pytest.raises(ToolError):
            exception_to_structured_error(ValueError("bad value"), raise_error=True)

    def test_connection_error(self):
        result = exception_to_structured_error(HomeAssistantConnectionError("Failed to connect"))
        assert get_error_code(result) == "CONNECTION_FAILED"

    def test_connection_timeout(self):
        result = exception_to_structured_error(HomeAssistantConnectionError("Request timeout: slow"))
        assert get_error_code(result) == "CONNECTION_TIMEOUT"

    def test_auth_error(self):
        result = exception_to_structured_error(HomeAssistantAuthError("Invalid authentication token"))
        assert get_error_code(result) == "AUTH_INVALID_TOKEN"

    def test_404_with_entity_context(self):
        error = HomeAssistantAPIError("API error: 404 - Entity not found.", status_code=404)

        result = exception_to_structured_error(error, context={"entity_id": "light.x"})

        assert get_error_code(result) == "ENTITY_NOT_FOUND"
        assert result["entity_id"] == "light.x"

    def test_404_without_entity_context(self):
        error = HomeAssistantAPIError("API error: 404 - Not found", status_code=404)

        result = exception_to_structured_error(error)

        assert get_error_code(result) == "RESOURCE_NOT_FOUND"

    def test_400_is_validation(self):
        error = HomeAssistantAPIError("API error: 400 - Invalid data", status_code=400)
        assert get_error_code(exception_to_structured_error(error)) == "VALIDATION_FAILED"

    def test_other_api_errors_are_service_failures(self):
        error = HomeAssistantAPIError("API error: 500 - boom", status_code=500)

        result = exception_to_structured_error(error, context={"domain": "light", "service": "turn_on"})

        assert get_error_code(result) == "SERVICE_CALL_FAILED"
        assert result["domain"] == "light"

    def test_builtin_timeout(self):
        result = exception_to_structured_error(TimeoutError("took too long"))
        assert get_error_code(result) == "TIMEOUT_OPERATION"

    def test_unexpected_error_hides_internals_in_message(self):
        result = exception_to_structured_error(RuntimeError("secret stack detail"))

        assert get_error_code(result) == "INTERNAL_ERROR"
        assert get_error_message(result) == "An unexpected error occurred"
        assert result["error"]["details"] == "secret stack detail"


class TestErrorResponses:
    """Tests for the structured error builders."""

    def test_validation_error_with_parameter(self):
        result = create_validation_error("limit must be a valid integer", parameter="limit")

        assert result["parameter"] == "limit"
        assert get_error_code(result) == "VALIDATION_FAILED"

    def test_invalid_json_code(self):
        result = create_validation_error("Invalid JSON", invalid_json=True)
        assert get_error_code(result) == "VALIDATION_INVALID_JSON"

    def test_custom_suggestions_override_defaults(self):
        result = create_error_response(ErrorCode.INTERNAL_ERROR, "x", suggestions=["only this"])

        assert result["error"]["suggestion"] == "only this"
        assert "suggestions" not in result["error"]

    def test_default_suggestions_point_at_server_tools(self):
        result = create_entity_not_found_error("light.x")

        assert result["error"]["suggestion"] == "Use ha_search_entities() to find the entity ID"
        assert "details" not in result["error"]

    def test_auth_error_suggests_token_setting(self):
        result = create_auth_error("Invalid authentication token")

        assert get_error_code(result) == "AUTH_INVALID_TOKEN"
        assert result["error"]["suggestion"] == "Check HOMEASSISTANT_TOKEN"

    def test_success_response_is_not_error(self):
        assert is_error_response({"success": True}) is False
        assert get_error_code({"success": True}) is None


class TestLogToolUsage:
    """Tests for the log_tool_usage decorator."""

    @pytest.mark.asyncio
    async def test_passes_result_through(self):
        @log_tool_usage
        async def ha_example(value):
            return {"value": value}

        assert await ha_example(value=3) == {"value": 3}
        assert ha_example.__name__ == "ha_example"

    @pytest.mark.asyncio
    async def test_reraises_failures(self, caplog):
        @log_tool_usage
        async def ha_failing():
            raise ToolError("nope")

        with pytest.raises(ToolError):
            await ha_failing()

        assert "Tool ha_failing failed" in caplog.text
