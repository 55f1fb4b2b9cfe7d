"""
Structured errors returned by the hass-mcp tools.

A tool failure is a dictionary with ``success: False``, an ``error`` block
(code, message, optional details and hints) and any context fields such as
``entity_id`` copied to the top level. Resources do not use this envelope;
they render failures into their Markdown documents.
"""

from enum import StrEnum
from typing import Any


class ErrorCode(StrEnum):
    """Error codes reported by the tools, prefixed by category."""

    CONNECTION_FAILED = "CONNECTION_FAILED"
    CONNECTION_TIMEOUT = "CONNECTION_TIMEOUT"

    AUTH_INVALID_TOKEN = "AUTH_INVALID_TOKEN"

    ENTITY_NOT_FOUND = "ENTITY_NOT_FOUND"
    ENTITY_INVALID_ID = "ENTITY_INVALID_ID"

    SERVICE_NOT_FOUND = "SERVICE_NOT_FOUND"
    SERVICE_CALL_FAILED = "SERVICE_CALL_FAILED"

    VALIDATION_FAILED = "VALIDATION_FAILED"
    VALIDATION_INVALID_JSON = "VALIDATION_INVALID_JSON"

    TIMEOUT_OPERATION = "TIMEOUT_OPERATION"

    INTERNAL_ERROR = "INTERNAL_ERROR"

    RESOURCE_NOT_FOUND = "RESOURCE_NOT_FOUND"


# Hints attached when the caller passes none
DEFAULT_SUGGESTIONS: dict[ErrorCode, list[str]] = {
    ErrorCode.CONNECTION_FAILED: [
        "Check that Home Assistant is reachable at HOMEASSISTANT_URL",
        "Use ha_api_status() to test the connection",
    ],
    ErrorCode.CONNECTION_TIMEOUT: [
        "Home Assistant did not answer within HA_TIMEOUT seconds",
        "Retry, or raise HA_TIMEOUT",
    ],
    ErrorCode.AUTH_INVALID_TOKEN: [
        "Check HOMEASSISTANT_TOKEN",
        "Create a new long-lived access token from your Home Assistant profile",
    ],
    ErrorCode.ENTITY_NOT_FOUND: [
        "Use ha_search_entities() to find the entity ID",
    ],
    ErrorCode.ENTITY_INVALID_ID: [
        "Entity IDs look like domain.object_id, e.g. light.kitchen",
    ],
    ErrorCode.SERVICE_NOT_FOUND: [
        "Use ha_list_services() to see the services of a domain",
    ],
    ErrorCode.SERVICE_CALL_FAILED: [
        "Check the service data and target entity",
        "Use ha_get_error_log() for the Home Assistant side of the failure",
    ],
    ErrorCode.VALIDATION_INVALID_JSON: [
        "Pass the parameter as a JSON object",
    ],
    ErrorCode.TIMEOUT_OPERATION: [
        "Retry the operation",
    ],
    ErrorCode.INTERNAL_ERROR: [
        "See the hass-mcp server log for details",
    ],
}


def create_error_response(
    code: ErrorCode,
    message: str,
    details: str | None = None,
    suggestions: list[str] | None = None,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build a structured error response.

    Args:
        code: Error code
        message: Human-readable message
        details: Extra detail, usually the upstream error text
        suggestions: Hints for the caller (defaults per code)
        context: Fields copied to the top level of the response

    Returns:
        Error response with success=False
    """
    hints = suggestions or DEFAULT_SUGGESTIONS.get(code, [])

    error: dict[str, Any] = {"code": code.value, "message": message}
    if details:
        error["details"] = details
    if hints:
        error["suggestion"] = hints[0]
        if len(hints) > 1:
            error["suggestions"] = hints

    response: dict[str, Any] = {"success": False, "error": error}
    if context:
        response.update(context)
    return response


def create_connection_error(
    message: str,
    details: str | None = None,
    timeout: bool = False,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    code = ErrorCode.CONNECTION_TIMEOUT if timeout else ErrorCode.CONNECTION_FAILED
    return create_error_response(code, message, details, context=context)


def create_auth_error(message: str, details: str | None = None) -> dict[str, Any]:
    return create_error_response(ErrorCode.AUTH_INVALID_TOKEN, message, details)


def create_entity_not_found_error(entity_id: str, details: str | None = None) -> dict[str, Any]:
    return create_error_response(
        ErrorCode.ENTITY_NOT_FOUND,
        f"Entity '{entity_id}' not found",
        details=details,
        context={"entity_id": entity_id},
    )


def create_validation_error(
    message: str,
    parameter: str | None = None,
    details: str | None = None,
    invalid_json: bool = False,
    context: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """Validation failure; ``parameter`` names the offending tool argument."""
    code = ErrorCode.VALIDATION_INVALID_JSON if invalid_json else ErrorCode.VALIDATION_FAILED
    fields = dict(context or {})
    if parameter:
        fields["parameter"] = parameter
    return create_error_response(code, message, details, context=fields or None)


def create_timeout_error(
    operation: str, timeout_seconds: float, details: str | None = None
) -> dict[str, Any]:
    return create_error_response(
        ErrorCode.TIMEOUT_OPERATION,
        f"Operation '{operation}' timed out after {timeout_seconds}s",
        details=details,
        context={"operation": operation, "timeout_seconds": timeout_seconds},
    )


def is_error_response(response: dict[str, Any]) -> bool:
    return response.get("success") is False and "error" in response


def get_error_code(response: dict[str, Any]) -> str | None:
    if not is_error_response(response):
        return None
    return response["error"].get("code")


def get_error_message(response: dict[str, Any]) -> str | None:
    if not is_error_response(response):
        return None
    return response["error"].get("message")
