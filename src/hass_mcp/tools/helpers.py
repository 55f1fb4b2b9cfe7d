"""
Reusable helper functions for MCP tools.

Centralized error conversion and usage logging shared by every tools_*.py module.
"""

import functools
import json
import logging
import time
from typing import Any, Literal, NoReturn, overload

from fastmcp.exceptions import ToolError

from ..client.rest_client import (
    HomeAssistantAPIError,
    HomeAssistantAuthError,
    HomeAssistantConnectionError,
)
from ..errors import (
    ErrorCode,
    create_auth_error,
    create_connection_error,
    create_entity_not_found_error,
    create_error_response,
    create_timeout_error,
    create_validation_error,
)

logger = logging.getLogger(__name__)


def raise_tool_error(error_response: dict[str, Any]) -> NoReturn:
    """
    Raise a ToolError with structured error information.

    The structured error is serialized as JSON in the error message, and
    FastMCP sets isError=true on the protocol response.

    Args:
        error_response: Structured error response with 'success': False

    Raises:
        ToolError: Always
    """
    raise ToolError(json.dumps(error_response, indent=2, default=str))


@overload
def exception_to_structured_error(
    error: Exception,
    context: dict[str, Any] | None = None,
    *,
    raise_error: Literal[False] = False,
) -> dict[str, Any]: ...


@overload
def exception_to_structured_error(
    error: Exception,
    context: dict[str, Any] | None = None,
    *,
    raise_error: Literal[True],
) -> NoReturn: ...


def exception_to_structured_error(
    error: Exception,
    context: dict[str, Any] | None = None,
    *,
    raise_error: bool = False,
) -> dict[str, Any]:
    """
    Convert an exception to a structured error response.

    Args:
        error: The exception to convert
        context: Additional context to include in the response
        raise_error: If True, raise ToolError with the structured error
                    instead of returning it

    Returns:
        Structured error response dictionary (only if raise_error=False)

    Raises:
        ToolError: If raise_error=True
    """
    error_str = str(error).lower()
    error_msg = str(error)

    error_response: dict[str, Any]

    if isinstance(error, HomeAssistantConnectionError):
        error_response = create_connection_error(
            error_msg, timeout="timeout" in error_str, context=context
        )

    elif isinstance(error, HomeAssistantAuthError):
        error_response = create_auth_error(error_msg)

    elif isinstance(error, HomeAssistantAPIError):
        match error.status_code:
            case 404:
                entity_id = context.get("entity_id") if context else None
                if entity_id:
                    error_response = create_entity_not_found_error(entity_id, details=error_msg)
                else:
                    error_response = create_error_response(
                        ErrorCode.RESOURCE_NOT_FOUND,
                        error_msg,
                        context=context,
                    )
            case 401 | 403:
                error_response = create_auth_error(error_msg)
            case 400:
                error_response = create_validation_error(error_msg, context=context)
            case _:
                error_response = create_error_response(
                    ErrorCode.SERVICE_CALL_FAILED,
                    error_msg,
                    context=context,
                )

    elif isinstance(error, TimeoutError):
        operation = context.get("operation", "request") if context else "request"
        timeout_seconds = context.get("timeout_seconds", 30) if context else 30
        error_response = create_timeout_error(operation, timeout_seconds, details=error_msg)

    elif isinstance(error, ValueError):
        error_response = create_validation_error(error_msg, context=context)

    else:
        # Generic message to avoid leaking internals
        error_response = create_error_response(
            ErrorCode.INTERNAL_ERROR,
            "An unexpected error occurred",
            details=error_msg,
            context=context,
        )

    if raise_error:
        raise_tool_error(error_response)

    return error_response


def log_tool_usage(func: Any) -> Any:
    """
    Decorator logging MCP tool calls.

    Records execution time, outcome and response size at DEBUG; failures at WARNING.
    """

    @functools.wraps(func)
    async def wrapper(*args: Any, **kwargs: Any) -> Any:
        start_time = time.time()
        tool_name = func.__name__

        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            execution_time_ms = (time.time() - start_time) * 1000
            logger.warning(f"Tool {tool_name} failed after {execution_time_ms:.1f}ms: {e}")
            raise

        execution_time_ms = (time.time() - start_time) * 1000
        response_size = len(str(result).encode("utf-8"))
        logger.debug(
            f"Tool {tool_name} completed in {execution_time_ms:.1f}ms "
            f"({response_size} bytes, params={sorted(kwargs)})"
        )
        return result

    return wrapper
