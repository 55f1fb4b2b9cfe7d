"""
Shared parameter coercion for MCP tool modules.

AI assistants frequently pass numbers, booleans and lists as strings; these
helpers accept both forms.
"""

import json
from typing import Any


def coerce_bool_param(
    value: bool | str | None,
    param_name: str = "parameter",
    default: bool | None = None,
) -> bool | None:
    """
    Coerce a value to a boolean, handling string inputs from AI tools.

    Raises:
        ValueError: If the value cannot be converted to a boolean
    """
    if value is None:
        return default

    if isinstance(value, bool):
        return value

    if isinstance(value, str):
        value = value.strip().lower()
        if not value:
            return default
        if value in ("true", "1", "yes", "on"):
            return True
        if value in ("false", "0", "no", "off"):
            return False
        raise ValueError(f"{param_name} must be a boolean value, got '{value}'")

    raise ValueError(f"{param_name} must be bool or string, got {type(value).__name__}")


def coerce_int_param(
    value: int | str | None,
    param_name: str = "parameter",
    default: int | None = None,
    min_value: int | None = None,
    max_value: int | None = None,
) -> int | None:
    """
    Coerce a value to an integer, clamping to the optional bounds.

    Raises:
        ValueError: If the value cannot be converted to an integer
    """
    if value is None:
        return default

    if isinstance(value, bool):
        raise ValueError(f"{param_name} must be int or string, got bool")

    if isinstance(value, int):
        result = value
    elif isinstance(value, str):
        value = value.strip()
        if not value:
            return default
        try:
            # "100.0" is accepted as 100
            result = int(float(value))
        except ValueError:
            raise ValueError(f"{param_name} must be a valid integer, got '{value}'") from None
    else:
        raise ValueError(f"{param_name} must be int or string, got {type(value).__name__}")

    if min_value is not None and result < min_value:
        result = min_value
    if max_value is not None and result > max_value:
        result = max_value

    return result


def parse_json_param(
    param: str | dict | None, param_name: str = "parameter"
) -> dict | None:
    """
    Parse a JSON object string or return an existing dict.

    Raises:
        ValueError: If parsing fails or the value is not an object
    """
    if param is None:
        return None

    if isinstance(param, dict):
        return param

    if isinstance(param, str):
        if not param.strip():
            return None
        try:
            parsed = json.loads(param)
        except json.JSONDecodeError as e:
            raise ValueError(f"Invalid JSON in {param_name}: {e}") from e
        if not isinstance(parsed, dict):
            raise ValueError(f"{param_name} must be a JSON object, got {type(parsed).__name__}")
        return parsed

    raise ValueError(f"{param_name} must be string, dict, or None, got {type(param).__name__}")


def parse_string_list_param(
    param: str | list[str] | None, param_name: str = "parameter"
) -> list[str] | None:
    """
    Parse a JSON string array, a comma-separated string or a list of strings.

    ``None`` stays ``None`` and an empty list stays an empty list; callers rely
    on telling the two apart.
    """
    if param is None:
        return None

    if isinstance(param, list):
        if all(isinstance(item, str) for item in param):
            return param
        raise ValueError(f"{param_name} must be a list of strings")

    if isinstance(param, str):
        stripped = param.strip()
        if stripped.startswith("["):
            try:
                parsed: Any = json.loads(stripped)
            except json.JSONDecodeError as e:
                raise ValueError(f"Invalid JSON in {param_name}: {e}") from e
            if not isinstance(parsed, list) or not all(isinstance(item, str) for item in parsed):
                raise ValueError(f"{param_name} must be a JSON array of strings")
            return parsed
        return [item.strip() for item in stripped.split(",") if item.strip()]

    raise ValueError(f"{param_name} must be string, list, or None")
