"""
Tool argument validation.

Checks ``tools/call`` arguments against a tool's input schema and returns a
new mapping with defaults applied. Any violation raises
``InvalidArgumentError`` before a handler (and therefore the gateway) runs.

Supported schema keywords: ``type`` (string, integer, number, boolean,
object), ``required``, ``default``, ``enum``, ``minimum``, ``maximum``.
"""

from typing import Any, Dict, Mapping, Optional

from src.shared.errors import InvalidArgumentError

# Nested object whose members may stand in for absent top-level arguments
LEGACY_OPTIONS_KEY = "options"


def _is_integer(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    if isinstance(value, int):
        return True
    return isinstance(value, float) and value.is_integer()


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _coerce(name: str, value: Any, prop: Mapping[str, Any], required: bool) -> Any:
    expected = prop.get("type")

    if expected == "string":
        if not isinstance(value, str):
            raise InvalidArgumentError("must be a string", name)
        if required and not value.strip():
            raise InvalidArgumentError("must be a non-empty string", name)
    elif expected == "integer":
        if not _is_integer(value):
            raise InvalidArgumentError("must be an integer", name)
        value = int(value)
    elif expected == "number":
        if not _is_number(value):
            raise InvalidArgumentError("must be a number", name)
        value = float(value)
    elif expected == "boolean":
        if not isinstance(value, bool):
            raise InvalidArgumentError("must be a boolean", name)
    elif expected == "object":
        if not isinstance(value, dict):
            raise InvalidArgumentError("must be an object", name)
        value = _check_nested(name, value, prop)

    enum = prop.get("enum")
    if enum is not None and value not in enum:
        allowed = ", ".join(str(option) for option in enum)
        raise InvalidArgumentError(f"must be one of: {allowed}", name)

    minimum = prop.get("minimum")
    if minimum is not None and value < minimum:
        raise InvalidArgumentError(f"must be >= {minimum}", name)
    maximum = prop.get("maximum")
    if maximum is not None and value > maximum:
        raise InvalidArgumentError(f"must be <= {maximum}", name)

    return value


def _check_nested(name: str, value: Dict[str, Any], schema: Mapping[str, Any]) -> Dict[str, Any]:
    # Nested objects are type/range checked only; defaults stay at top level
    checked: Dict[str, Any] = {}
    for key, prop in schema.get("properties", {}).items():
        if value.get(key) is not None:
            checked[key] = _coerce(f"{name}.{key}", value[key], prop, required=False)
    return checked


def _is_absent(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def validate_arguments(
    schema: Mapping[str, Any], arguments: Optional[Mapping[str, Any]]
) -> Dict[str, Any]:
    """
    Validate ``arguments`` against ``schema`` and apply defaults.

    Blank optional strings are treated as absent. Undeclared arguments are
    dropped.

    Raises:
        InvalidArgumentError: On any missing, mistyped or out-of-range value
    """
    if arguments is None:
        arguments = {}
    if not isinstance(arguments, Mapping):
        raise InvalidArgumentError("arguments must be an object")

    properties: Mapping[str, Mapping[str, Any]] = schema.get("properties", {})
    required = set(schema.get("required", []))
    supplied = dict(arguments)

    options = supplied.get(LEGACY_OPTIONS_KEY)
    if LEGACY_OPTIONS_KEY in properties and isinstance(options, Mapping):
        for key, value in options.items():
            if key in properties and key != LEGACY_OPTIONS_KEY and supplied.get(key) is None:
                supplied[key] = value

    validated: Dict[str, Any] = {}
    for name, prop in properties.items():
        value = supplied.get(name)
        is_required = name in required

        if is_required and value is None:
            raise InvalidArgumentError("is required", name)

        if not is_required and _is_absent(value):
            if "default" in prop:
                validated[name] = prop["default"]
            continue

        validated[name] = _coerce(name, value, prop, is_required)

    return validated
