"""Input shape validation for operation arguments.

Shapes are JSON-Schema style objects (``properties`` / ``required``) so the
same document can be published to clients in ``operations/list`` and used
server-side to check arguments before a handler runs.

Supported per-field keywords:
    type        string | number | integer | boolean
    enum        list of allowed literals
    anyOf       list of alternative field shapes (union)
    minLength / maxLength   strings
    minimum / maximum       numbers
    pattern     regex (``re.search``) for strings
    format      "uri" for strings
    default     substituted when the field is absent
    title       label used in error messages

Validation stops at the first failing field (declaration order).
"""

import copy
import logging
import re
from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional
from urllib.parse import urlparse

logger = logging.getLogger(__name__)

JSONSchema = Dict[str, Any]

_TYPE_NAMES = {
    "string": "a string",
    "number": "a number",
    "integer": "an integer",
    "boolean": "a boolean",
}


class SchemaValidationError(ValueError):
    """Raised by validate_or_raise when input does not match its shape."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.message = message
        self.field = field


@dataclass
class ValidationResult:
    """Result of validating one input mapping."""
    is_valid: bool
    data: Dict[str, Any] = field(default_factory=dict)
    field: Optional[str] = None
    error: Optional[str] = None

    @classmethod
    def ok(cls, data: Dict[str, Any]) -> "ValidationResult":
        return cls(is_valid=True, data=data)

    @classmethod
    def failure(cls, field_name: str, error: str) -> "ValidationResult":
        return cls(is_valid=False, field=field_name, error=error)


def field_label(name: str, field_schema: Mapping[str, Any]) -> str:
    """Human-readable label for a field."""
    title = field_schema.get("title")
    if title:
        return str(title)
    return name[:1].upper() + name[1:]


def validate(shape: Optional[JSONSchema], data: Optional[Mapping[str, Any]]) -> ValidationResult:
    """
    Validate an input mapping against a declared shape.

    Args:
        shape: Object shape with ``properties`` and ``required``
        data: Untyped input mapping (``None`` is treated as empty)

    Returns:
        ValidationResult holding the populated mapping (defaults applied,
        unknown fields dropped) or the first failing field and its message
    """
    if data is None:
        data = {}
    if not isinstance(data, Mapping):
        return ValidationResult.failure("", "Arguments must be an object")

    shape = shape or {}
    properties: Dict[str, JSONSchema] = shape.get("properties") or {}
    required: List[str] = list(shape.get("required") or [])

    populated: Dict[str, Any] = {}

    for name, field_schema in properties.items():
        label = field_label(name, field_schema)

        if name not in data or data[name] is None:
            if name in required:
                if _expects_string(field_schema) and field_schema.get("minLength", 0) >= 1:
                    return ValidationResult.failure(name, f"{label} is required and cannot be empty")
                return ValidationResult.failure(name, f"{label} is required")
            if "default" in field_schema:
                populated[name] = copy.deepcopy(field_schema["default"])
            continue

        error = _check_value(label, data[name], field_schema)
        if error:
            return ValidationResult.failure(name, error)
        populated[name] = data[name]

    # Required names without a declared property only need to be present
    for name in required:
        if name not in properties and name not in data:
            return ValidationResult.failure(name, f"{field_label(name, {})} is required")

    return ValidationResult.ok(populated)


def validate_or_raise(shape: Optional[JSONSchema], data: Optional[Mapping[str, Any]]) -> Dict[str, Any]:
    """Like validate(), but raise SchemaValidationError on failure."""
    result = validate(shape, data)
    if not result.is_valid:
        raise SchemaValidationError(result.error, field=result.field)
    return result.data


# ============================================================================
# Internal Helpers
# ============================================================================

def _expects_string(field_schema: Mapping[str, Any]) -> bool:
    if field_schema.get("type") == "string":
        return True
    return any(alt.get("type") == "string" for alt in field_schema.get("anyOf", []))


def _matches_type(value: Any, type_name: Optional[str]) -> bool:
    if type_name is None:
        return True
    if type_name == "string":
        return isinstance(value, str)
    if type_name == "boolean":
        return isinstance(value, bool)
    if type_name == "integer":
        if isinstance(value, bool):
            return False
        return isinstance(value, int) or (isinstance(value, float) and value.is_integer())
    if type_name == "number":
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if type_name == "object":
        return isinstance(value, Mapping)
    if type_name == "array":
        return isinstance(value, list)
    logger.warning(f"Unsupported schema type '{type_name}', accepting value")
    return True


def _check_value(label: str, value: Any, field_schema: Mapping[str, Any]) -> Optional[str]:
    """Return an error message for the first violated constraint, or None."""
    alternatives = field_schema.get("anyOf")
    if alternatives:
        return _check_union(label, value, alternatives)

    type_name = field_schema.get("type")
    if not _matches_type(value, type_name):
        return f"{label} must be {_TYPE_NAMES.get(type_name, type_name)}"

    if "enum" in field_schema and value not in field_schema["enum"]:
        allowed = ", ".join(str(option) for option in field_schema["enum"])
        return f"{label} must be one of: {allowed}"

    if isinstance(value, str):
        min_length = field_schema.get("minLength")
        max_length = field_schema.get("maxLength")
        if min_length is not None and len(value) < min_length:
            if min_length == 1:
                return f"{label} is required and cannot be empty"
            return f"{label} must be at least {min_length} characters"
        if max_length is not None and len(value) > max_length:
            return f"{label} must be {max_length} characters or less"
        pattern = field_schema.get("pattern")
        if pattern and not re.search(pattern, value):
            description = field_schema.get("patternDescription")
            if description:
                return f"{label} must be {description}"
            return f"{label} must match pattern {pattern}"
        if field_schema.get("format") == "uri" and not _is_url(value):
            return f"{label} must be a valid URL"

    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        minimum = field_schema.get("minimum")
        maximum = field_schema.get("maximum")
        if minimum is not None and value < minimum:
            return f"{label} must be at least {minimum}"
        if maximum is not None and value > maximum:
            return f"{label} must be at most {maximum}"

    return None


def _check_union(label: str, value: Any, alternatives: List[Mapping[str, Any]]) -> Optional[str]:
    # Report the error of the first alternative whose type matched; it is
    # the closest to what the caller meant.
    closest_error = None
    for alternative in alternatives:
        error = _check_value(label, value, alternative)
        if error is None:
            return None
        if closest_error is None and _matches_type(value, alternative.get("type")):
            closest_error = error
    if closest_error:
        return closest_error
    names: List[str] = []
    for alternative in alternatives:
        name = _TYPE_NAMES.get(alternative.get("type"), str(alternative.get("type")))
        if name not in names:
            names.append(name)
    return f"{label} must be {' or '.join(names)}"


def _is_url(value: str) -> bool:
    parsed = urlparse(value)
    return bool(parsed.scheme) and bool(parsed.netloc or parsed.path)
