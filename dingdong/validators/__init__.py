"""Input validation for operation arguments."""

from .schema_validator import (
    SchemaValidationError,
    ValidationResult,
    field_label,
    validate,
    validate_or_raise,
)

__all__ = [
    'SchemaValidationError',
    'ValidationResult',
    'field_label',
    'validate',
    'validate_or_raise',
]
