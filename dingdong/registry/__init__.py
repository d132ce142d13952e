"""
Operation Registry for the DingDong server.

Provides a mutable, observable catalog of remotely invocable operations.
"""

from .operation_registry import (
    OperationRegistry,
    OperationDescriptor,
    OperationHandler,
    ValidationPolicy,
    JSONSchema,
    # Exceptions
    InvalidOperationDescriptor,
    OperationRegistryError,
    SchemaValidationError,
)

__all__ = [
    'OperationRegistry',
    'OperationDescriptor',
    'OperationHandler',
    'ValidationPolicy',
    'JSONSchema',
    # Exceptions
    'InvalidOperationDescriptor',
    'OperationRegistryError',
    'SchemaValidationError',
]
