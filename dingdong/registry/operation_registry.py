"""
Operation Registry - Mutable catalog of remotely invocable operations.

Provides:
- Typed operation descriptors with JSON input shapes
- Insert/replace/remove by name
- A ChangeRecord on the injected bus for every mutation
- Ordered snapshots for operations/list
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Union

from ..events import ChangeEventBus, ChangeKind, ChangeMetadata, ChangeRecord
from ..validators import SchemaValidationError

logger = logging.getLogger(__name__)

# Type aliases
JSONSchema = Dict[str, Any]
OperationHandler = Callable[[Dict[str, Any]], Union[Any, Awaitable[Any]]]


# ============================================================================
# Enums
# ============================================================================

class ValidationPolicy(Enum):
    """How argument validation failures reach the caller."""
    REPORT = "report"   # successful envelope with {success: false, error}
    REJECT = "reject"   # protocol-level error response


# ============================================================================
# Data Classes
# ============================================================================

@dataclass
class OperationDescriptor:
    """Describes an operation exposed to clients."""
    name: str                          # Unique operation identifier (e.g., "echo")
    description: str                   # Human-readable description
    input_schema: JSONSchema           # Input shape, published as inputSchema
    handler: OperationHandler          # Receives the validated argument mapping
    output_schema: Optional[JSONSchema] = None
    validation_policy: ValidationPolicy = ValidationPolicy.REPORT

    def to_listing(self) -> Dict[str, Any]:
        """Snapshot entry used by operations/list."""
        return {
            "name": self.name,
            "description": self.description,
            "inputSchema": self.input_schema,
        }


# ============================================================================
# Exceptions
# ============================================================================

class OperationRegistryError(Exception):
    """Base exception for registry errors."""
    pass


class InvalidOperationDescriptor(OperationRegistryError):
    """Invalid operation descriptor."""
    pass


# ============================================================================
# Operation Registry
# ============================================================================

class OperationRegistry:
    """
    Registry of operations keyed by name.

    Every mutation is published on the bus after it is visible to get()
    and get_all(). All methods are synchronous; under a single event loop
    a mutation and its emission are never interleaved with other calls.
    """

    def __init__(self, bus: ChangeEventBus):
        """
        Initialize registry.

        Args:
            bus: Bus that receives a ChangeRecord per mutation
        """
        self._bus = bus
        self._operations: Dict[str, OperationDescriptor] = {}

        logger.debug("OperationRegistry initialized")

    @property
    def bus(self) -> ChangeEventBus:
        return self._bus

    # ========================================================================
    # Registration
    # ========================================================================

    def register(self, operation: OperationDescriptor) -> None:
        """
        Register an operation, replacing any existing one with the same name.

        Args:
            operation: Operation descriptor to register

        Raises:
            InvalidOperationDescriptor: If descriptor validation fails
        """
        self._validate_descriptor(operation)

        existing = self._operations.get(operation.name)
        self._operations[operation.name] = operation

        if existing is not None:
            record = ChangeRecord(
                kind=ChangeKind.UPDATED,
                name=operation.name,
                metadata=ChangeMetadata(
                    description=operation.description,
                    previous_description=existing.description,
                    reason="definition updated",
                ),
            )
        else:
            record = ChangeRecord(
                kind=ChangeKind.ADDED,
                name=operation.name,
                metadata=ChangeMetadata(
                    description=operation.description,
                    reason="new operation registered",
                ),
            )

        logger.info(f"Operation {record.kind.value}: {operation.name}")
        self._bus.publish(record)

    def register_all(self, operations: Iterable[OperationDescriptor]) -> None:
        """
        Register multiple operations at once.

        Args:
            operations: Operation descriptors to register
        """
        for operation in operations:
            self.register(operation)

    def unregister(self, name: str) -> bool:
        """
        Remove an operation.

        Returns:
            True if an operation was removed, False if the name was unknown
        """
        existing = self._operations.pop(name, None)
        if existing is None:
            return False

        logger.info(f"Operation removed: {name}")
        self._bus.publish(ChangeRecord(
            kind=ChangeKind.REMOVED,
            name=name,
            metadata=ChangeMetadata(
                previous_description=existing.description,
                reason="operation unregistered",
            ),
        ))
        return True

    def clear(self) -> None:
        """Remove every operation, emitting one removal per entry."""
        removed = list(self._operations.values())
        self._operations.clear()

        for operation in removed:
            self._bus.publish(ChangeRecord(
                kind=ChangeKind.REMOVED,
                name=operation.name,
                metadata=ChangeMetadata(
                    previous_description=operation.description,
                    reason="registry cleared",
                ),
            ))

        logger.info(f"Operation registry cleared ({len(removed)} removed)")

    # ========================================================================
    # Retrieval
    # ========================================================================

    def get(self, name: str) -> Optional[OperationDescriptor]:
        """Return the operation registered under ``name``, if any."""
        return self._operations.get(name)

    def get_all(self) -> List[OperationDescriptor]:
        """Snapshot of all operations in registration order."""
        return list(self._operations.values())

    def names(self) -> List[str]:
        return list(self._operations.keys())

    def has(self, name: str) -> bool:
        """Check if operation exists."""
        return name in self._operations

    def size(self) -> int:
        return len(self._operations)

    def __len__(self) -> int:
        return len(self._operations)

    def __contains__(self, name: object) -> bool:
        return name in self._operations

    # ========================================================================
    # Internal Helpers
    # ========================================================================

    def _validate_descriptor(self, operation: OperationDescriptor) -> None:
        """
        Validate operation descriptor.

        Raises:
            InvalidOperationDescriptor: If validation fails
        """
        if not operation.name or not isinstance(operation.name, str):
            raise InvalidOperationDescriptor("Operation name is required")

        if not callable(operation.handler):
            raise InvalidOperationDescriptor(
                f"Operation handler for '{operation.name}' must be callable"
            )

        if operation.input_schema is not None and not isinstance(operation.input_schema, dict):
            raise InvalidOperationDescriptor(
                f"Input schema for '{operation.name}' must be an object"
            )


__all__ = [
    'JSONSchema',
    'OperationHandler',
    'ValidationPolicy',
    'OperationDescriptor',
    'OperationRegistryError',
    'InvalidOperationDescriptor',
    'SchemaValidationError',
    'OperationRegistry',
]
