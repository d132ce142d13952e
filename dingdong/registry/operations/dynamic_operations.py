"""
Runtime-managed example operations.

calculator and random-number can be added, updated and removed while the
server runs; each change reaches connected clients as an
operations/list_changed notification.
"""

import logging
import random
from dataclasses import replace
from datetime import datetime, timezone
from typing import Any, Dict, List

from ..operation_registry import OperationDescriptor, OperationRegistry

logger = logging.getLogger(__name__)

CALCULATOR_NAME = "calculator"
RANDOM_NUMBER_NAME = "random-number"

UPDATED_CALCULATOR_DESCRIPTION = "Perform basic mathematical calculations with enhanced precision"


# ============================================================================
# Operation Handlers
# ============================================================================

async def calculator_handler(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Apply a basic arithmetic operation.

    Raises:
        ZeroDivisionError: On division by zero
        ValueError: On an unknown operation
    """
    operation = params["operation"]
    a = params["a"]
    b = params["b"]

    if operation == "add":
        return {"result": a + b, "operation": f"{a} + {b}"}
    if operation == "subtract":
        return {"result": a - b, "operation": f"{a} - {b}"}
    if operation == "multiply":
        return {"result": a * b, "operation": f"{a} × {b}"}
    if operation == "divide":
        if b == 0:
            raise ZeroDivisionError("Division by zero is not allowed")
        return {"result": a / b, "operation": f"{a} ÷ {b}"}

    raise ValueError(f"Unknown operation: {operation}")


def _pick(low, high):
    if float(low).is_integer() and float(high).is_integer():
        return random.randint(int(low), int(high))
    return random.uniform(low, high)


async def random_number_handler(params: Dict[str, Any]) -> Dict[str, Any]:
    """
    Return a random number in the inclusive range [min, max].

    Integral bounds give an integer; fractional bounds give a float.
    """
    low = params.get("min", 0)
    high = params.get("max", 100)

    if low > high:
        raise ValueError("Minimum value cannot be greater than maximum value")

    return {
        "result": _pick(low, high),
        "range": f"{low} to {high}",
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ============================================================================
# Operation Descriptors
# ============================================================================

CALCULATOR = OperationDescriptor(
    name=CALCULATOR_NAME,
    description="Perform basic mathematical calculations",
    input_schema={
        "type": "object",
        "properties": {
            "operation": {
                "type": "string",
                "enum": ["add", "subtract", "multiply", "divide"],
                "description": "The mathematical operation to perform"
            },
            "a": {"type": "number", "description": "First number"},
            "b": {"type": "number", "description": "Second number"}
        },
        "required": ["operation", "a", "b"]
    },
    handler=calculator_handler
)

RANDOM_NUMBER = OperationDescriptor(
    name=RANDOM_NUMBER_NAME,
    description="Generate a random number within a specified range",
    input_schema={
        "type": "object",
        "properties": {
            "min": {"type": "number", "description": "Minimum value (inclusive)", "default": 0},
            "max": {"type": "number", "description": "Maximum value (inclusive)", "default": 100}
        },
        "required": []
    },
    handler=random_number_handler
)


# ============================================================================
# Dynamic Operation Manager
# ============================================================================

class DynamicOperationManager:
    """Adds, updates and removes the example operations at runtime."""

    def __init__(self, registry: OperationRegistry):
        self.registry = registry

    def add_calculator(self) -> None:
        self.registry.register(CALCULATOR)
        logger.info("Calculator operation added dynamically")

    def remove_calculator(self) -> bool:
        removed = self.registry.unregister(CALCULATOR_NAME)
        logger.info("Calculator operation removed dynamically")
        return removed

    def add_random_number(self) -> None:
        self.registry.register(RANDOM_NUMBER)
        logger.info("Random number operation added dynamically")

    def remove_random_number(self) -> bool:
        removed = self.registry.unregister(RANDOM_NUMBER_NAME)
        logger.info("Random number operation removed dynamically")
        return removed

    def update_calculator_description(self) -> None:
        """Re-register the calculator with a new description (emits an update)."""
        self.registry.register(replace(CALCULATOR, description=UPDATED_CALCULATOR_DESCRIPTION))
        logger.info("Calculator operation description updated")

    def available_operations(self) -> List[str]:
        """Names of the operations this manager can add."""
        return [CALCULATOR_NAME, RANDOM_NUMBER_NAME]

    def operation_count(self) -> int:
        """Current number of operations in the registry."""
        return self.registry.size()


def register_dynamic_operations(registry: OperationRegistry) -> DynamicOperationManager:
    """Register both dynamic operations and return their manager."""
    manager = DynamicOperationManager(registry)
    manager.add_calculator()
    manager.add_random_number()
    return manager
