"""
Built-in operation registrations.

Registers the always-available hello-world, echo and health operations.
"""

import logging
from typing import Any, Dict

from ...config.settings import APP_NAME
from ..operation_registry import (
    OperationDescriptor,
    OperationRegistry,
    ValidationPolicy,
)

logger = logging.getLogger(__name__)


# ============================================================================
# Operation Handlers
# ============================================================================

async def hello_world_handler(params: Dict[str, Any]) -> Dict[str, str]:
    """Return a greeting naming the server."""
    logger.debug("Executing hello-world operation")
    return {"message": f"Hello from {APP_NAME}!"}


async def echo_handler(params: Dict[str, Any]) -> Dict[str, str]:
    """Return the validated text unchanged."""
    logger.debug("Executing echo operation")
    return {"echo": params["text"]}


async def health_handler(params: Dict[str, Any]) -> Dict[str, str]:
    logger.debug("Executing health operation")
    return {"status": "green"}


# ============================================================================
# Operation Descriptors
# ============================================================================

EMPTY_INPUT = {
    "type": "object",
    "properties": {},
    "required": []
}

HELLO_WORLD = OperationDescriptor(
    name="hello-world",
    description="Returns a simple greeting message",
    input_schema=EMPTY_INPUT,
    handler=hello_world_handler,
    output_schema={
        "type": "object",
        "properties": {
            "message": {
                "type": "string",
                "description": "The greeting message from the server"
            }
        },
        "required": ["message"]
    }
)

ECHO = OperationDescriptor(
    name="echo",
    description="Echoes back the provided text",
    input_schema={
        "type": "object",
        "properties": {
            "text": {
                "type": "string",
                "description": "The text to echo back",
                "minLength": 1
            }
        },
        "required": ["text"]
    },
    handler=echo_handler,
    output_schema={
        "type": "object",
        "properties": {
            "echo": {
                "type": "string",
                "description": "The echoed text, identical to the input"
            }
        },
        "required": ["echo"]
    },
    validation_policy=ValidationPolicy.REJECT
)

HEALTH = OperationDescriptor(
    name="health",
    description="Returns server health status",
    input_schema=EMPTY_INPUT,
    handler=health_handler,
    output_schema={
        "type": "object",
        "properties": {
            "status": {
                "type": "string",
                "enum": ["green", "yellow", "red"],
                "description": "Server health (green=healthy, yellow=warning, red=error)"
            }
        },
        "required": ["status"]
    }
)


# ============================================================================
# Registration Function
# ============================================================================

def register_builtin_operations(registry: OperationRegistry) -> None:
    """Register the built-in operations with the registry."""
    operations = [
        HELLO_WORLD,
        ECHO,
        HEALTH,
    ]

    registry.register_all(operations)
    logger.info(f"Registered {len(operations)} built-in operations")
