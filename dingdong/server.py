"""Protocol core for the DingDong notification server.

Transport-agnostic request router: transports hand decoded JSON-RPC
envelopes to ``McpServer.handle`` and write back whatever it returns.
Registry changes are pushed to the connected transport as
``operations/list_changed`` notifications.
"""

import inspect
import logging
from enum import Enum
from typing import TYPE_CHECKING, Any, Awaitable, Callable, Dict, Optional

from mcp.shared.exceptions import McpError
from mcp.types import LATEST_PROTOCOL_VERSION, ErrorData

from .adapters.notifier import Notifier
from .config.settings import TECHNICAL_NAME, VERSION
from .events import ChangeEventBus, ChangeRecord, now_ms
from .registry import OperationDescriptor, OperationRegistry, ValidationPolicy
from .registry.operations import register_all_operations
from .resources import ResourceCatalog
from .utils.response import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    RESOURCE_NOT_FOUND,
    SERVER_CLOSED,
    error_data_envelope,
    error_envelope,
    notification_envelope,
    success_envelope,
    text_content,
)
from .validators import validate

if TYPE_CHECKING:
    from .transports.base import Transport

logger = logging.getLogger(__name__)

LIST_CHANGED_METHOD = "operations/list_changed"

MethodHandler = Callable[[Dict[str, Any]], Awaitable[Dict[str, Any]]]


class ServerState(Enum):
    """Router lifecycle states."""
    DISCONNECTED = "disconnected"
    CONNECTED = "connected"
    CLOSED = "closed"


def protocol_error(code: int, message: str, data: Optional[Any] = None) -> McpError:
    """Build an McpError carrying a JSON-RPC error."""
    return McpError(ErrorData(code=code, message=message, data=data))


class McpServer:
    """
    Request router bound to one transport at a time.

    The router owns no I/O. ``handle`` returns exactly one response
    envelope for every message that carries an id, and ``None`` for
    client notifications.
    """

    def __init__(self, registry: OperationRegistry, catalog: ResourceCatalog):
        """
        Initialize the router.

        Args:
            registry: Operations exposed through operations/list and operations/call
            catalog: Resources exposed through resources/list and resources/read
        """
        self.registry = registry
        self.catalog = catalog
        self.state = ServerState.DISCONNECTED
        self._transport: Optional["Transport"] = None

        self._handlers: Dict[str, MethodHandler] = {
            "initialize": self._handle_initialize,
            "ping": self._handle_ping,
            "operations/list": self._handle_list_operations,
            "operations/call": self._handle_call_operation,
            "tools/list": self._handle_list_operations,
            "tools/call": self._handle_call_operation,
            "resources/list": self._handle_list_resources,
            "resources/read": self._handle_read_resource,
        }

    @property
    def transport(self) -> Optional["Transport"]:
        return self._transport

    # ========================================================================
    # Lifecycle
    # ========================================================================

    def connect(self, transport: "Transport") -> None:
        """
        Bind a transport and start forwarding change notifications.

        Raises:
            RuntimeError: If already connected or closed
        """
        if self.state is ServerState.CONNECTED:
            raise RuntimeError("Server is already connected")
        if self.state is ServerState.CLOSED:
            raise RuntimeError("Server is closed")

        self._transport = transport
        self.registry.bus.subscribe(self._on_change)
        self.state = ServerState.CONNECTED
        logger.info(f"Server connected to {type(transport).__name__}")

    def close(self) -> None:
        """Stop forwarding notifications and reject further requests."""
        if self.state is ServerState.CLOSED:
            return

        self.registry.bus.unsubscribe(self._on_change)
        self.state = ServerState.CLOSED
        self._transport = None
        logger.info("Server closed")

    # ========================================================================
    # Request Handling
    # ========================================================================

    async def handle(self, message: Any) -> Optional[Dict[str, Any]]:
        """
        Handle one decoded JSON-RPC message.

        Args:
            message: Decoded envelope (any JSON value)

        Returns:
            Response envelope, or None for messages without an id
        """
        if not isinstance(message, dict):
            return error_envelope(None, INVALID_REQUEST, "Invalid request: expected a JSON object")

        if "id" not in message:
            logger.debug(f"Received notification: {message.get('method')}")
            return None

        request_id = message["id"]

        try:
            if self.state is ServerState.CLOSED:
                raise protocol_error(SERVER_CLOSED, "Server is closed")

            method = message.get("method")
            if not isinstance(method, str) or not method:
                raise protocol_error(INVALID_REQUEST, "Invalid request: missing method")

            params = message.get("params")
            if params is None:
                params = {}
            elif not isinstance(params, dict):
                raise protocol_error(INVALID_PARAMS, "Invalid params: expected an object")

            handler = self._handlers.get(method)
            if handler is None:
                raise protocol_error(METHOD_NOT_FOUND, f"Method not found: {method}")

            logger.debug(f"Handling {method} (id={request_id!r})")
            result = await handler(params)
            return success_envelope(request_id, result)

        except McpError as e:
            logger.debug(f"Request {request_id!r} failed: {e.error.message}")
            return error_data_envelope(request_id, e.error)
        except Exception as e:
            logger.exception("Internal error handling request")
            return error_envelope(request_id, INTERNAL_ERROR, f"Internal error: {e}")

    # ========================================================================
    # Method Handlers
    # ========================================================================

    async def _handle_initialize(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {
            "protocolVersion": LATEST_PROTOCOL_VERSION,
            "capabilities": {
                "tools": {"listChanged": True},
                "resources": {},
            },
            "serverInfo": {
                "name": TECHNICAL_NAME,
                "version": VERSION,
            },
        }

    async def _handle_ping(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {}

    async def _handle_list_operations(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """List the operations registered right now."""
        return {"tools": [operation.to_listing() for operation in self.registry.get_all()]}

    async def _handle_call_operation(self, params: Dict[str, Any]) -> Dict[str, Any]:
        """
        Validate arguments and invoke an operation.

        Raises:
            McpError: Unknown operation, rejected arguments or handler failure
        """
        name = params.get("name")
        if not isinstance(name, str) or not name:
            raise protocol_error(INVALID_PARAMS, "Missing tool name")

        operation = self.registry.get(name)
        if operation is None:
            raise protocol_error(INVALID_PARAMS, f"Unknown tool: {name}")

        validation = validate(operation.input_schema, params.get("arguments"))
        if not validation.is_valid:
            logger.info(f"Invalid arguments for {name}: {validation.error}")
            if operation.validation_policy is ValidationPolicy.REJECT:
                raise protocol_error(
                    INVALID_PARAMS,
                    f"Invalid arguments for tool {name}: {validation.error}",
                )
            return {"content": text_content({
                "success": False,
                "error": validation.error,
                "field": validation.field,
                "timestamp": now_ms(),
            })}

        try:
            result = await self._invoke(operation, validation.data)
        except Exception as e:
            logger.exception(f"Tool {name} failed")
            raise protocol_error(INTERNAL_ERROR, f"Tool execution failed: {e}")

        return {"content": text_content(result)}

    async def _handle_list_resources(self, params: Dict[str, Any]) -> Dict[str, Any]:
        return {"resources": [r.to_listing() for r in self.catalog.list_resources()]}

    async def _handle_read_resource(self, params: Dict[str, Any]) -> Dict[str, Any]:
        uri = params.get("uri")
        if not isinstance(uri, str) or not uri:
            raise protocol_error(INVALID_PARAMS, "Missing uri parameter")

        content = await self.catalog.read_resource(uri)
        if content is None:
            raise protocol_error(RESOURCE_NOT_FOUND, f"Resource not found: {uri}", {"uri": uri})

        return {"contents": [content.to_contents()]}

    # ========================================================================
    # Internal Helpers
    # ========================================================================

    async def _invoke(self, operation: OperationDescriptor, arguments: Dict[str, Any]) -> Any:
        result = operation.handler(arguments)
        if inspect.isawaitable(result):
            result = await result
        return result

    def _on_change(self, record: ChangeRecord) -> None:
        """Forward a registry change to the client, best effort."""
        transport = self._transport
        if self.state is not ServerState.CONNECTED or transport is None:
            logger.debug(f"Skipping {record.kind.value} notification for '{record.name}': not connected")
            return
        if not transport.is_connected:
            logger.debug(f"Skipping {record.kind.value} notification for '{record.name}': transport closed")
            return

        try:
            transport.send(notification_envelope(LIST_CHANGED_METHOD, record.to_params()))
        except Exception as e:
            logger.debug(f"Dropped {record.kind.value} notification for '{record.name}': {e}")


def create_server(
    notifier: Optional[Notifier] = None,
    catalog: Optional[ResourceCatalog] = None
) -> McpServer:
    """
    Build a router with a fresh bus, a populated registry and the resource catalog.

    Args:
        notifier: Notification capability (platform default when omitted)
        catalog: Resource catalog (built-in prompts when omitted)
    """
    registry = OperationRegistry(ChangeEventBus())
    register_all_operations(registry, notifier)
    server = McpServer(registry, catalog or ResourceCatalog())
    logger.info(f"Created server with {registry.size()} operations")
    return server
