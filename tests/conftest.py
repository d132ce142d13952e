"""Shared fixtures for DingDong server tests."""

import asyncio
import logging
from typing import Any, Dict, List, Optional

import pytest

from dingdong.adapters.notifier import NotificationRequest, Notifier
from dingdong.events import ChangeEventBus
from dingdong.registry import OperationDescriptor, OperationRegistry
from dingdong.registry.operations import register_builtin_operations, register_notification_operations
from dingdong.resources import ResourceCatalog
from dingdong.server import McpServer
from dingdong.transports.base import Transport


# ============================================================================
# Test Doubles
# ============================================================================

class FakeNotifier(Notifier):
    """Notifier that answers from the event loop without running anything."""

    def __init__(
        self,
        error: Optional[BaseException] = None,
        response: str = "ok",
        respond: bool = True,
        delay: float = 0.0
    ):
        self.error = error
        self.response = response
        self.respond = respond
        self.delay = delay
        self.requests: List[NotificationRequest] = []

    def notify(self, request, callback):
        self.requests.append(request)
        if not self.respond:
            return
        response = None if self.error else self.response
        asyncio.get_running_loop().call_later(self.delay, callback, self.error, response)


class RecordingTransport(Transport):
    """Transport that keeps every message passed to send()."""

    def __init__(self, router: McpServer, fail_sends: bool = False):
        super().__init__(router)
        self.sent: List[Dict[str, Any]] = []
        self.connected = False
        self.fail_sends = fail_sends

    @property
    def is_connected(self) -> bool:
        return self.connected

    async def start(self) -> None:
        self.router.connect(self)
        self.connected = True

    async def stop(self) -> None:
        self.connected = False
        self._mark_closed()

    def send(self, message: Dict[str, Any]) -> None:
        if self.fail_sends:
            raise ConnectionError("pipe closed")
        self.sent.append(message)


def make_operation(name: str = "sample", handler=None, description: str = "Sample operation"):
    """Build a minimal operation descriptor."""

    async def default_handler(params):
        return {"ok": True}

    return OperationDescriptor(
        name=name,
        description=description,
        input_schema={"type": "object", "properties": {}, "required": []},
        handler=handler or default_handler,
    )


# ============================================================================
# Fixtures
# ============================================================================

@pytest.fixture
def bus():
    return ChangeEventBus()


@pytest.fixture
def registry(bus):
    return OperationRegistry(bus)


@pytest.fixture
def notifier():
    return FakeNotifier()


@pytest.fixture
def populated_registry(registry, notifier):
    """Registry holding the built-in and notification operations."""
    register_builtin_operations(registry)
    register_notification_operations(registry, notifier)
    return registry


@pytest.fixture
def catalog():
    return ResourceCatalog()


@pytest.fixture
def router(populated_registry, catalog):
    return McpServer(populated_registry, catalog)


@pytest.fixture
def recording_transport(router):
    return RecordingTransport(router)


@pytest.fixture
def reset_package_logger():
    """Restore the package logger after a test configures it."""
    yield
    logger = logging.getLogger("dingdong")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
