"""Transport contract shared by the stdio and HTTP transports."""

import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

from ..server import McpServer

logger = logging.getLogger(__name__)


class Transport(ABC):
    """
    Moves envelopes between a client and the router.

    ``start`` connects the router to this transport and ``stop`` closes it.
    ``send`` delivers an out-of-band message (a notification) and never
    suspends, so the router can call it from a synchronous bus subscriber.
    """

    def __init__(self, router: McpServer):
        self.router = router
        self._closed: Optional[asyncio.Event] = None

    @abstractmethod
    async def start(self) -> None:
        """Begin accepting messages."""

    @abstractmethod
    async def stop(self) -> None:
        """Stop accepting messages and release resources."""

    @abstractmethod
    def send(self, message: Dict[str, Any]) -> None:
        """Deliver a message to the client without waiting."""

    @property
    @abstractmethod
    def is_connected(self) -> bool:
        """Whether messages passed to ``send`` can currently be delivered."""

    async def wait_closed(self) -> None:
        """Wait until the transport has shut down."""
        await self._closed_event().wait()

    def _closed_event(self) -> asyncio.Event:
        if self._closed is None:
            self._closed = asyncio.Event()
        return self._closed

    def _mark_closed(self) -> None:
        self._closed_event().set()
        self.router.close()
        logger.debug(f"{type(self).__name__} closed")
