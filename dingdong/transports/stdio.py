"""stdio transport.

Reads newline-delimited JSON-RPC messages from stdin and writes one
compact JSON document per line to stdout. stdout carries nothing else.
"""

import asyncio
import json
import logging
import sys
from typing import Any, BinaryIO, Dict, Optional, Set

from ..server import McpServer
from ..utils.response import INTERNAL_ERROR, PARSE_ERROR, error_envelope
from .base import Transport

logger = logging.getLogger(__name__)

# Largest accepted line, in bytes
MAX_LINE_BYTES = 16 * 1024 * 1024


class StdioTransport(Transport):
    """NDJSON transport over a pair of pipes."""

    def __init__(
        self,
        router: McpServer,
        reader: Optional[asyncio.StreamReader] = None,
        output: Optional[BinaryIO] = None
    ):
        """
        Args:
            router: Router that handles decoded messages
            reader: Input stream (process stdin when omitted)
            output: Binary output stream (process stdout when omitted)
        """
        super().__init__(router)
        self._reader = reader
        self._output = output if output is not None else sys.stdout.buffer
        self._connected = False
        self._read_task: Optional[asyncio.Task] = None
        self._tasks: Set[asyncio.Task] = set()

    @property
    def is_connected(self) -> bool:
        return self._connected

    async def start(self) -> None:
        """Connect the router and start reading lines."""
        if self._reader is None:
            self._reader = await self._open_stdin()

        self.router.connect(self)
        self._connected = True
        self._read_task = asyncio.create_task(self._read_loop())
        logger.info("Starting stdio MCP transport")

    async def stop(self) -> None:
        """Stop reading, let in-flight requests finish, then close."""
        task = self._read_task
        if task is not None and not task.done() and task is not asyncio.current_task():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass

        await self._drain()
        self._shutdown()

    def send(self, message: Dict[str, Any]) -> None:
        if not self._connected:
            raise ConnectionError("stdio transport is not connected")
        self._write(message)

    # ========================================================================
    # Internal Helpers
    # ========================================================================

    async def _open_stdin(self) -> asyncio.StreamReader:
        loop = asyncio.get_running_loop()
        reader = asyncio.StreamReader(limit=MAX_LINE_BYTES)
        protocol = asyncio.StreamReaderProtocol(reader)
        await loop.connect_read_pipe(lambda: protocol, sys.stdin)
        return reader

    async def _read_loop(self) -> None:
        # Set while skipping the remainder of an oversized line
        discarding = False
        while True:
            try:
                line = await self._reader.readuntil(b"\n")
            except asyncio.IncompleteReadError as e:
                # Final line without a trailing newline, or b"" at EOF
                line = e.partial
            except asyncio.LimitOverrunError as e:
                await self._reader.readexactly(e.consumed)
                if not discarding:
                    logger.error(f"Discarding oversized input line: {e}")
                    self._write(error_envelope(None, PARSE_ERROR, "Parse error: line too long"))
                    discarding = True
                continue

            if not line:
                break

            if discarding:
                discarding = False
                continue

            text = line.decode("utf-8", errors="replace").strip()
            if not text:
                continue

            task = asyncio.create_task(self._handle_line(text))
            self._tasks.add(task)
            task.add_done_callback(self._tasks.discard)

        logger.info("stdin closed, shutting down stdio transport")
        await self._drain()
        self._shutdown()

    async def _handle_line(self, line: str) -> None:
        """Decode, route and answer a single line."""
        try:
            message = json.loads(line)
        except json.JSONDecodeError as e:
            logger.debug(f"Parse error: {e}")
            self._write(error_envelope(None, PARSE_ERROR, f"Parse error: {e}"))
            return

        try:
            response = await self.router.handle(message)
        except Exception as e:
            logger.exception("Unhandled error while handling stdio message")
            request_id = message.get("id") if isinstance(message, dict) else None
            response = error_envelope(request_id, INTERNAL_ERROR, f"Internal error: {e}")

        if response is not None:
            self._write(response)

    async def _drain(self) -> None:
        pending = [task for task in self._tasks if task is not asyncio.current_task()]
        if pending:
            logger.debug(f"Waiting for {len(pending)} in-flight requests")
            await asyncio.gather(*pending, return_exceptions=True)

    def _shutdown(self) -> None:
        if not self._connected and self._closed is not None and self._closed.is_set():
            return
        self._connected = False
        self._mark_closed()
        logger.info("stdio transport stopped")

    def _write(self, message: Dict[str, Any]) -> None:
        """Write one message as a single line."""
        try:
            line = json.dumps(message, separators=(",", ":"), default=str) + "\n"
            self._output.write(line.encode("utf-8"))
            self._output.flush()
        except (OSError, ValueError) as e:
            logger.error(f"Failed to write response: {e}")
