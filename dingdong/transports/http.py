"""Streaming HTTP transport.

FastAPI application served by uvicorn:

- POST /mcp: one JSON-RPC envelope in, one response out
- GET /mcp: Server-Sent Events stream carrying notifications
- GET /health: liveness probe
- GET /: server info and endpoints
"""

import asyncio
import json
import logging
import socket
import uuid
from datetime import datetime, timezone
from typing import Any, AsyncIterator, Dict, Optional

import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from ..config.settings import APP_NAME, DEFAULT_HOST, DEFAULT_PORT, TECHNICAL_NAME, VERSION
from ..server import McpServer
from ..utils.response import INTERNAL_ERROR, PARSE_ERROR, error_envelope
from .base import Transport

logger = logging.getLogger(__name__)

SESSION_HEADER = "Mcp-Session-Id"

# Seconds between keep-alive comments on an idle event stream
KEEPALIVE_SECONDS = 15.0

# Seconds uvicorn gets to finish open requests before it is forced to exit
SHUTDOWN_GRACE_SECONDS = 1.0


def format_event(message: Dict[str, Any]) -> str:
    """Encode a message as one SSE ``data`` event."""
    return f"data: {json.dumps(message, separators=(',', ':'), default=str)}\n\n"


class EventStreamManager:
    """Per-client notification queues for open GET /mcp streams."""

    def __init__(self):
        self.active_streams: Dict[str, asyncio.Queue] = {}

    def open(self) -> str:
        """Register a new stream and return its session id."""
        session_id = str(uuid.uuid4())
        self.active_streams[session_id] = asyncio.Queue()
        logger.info(f"Event stream opened: {session_id}")
        return session_id

    def close(self, session_id: str) -> None:
        queue = self.active_streams.pop(session_id, None)
        if queue is not None:
            queue.put_nowait(None)
            logger.info(f"Event stream closed: {session_id}")

    def close_all(self) -> None:
        for session_id in list(self.active_streams):
            self.close(session_id)

    def broadcast(self, message: Dict[str, Any]) -> int:
        """Queue a message on every open stream. Returns the number of streams."""
        for queue in self.active_streams.values():
            queue.put_nowait(message)
        return len(self.active_streams)

    async def events(self, session_id: str) -> AsyncIterator[str]:
        """Yield SSE frames for one stream until it is closed."""
        queue = self.active_streams.get(session_id)
        if queue is None:
            return

        try:
            yield format_event({"type": "connected", "sessionId": session_id})
            while True:
                try:
                    message = await asyncio.wait_for(queue.get(), timeout=KEEPALIVE_SECONDS)
                except asyncio.TimeoutError:
                    yield ": keepalive\n\n"
                    continue

                if message is None:
                    break
                yield format_event(message)
        finally:
            # Client went away or the stream was closed server-side
            self.active_streams.pop(session_id, None)

    def __len__(self) -> int:
        return len(self.active_streams)


class HttpTransport(Transport):
    """JSON-RPC over HTTP POST with an SSE channel for notifications."""

    def __init__(
        self,
        router: McpServer,
        host: str = DEFAULT_HOST,
        port: int = DEFAULT_PORT
    ):
        """
        Args:
            router: Router that handles decoded messages
            host: Interface to bind
            port: Port to bind (0 picks a free port)
        """
        super().__init__(router)
        self.host = host
        self.port = port
        self.streams = EventStreamManager()
        self.app = self._create_app()

        self._connected = False
        self._server: Optional[uvicorn.Server] = None
        self._serve_task: Optional[asyncio.Task] = None
        self._socket: Optional[socket.socket] = None

        logger.info(f"HTTP transport initialized on {host}:{port}")

    @property
    def is_connected(self) -> bool:
        return self._connected

    @property
    def url(self) -> str:
        return f"http://{self.host}:{self.port}"

    # ========================================================================
    # Lifecycle
    # ========================================================================

    async def start(self) -> None:
        """
        Bind the port, connect the router and serve until stopped.

        Raises:
            OSError: If the address cannot be bound (e.g. port in use)
        """
        sock = socket.create_server((self.host, self.port))
        self._socket = sock
        self.port = sock.getsockname()[1]

        self.router.connect(self)
        self._connected = True

        config = uvicorn.Config(
            self.app,
            log_config=None,
            access_log=False,
            lifespan="off",
        )
        self._server = uvicorn.Server(config)
        self._serve_task = asyncio.create_task(self._server.serve(sockets=[sock]))

        try:
            while not self._server.started:
                if self._serve_task.done():
                    # Surface the startup failure
                    self._serve_task.result()
                    raise RuntimeError("HTTP server exited during startup")
                await asyncio.sleep(0.01)
        except BaseException:
            self._connected = False
            if not self._serve_task.done():
                self._serve_task.cancel()
            sock.close()
            self._socket = None
            self._mark_closed()
            raise

        logger.info(f"Streamable HTTP transport started on {self.url}")
        logger.info(f"  - Health: {self.url}/health")
        logger.info(f"  - MCP Streamable HTTP: {self.url}/mcp")
        logger.info(f"  - Server Info: {self.url}/")

    async def stop(self) -> None:
        """Close event streams, then shut uvicorn down within the grace period."""
        self._connected = False
        self.streams.close_all()

        server, task = self._server, self._serve_task
        if server is not None and task is not None and not task.done():
            server.should_exit = True
            done, _ = await asyncio.wait({task}, timeout=SHUTDOWN_GRACE_SECONDS)
            if not done:
                logger.warning("Forcing HTTP server shutdown")
                server.force_exit = True
                task.cancel()
                try:
                    await task
                except asyncio.CancelledError:
                    pass

        if self._socket is not None:
            self._socket.close()
            self._socket = None

        self._mark_closed()
        logger.info("Streamable HTTP transport stopped")

    def send(self, message: Dict[str, Any]) -> None:
        if not self._connected:
            raise ConnectionError("HTTP transport is not connected")
        delivered = self.streams.broadcast(message)
        if not delivered:
            logger.debug(f"No open event streams for {message.get('method')}")

    # ========================================================================
    # Application
    # ========================================================================

    def _create_app(self) -> FastAPI:
        app = FastAPI(title=APP_NAME, version=VERSION)

        app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_methods=["GET", "POST", "OPTIONS"],
            allow_headers=["*"],
            expose_headers=[SESSION_HEADER],
        )

        @app.get("/health")
        async def health():
            """Liveness probe."""
            return {
                "status": "healthy",
                "server": TECHNICAL_NAME,
                "timestamp": datetime.now(timezone.utc).isoformat(),
                "activeStreams": len(self.streams),
            }

        @app.get("/")
        async def root():
            """Server info and endpoints."""
            return {
                "name": APP_NAME,
                "version": VERSION,
                "transport": "streamable-http",
                "endpoints": {
                    "health": "/health",
                    "mcp": "/mcp",
                },
                "status": "ready" if self._connected else "stopped",
            }

        @app.post("/mcp")
        async def handle_message(request: Request):
            """Handle one JSON-RPC envelope."""
            try:
                body = await request.body()
                try:
                    message = json.loads(body)
                except ValueError as e:
                    return JSONResponse(
                        error_envelope(None, PARSE_ERROR, f"Parse error: {e}"),
                        status_code=400,
                    )

                logger.debug(f"POST /mcp method={message.get('method') if isinstance(message, dict) else None}")
                response = await self.router.handle(message)
                if response is None:
                    return Response(status_code=202)
                return JSONResponse(response)

            except Exception as e:
                logger.exception("Error handling MCP request")
                return JSONResponse(
                    error_envelope(None, INTERNAL_ERROR, f"Failed to handle MCP request: {e}"),
                    status_code=500,
                )

        @app.get("/mcp")
        async def event_stream():
            """Open a notification stream."""
            session_id = self.streams.open()
            return StreamingResponse(
                self.streams.events(session_id),
                media_type="text/event-stream",
                headers={
                    SESSION_HEADER: session_id,
                    "Cache-Control": "no-cache",
                },
            )

        return app
