"""Command line entry point for the DingDong notification server."""

import argparse
import asyncio
import logging
import signal
import sys
from typing import List, Optional

from pydantic import ValidationError

from .config.settings import (
    APP_NAME,
    DEFAULT_HOST,
    DEFAULT_PORT,
    DESCRIPTION,
    TECHNICAL_NAME,
    VERSION,
    ConfigManager,
    ServerConfig,
    get_all_flags,
)
from .server import create_server
from .transports import HttpTransport, StdioTransport, Transport
from .utils.logging_config import configure_logging

logger = logging.getLogger(__name__)

TRANSPORTS = ("stdio", "http")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=TECHNICAL_NAME, description=DESCRIPTION)
    parser.add_argument(
        "-t", "--transport",
        default="stdio",
        help="Transport type (stdio or http)"
    )
    parser.add_argument(
        "-p", "--port",
        default=str(DEFAULT_PORT),
        help=f"Port number for HTTP transport (default: {DEFAULT_PORT})"
    )
    parser.add_argument(
        "--host",
        default=DEFAULT_HOST,
        help=f"Host for HTTP transport (default: {DEFAULT_HOST})"
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging"
    )
    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {VERSION}"
    )
    return parser


def parse_port(value: str) -> int:
    """
    Parse a TCP port.

    Raises:
        ValueError: If the value is not an integer in 1..65535
    """
    port = int(value, 10)
    if not 1 <= port <= 65535:
        raise ValueError(f"port {port} out of range")
    return port


def create_transport(config: ServerConfig) -> Transport:
    """Build the router and wrap it in the configured transport."""
    router = create_server()
    if config.transport == "http":
        return HttpTransport(router, host=config.host, port=config.port)
    return StdioTransport(router)


async def serve(config: ServerConfig) -> None:
    """Run until a termination signal arrives or the transport closes."""
    transport = create_transport(config)

    stop_requested = asyncio.Event()
    loop = asyncio.get_running_loop()
    for sig in (signal.SIGINT, signal.SIGTERM):
        try:
            loop.add_signal_handler(sig, stop_requested.set)
        except (NotImplementedError, RuntimeError):
            # Signal handlers are unavailable on this platform or thread
            pass

    logger.info(f"Starting MCP server with {config.transport} transport...")
    await transport.start()

    closed = asyncio.create_task(transport.wait_closed())
    stopping = asyncio.create_task(stop_requested.wait())
    try:
        await asyncio.wait({closed, stopping}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        for task in (closed, stopping):
            task.cancel()

    if stop_requested.is_set():
        logger.info("Received shutdown signal, shutting down gracefully...")
    await transport.stop()
    logger.info("Server shutdown completed")


def print_summary(config: ServerConfig) -> None:
    """Show the HTTP configuration on stderr."""
    print(f"{APP_NAME}", file=sys.stderr)
    print("Server Configuration:", file=sys.stderr)
    print(f"  Transport: {config.transport}", file=sys.stderr)
    print(f"  Address:   http://{config.host}:{config.port}", file=sys.stderr)
    print(f"  Version:   {VERSION}", file=sys.stderr)
    print(file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    """
    Parse arguments and run the server.

    Returns:
        Process exit code: 0 after a graceful shutdown, 1 on invalid
        options or a startup failure
    """
    args = build_parser().parse_args(argv)

    if args.transport not in TRANSPORTS:
        print('Error: Invalid transport type. Must be "stdio" or "http"', file=sys.stderr)
        return 1

    try:
        port = parse_port(args.port)
    except ValueError:
        print("Error: Invalid port number. Must be between 1 and 65535", file=sys.stderr)
        return 1

    try:
        manager = ConfigManager(
            transport=args.transport,
            port=port,
            host=args.host,
            verbose=args.verbose,
        )
    except ValidationError as e:
        print(f"Error: Invalid configuration: {e}", file=sys.stderr)
        return 1
    config = manager.get_config()

    configure_logging(config.transport, config.verbose)
    logger.debug(f"Feature flags: {get_all_flags()}")

    if config.transport == "http":
        print_summary(config)

    try:
        asyncio.run(serve(config))
    except KeyboardInterrupt:
        logger.info("Interrupted")
    except Exception as e:
        logger.exception("Failed to start server")
        print(f"Error: Failed to start server: {e}", file=sys.stderr)
        return 1

    return 0


def run() -> None:
    """Console script entry point."""
    sys.exit(main())


if __name__ == "__main__":
    run()
