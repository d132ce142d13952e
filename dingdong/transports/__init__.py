"""Transports that connect a client to the router."""

from .base import Transport
from .http import HttpTransport
from .stdio import StdioTransport

__all__ = [
    'Transport',
    'HttpTransport',
    'StdioTransport',
]
