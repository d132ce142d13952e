"""Standardized JSON-RPC envelope utilities."""

import json
from typing import Any, Dict, List, Optional, Union

from mcp.types import (
    INTERNAL_ERROR,
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    ErrorData,
    TextContent,
)

JSONRPC_VERSION = "2.0"

# Codes outside the JSON-RPC reserved set
SERVER_CLOSED = -32000
RESOURCE_NOT_FOUND = -32002

RequestId = Optional[Union[str, int]]

__all__ = [
    'JSONRPC_VERSION',
    'PARSE_ERROR',
    'INVALID_REQUEST',
    'METHOD_NOT_FOUND',
    'INVALID_PARAMS',
    'INTERNAL_ERROR',
    'SERVER_CLOSED',
    'RESOURCE_NOT_FOUND',
    'success_envelope',
    'error_envelope',
    'error_data_envelope',
    'notification_envelope',
    'is_success',
    'text_content',
    'to_text',
]


def success_envelope(request_id: RequestId, result: Dict[str, Any]) -> Dict[str, Any]:
    """Create a successful response envelope.

    Args:
        request_id: Correlation id copied from the request
        result: Method-specific result payload

    Returns:
        Response envelope
    """
    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "result": result,
    }


def error_envelope(
    request_id: RequestId,
    code: int,
    message: str,
    data: Optional[Any] = None
) -> Dict[str, Any]:
    """Create an error response envelope.

    Args:
        request_id: Correlation id copied from the request (None if unknown)
        code: JSON-RPC error code
        message: Error message
        data: Optional structured error details

    Returns:
        Response envelope carrying ``error``
    """
    error: Dict[str, Any] = {"code": code, "message": message}

    if data is not None:
        error["data"] = data

    return {
        "jsonrpc": JSONRPC_VERSION,
        "id": request_id,
        "error": error,
    }


def error_data_envelope(request_id: RequestId, error: ErrorData) -> Dict[str, Any]:
    """Error envelope built from an mcp ErrorData."""
    return error_envelope(request_id, error.code, error.message, error.data)


def notification_envelope(method: str, params: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """Create a notification (no id)."""
    return {
        "jsonrpc": JSONRPC_VERSION,
        "method": method,
        "params": params or {},
    }


def is_success(envelope: Dict[str, Any]) -> bool:
    """Check whether a response envelope carries a result."""
    return "result" in envelope and "error" not in envelope


def to_text(payload: Any) -> str:
    """Serialize a handler result for a text content block."""
    if hasattr(payload, "model_dump"):
        payload = payload.model_dump()
    if isinstance(payload, str):
        return payload
    return json.dumps(payload, indent=2, default=str)


def text_content(payload: Any) -> List[Dict[str, Any]]:
    """Wrap a payload as a single-item text content list."""
    block = TextContent(type="text", text=to_text(payload))
    return [block.model_dump(exclude_none=True)]
