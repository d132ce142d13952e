"""
Notification operation registration.

Registers send-notification, which forwards a validated request to the
notifier capability and reports the outcome as structured data.
"""

import asyncio
import logging
import uuid
from typing import Any, Dict, Optional

from ...adapters.notifier import NotificationRequest, Notifier, default_notifier
from ...events import now_ms
from ..operation_registry import (
    OperationDescriptor,
    OperationRegistry,
    ValidationPolicy,
)

logger = logging.getLogger(__name__)

# Seconds to wait for the notifier before assuming delivery succeeded
NOTIFY_TIMEOUT_SECONDS = 3.0

MACOS_SOUNDS = [
    "Basso", "Blow", "Bottle", "Frog", "Funk", "Glass", "Hero",
    "Morse", "Ping", "Pop", "Purr", "Sosumi", "Submarine", "Tink",
]

ABSOLUTE_PATH_PATTERN = "^/"


# ============================================================================
# Error Classification
# ============================================================================

PERMISSION_DENIED_MESSAGE = (
    "Notification permission denied. "
    "Please allow notifications in System Settings > Notifications"
)
TIMEOUT_MESSAGE = "Notification timeout - please check your notification settings"
UNAVAILABLE_MESSAGE = (
    "Notification system unavailable - "
    "terminal-notifier or osascript is required (macOS only)"
)
RATE_LIMITED_MESSAGE = "Too many notifications - please wait before sending more"


def classify_error(error: BaseException) -> str:
    """
    Map a notifier error to a user-facing message.

    Args:
        error: Error reported by the notifier

    Returns:
        Message for the permission-denied, timeout, system-unavailable or
        rate-limited category, or a generic message with the raw detail
    """
    detail = str(error) or type(error).__name__
    text = detail.lower()

    if "permission denied" in text or isinstance(error, PermissionError):
        return PERMISSION_DENIED_MESSAGE
    if "timeout" in text or "timed out" in text or isinstance(error, asyncio.TimeoutError):
        return TIMEOUT_MESSAGE
    if (
        "not available" in text
        or "unavailable" in text
        or "not found" in text
        or isinstance(error, FileNotFoundError)
    ):
        return UNAVAILABLE_MESSAGE
    if "rate limit" in text or "too many" in text:
        return RATE_LIMITED_MESSAGE
    return f"Failed to send notification: {detail}"


def make_notification_id() -> str:
    return f"notification-{now_ms()}-{uuid.uuid4().hex[:9]}"


# ============================================================================
# Operation Handler
# ============================================================================

def build_request(params: Dict[str, Any]) -> NotificationRequest:
    """Convert validated operation arguments into a NotificationRequest."""
    return NotificationRequest(
        title=params["title"],
        message=params["message"],
        subtitle=params.get("subtitle"),
        urgency=params.get("urgency", "normal"),
        sound=params.get("sound", True),
        timeout_seconds=int(params.get("timeoutSeconds", 10)),
        icon=params.get("icon"),
        content_image_path=params.get("contentImagePath"),
        open_url=params.get("openUrl"),
    )


async def send_notification(
    notifier: Notifier,
    params: Dict[str, Any],
    timeout: float = NOTIFY_TIMEOUT_SECONDS
) -> Dict[str, Any]:
    """
    Send one notification and report the outcome.

    The notifier callback is raced against ``timeout``. macOS does not
    always report back, so a notifier that stays silent is treated as a
    successful delivery.

    Args:
        notifier: Notification capability
        params: Validated send-notification arguments
        timeout: Seconds to wait for the notifier callback

    Returns:
        ``{success, notificationId, timestamp}`` or ``{success, error, timestamp}``
    """
    notification_id = make_notification_id()
    request = build_request(params)

    loop = asyncio.get_running_loop()
    outcome: asyncio.Future = loop.create_future()

    def on_complete(error: Optional[BaseException], response: Optional[str]) -> None:
        def resolve() -> None:
            if not outcome.done():
                outcome.set_result((error, response))
        loop.call_soon_threadsafe(resolve)

    try:
        notifier.notify(request, on_complete)
    except Exception as e:
        logger.error(f"Error executing notification operation: {e}")
        return {"success": False, "error": classify_error(e), "timestamp": now_ms()}

    done, _ = await asyncio.wait({outcome}, timeout=timeout)

    if not done:
        logger.warning(
            f"Notifier did not respond within {timeout}s, assuming {notification_id} was delivered"
        )
    else:
        error, _response = outcome.result()
        if error is not None:
            logger.error(f"Error executing notification operation: {error}")
            return {"success": False, "error": classify_error(error), "timestamp": now_ms()}

    logger.info(
        f"Notification sent: {notification_id} "
        f"(title={request.title!r}, urgency={request.urgency})"
    )
    return {"success": True, "notificationId": notification_id, "timestamp": now_ms()}


# ============================================================================
# Operation Descriptor
# ============================================================================

SEND_NOTIFICATION_INPUT = {
    "type": "object",
    "properties": {
        "title": {
            "type": "string",
            "description": "The notification title",
            "minLength": 1,
            "maxLength": 100
        },
        "message": {
            "type": "string",
            "description": "The notification message body",
            "minLength": 1,
            "maxLength": 500
        },
        "subtitle": {
            "type": "string",
            "description": "Optional subtitle text displayed below the title",
            "maxLength": 100
        },
        "urgency": {
            "type": "string",
            "enum": ["low", "normal", "critical"],
            "description": "Notification urgency level",
            "default": "normal"
        },
        "sound": {
            "anyOf": [
                {"type": "boolean"},
                {"type": "string", "enum": MACOS_SOUNDS},
                {
                    "type": "string",
                    "pattern": ABSOLUTE_PATH_PATTERN,
                    "patternDescription": "an absolute path"
                }
            ],
            "description": "true/false, a macOS sound name, or an absolute path to a sound file",
            "default": True
        },
        "timeoutSeconds": {
            "type": "integer",
            "title": "Timeout",
            "description": "Notification timeout in seconds (1-60)",
            "minimum": 1,
            "maximum": 60,
            "default": 10
        },
        "icon": {
            "type": "string",
            "description": "Absolute path to an icon image",
            "pattern": ABSOLUTE_PATH_PATTERN,
            "patternDescription": "an absolute path"
        },
        "contentImagePath": {
            "type": "string",
            "title": "Content image path",
            "description": "Absolute path to an image shown in the notification body",
            "pattern": ABSOLUTE_PATH_PATTERN,
            "patternDescription": "an absolute path"
        },
        "openUrl": {
            "type": "string",
            "title": "Open URL",
            "description": "URL opened when the notification is clicked",
            "format": "uri"
        }
    },
    "required": ["title", "message"]
}

SEND_NOTIFICATION_OUTPUT = {
    "type": "object",
    "properties": {
        "success": {"type": "boolean", "description": "Whether the notification was sent"},
        "notificationId": {"type": "string", "description": "Unique identifier for the notification"},
        "error": {"type": "string", "description": "Error message if the notification failed"},
        "timestamp": {"type": "number", "description": "Unix timestamp in milliseconds"}
    },
    "required": ["success", "timestamp"]
}


def create_send_notification_operation(
    notifier: Notifier,
    timeout: float = NOTIFY_TIMEOUT_SECONDS
) -> OperationDescriptor:
    """Build the send-notification descriptor bound to a notifier."""

    async def handler(params: Dict[str, Any]) -> Dict[str, Any]:
        return await send_notification(notifier, params, timeout=timeout)

    return OperationDescriptor(
        name="send-notification",
        description="Send a desktop notification on macOS with subtitle and urgency support",
        input_schema=SEND_NOTIFICATION_INPUT,
        handler=handler,
        output_schema=SEND_NOTIFICATION_OUTPUT,
        validation_policy=ValidationPolicy.REPORT
    )


# ============================================================================
# Registration Function
# ============================================================================

def register_notification_operations(
    registry: OperationRegistry,
    notifier: Optional[Notifier] = None
) -> None:
    """Register notification operations with the registry."""
    registry.register(create_send_notification_operation(notifier or default_notifier()))
    logger.info("Registered notification operations")
