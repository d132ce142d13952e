"""Tests for the send-notification operation."""

import asyncio

import pytest

from dingdong.adapters.notifier import NotifierUnavailableError, UnavailableNotifier
from dingdong.registry import ValidationPolicy
from dingdong.registry.operations.notification_operations import (
    PERMISSION_DENIED_MESSAGE,
    RATE_LIMITED_MESSAGE,
    TIMEOUT_MESSAGE,
    UNAVAILABLE_MESSAGE,
    build_request,
    classify_error,
    create_send_notification_operation,
    send_notification,
)

from conftest import FakeNotifier


VALID_ARGS = {
    "title": "Build finished",
    "message": "All tests passed",
    "urgency": "normal",
    "sound": True,
    "timeoutSeconds": 10,
}


class RaisingNotifier(FakeNotifier):
    def notify(self, request, callback):
        raise PermissionError("Permission denied")


class TestSendNotification:

    @pytest.mark.asyncio
    async def test_success(self):
        notifier = FakeNotifier()
        result = await send_notification(notifier, VALID_ARGS)

        assert result["success"] is True
        assert result["notificationId"].startswith("notification-")
        assert isinstance(result["timestamp"], int)
        assert "error" not in result
        assert notifier.requests[0].message == "All tests passed"

    @pytest.mark.asyncio
    async def test_notification_ids_are_unique(self):
        notifier = FakeNotifier()
        first = await send_notification(notifier, VALID_ARGS)
        second = await send_notification(notifier, VALID_ARGS)

        assert first["notificationId"] != second["notificationId"]

    @pytest.mark.asyncio
    async def test_silent_notifier_assumes_success(self):
        notifier = FakeNotifier(respond=False)
        result = await send_notification(notifier, VALID_ARGS, timeout=0.05)

        assert result["success"] is True
        assert "notificationId" in result

    @pytest.mark.asyncio
    async def test_slow_notifier_assumes_success(self):
        notifier = FakeNotifier(delay=0.5, error=RuntimeError("late failure"))
        result = await send_notification(notifier, VALID_ARGS, timeout=0.05)

        assert result["success"] is True

    @pytest.mark.asyncio
    async def test_permission_error(self):
        notifier = FakeNotifier(error=RuntimeError("Permission denied by user"))
        result = await send_notification(notifier, VALID_ARGS)

        assert result["success"] is False
        assert result["error"] == PERMISSION_DENIED_MESSAGE
        assert "notificationId" not in result

    @pytest.mark.asyncio
    async def test_notify_raising_synchronously(self):
        result = await send_notification(RaisingNotifier(), VALID_ARGS)

        assert result["success"] is False
        assert result["error"] == PERMISSION_DENIED_MESSAGE

    @pytest.mark.asyncio
    async def test_unavailable_platform(self):
        result = await send_notification(UnavailableNotifier(), VALID_ARGS)

        assert result["success"] is False
        assert result["error"] == UNAVAILABLE_MESSAGE

    @pytest.mark.asyncio
    async def test_callback_from_another_thread(self):
        class ThreadNotifier(FakeNotifier):
            def notify(self, request, callback):
                loop = asyncio.get_running_loop()
                loop.run_in_executor(None, callback, None, "sent")

        result = await send_notification(ThreadNotifier(), VALID_ARGS)
        assert result["success"] is True


class TestClassifyError:

    @pytest.mark.parametrize("error, expected", [
        (RuntimeError("Permission denied"), PERMISSION_DENIED_MESSAGE),
        (PermissionError(13, "nope"), PERMISSION_DENIED_MESSAGE),
        (RuntimeError("request timeout"), TIMEOUT_MESSAGE),
        (asyncio.TimeoutError(), TIMEOUT_MESSAGE),
        (RuntimeError("operation timed out"), TIMEOUT_MESSAGE),
        (NotifierUnavailableError("Notification system not available"), UNAVAILABLE_MESSAGE),
        (FileNotFoundError(2, "No such file"), UNAVAILABLE_MESSAGE),
        (RuntimeError("rate limit exceeded"), RATE_LIMITED_MESSAGE),
        (RuntimeError("Too many requests"), RATE_LIMITED_MESSAGE),
    ])
    def test_categories(self, error, expected):
        assert classify_error(error) == expected

    def test_generic_fallback(self):
        assert classify_error(RuntimeError("disk on fire")) == "Failed to send notification: disk on fire"


class TestBuildRequest:

    def test_maps_all_fields(self):
        request = build_request({
            "title": "T",
            "message": "M",
            "subtitle": "S",
            "urgency": "critical",
            "sound": "Ping",
            "timeoutSeconds": 30,
            "icon": "/tmp/icon.png",
            "contentImagePath": "/tmp/image.png",
            "openUrl": "https://example.com",
        })

        assert request.subtitle == "S"
        assert request.urgency == "critical"
        assert request.sound == "Ping"
        assert request.timeout_seconds == 30
        assert request.icon == "/tmp/icon.png"
        assert request.content_image_path == "/tmp/image.png"
        assert request.open_url == "https://example.com"

    def test_optional_fields_default(self):
        request = build_request({"title": "T", "message": "M"})

        assert request.subtitle is None
        assert request.urgency == "normal"
        assert request.sound is True
        assert request.timeout_seconds == 10


class TestDescriptor:

    def test_reports_validation_failures(self):
        operation = create_send_notification_operation(FakeNotifier())

        assert operation.name == "send-notification"
        assert operation.validation_policy is ValidationPolicy.REPORT
        assert operation.input_schema["required"] == ["title", "message"]

    @pytest.mark.asyncio
    async def test_handler_uses_bound_notifier(self):
        notifier = FakeNotifier()
        operation = create_send_notification_operation(notifier)

        result = await operation.handler(VALID_ARGS)

        assert result["success"] is True
        assert len(notifier.requests) == 1
