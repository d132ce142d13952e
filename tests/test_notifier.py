"""Tests for the notification adapters."""

import asyncio

import pytest

from dingdong.adapters import notifier as notifier_module
from dingdong.adapters.notifier import (
    NotificationCommandError,
    NotificationRequest,
    NotifierUnavailableError,
    OsascriptNotifier,
    TerminalNotifier,
    UnavailableNotifier,
    default_notifier,
)


async def deliver(notifier, request):
    """Run notify() and wait for its callback."""
    loop = asyncio.get_running_loop()
    outcome = loop.create_future()
    notifier.notify(request, lambda error, response: outcome.set_result((error, response)))
    return await asyncio.wait_for(outcome, timeout=5)


class TestTerminalNotifierCommand:

    def test_minimal(self):
        command = TerminalNotifier("terminal-notifier").build_command(
            NotificationRequest(title="Title", message="Body", sound=False)
        )
        assert command == ["-title", "Title", "-message", "Body"]

    def test_all_fields(self):
        command = TerminalNotifier("terminal-notifier").build_command(NotificationRequest(
            title="Title",
            message="Body",
            subtitle="Sub",
            urgency="critical",
            sound="Glass",
            icon="/tmp/icon.png",
            content_image_path="/tmp/image.png",
            open_url="https://example.com",
        ))

        assert command[command.index("-subtitle") + 1] == "Sub"
        assert command[command.index("-sound") + 1] == "Glass"
        assert command[command.index("-appIcon") + 1] == "/tmp/icon.png"
        assert command[command.index("-contentImage") + 1] == "/tmp/image.png"
        assert command[command.index("-open") + 1] == "https://example.com"
        assert "-ignoreDnD" in command

    def test_default_sound(self):
        command = TerminalNotifier("terminal-notifier").build_command(
            NotificationRequest(title="T", message="M", sound=True)
        )
        assert command[command.index("-sound") + 1] == "default"

    def test_sound_file_path_uses_name(self):
        command = TerminalNotifier("terminal-notifier").build_command(
            NotificationRequest(title="T", message="M", sound="/System/Library/Sounds/Hero.aiff")
        )
        assert command[command.index("-sound") + 1] == "Hero"


class TestOsascriptNotifierCommand:

    def test_script(self):
        command = OsascriptNotifier("osascript").build_command(
            NotificationRequest(title="Title", message="Body", subtitle="Sub", sound="Ping")
        )

        assert command == [
            "-e",
            'display notification "Body" with title "Title" subtitle "Sub" sound name "Ping"',
        ]

    def test_quotes_are_escaped(self):
        command = OsascriptNotifier("osascript").build_command(
            NotificationRequest(title='Say "hi"', message="back\\slash", sound=False)
        )

        assert command[1] == 'display notification "back\\\\slash" with title "Say \\"hi\\""'


class TestCommandExecution:

    @pytest.mark.asyncio
    async def test_successful_command(self):
        notifier = TerminalNotifier(executable="echo")
        error, response = await deliver(notifier, NotificationRequest(title="T", message="M", sound=False))

        assert error is None
        assert response == "-title T -message M"

    @pytest.mark.asyncio
    async def test_failing_command(self):
        notifier = TerminalNotifier(executable="false")
        error, response = await deliver(notifier, NotificationRequest(title="T", message="M"))

        assert isinstance(error, NotificationCommandError)
        assert response is None

    @pytest.mark.asyncio
    async def test_missing_executable(self):
        notifier = TerminalNotifier(executable="/nonexistent/terminal-notifier")
        error, response = await deliver(notifier, NotificationRequest(title="T", message="M"))

        assert isinstance(error, FileNotFoundError)

    @pytest.mark.asyncio
    async def test_unavailable_notifier(self):
        error, response = await deliver(UnavailableNotifier(), NotificationRequest(title="T", message="M"))

        assert isinstance(error, NotifierUnavailableError)
        assert "not available" in str(error)


class TestDefaultNotifier:

    def test_prefers_terminal_notifier(self, monkeypatch):
        monkeypatch.setattr(notifier_module.shutil, "which", lambda name: f"/usr/local/bin/{name}")

        chosen = default_notifier()

        assert isinstance(chosen, TerminalNotifier)
        assert chosen.executable == "/usr/local/bin/terminal-notifier"

    def test_falls_back_to_osascript(self, monkeypatch):
        monkeypatch.setattr(
            notifier_module.shutil, "which",
            lambda name: "/usr/bin/osascript" if name == "osascript" else None,
        )
        assert isinstance(default_notifier(), OsascriptNotifier)

    def test_unavailable(self, monkeypatch):
        monkeypatch.setattr(notifier_module.shutil, "which", lambda name: None)
        assert isinstance(default_notifier(), UnavailableNotifier)
