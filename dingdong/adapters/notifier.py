"""
Desktop notification delivery.

Notifiers follow a callback contract: ``notify(request, callback)`` returns
immediately and ``callback(error, response)`` fires exactly once when the
platform reports back. Delivery runs a macOS command line tool in a
subprocess on the running event loop.
"""

import asyncio
import logging
import os
import shutil
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional, Set, Union

logger = logging.getLogger(__name__)

NotifyCallback = Callable[[Optional[BaseException], Optional[str]], None]

TERMINAL_NOTIFIER_BINARY = "terminal-notifier"
OSASCRIPT_BINARY = "osascript"

# Sound played when sound=True
DEFAULT_SOUND = "default"
OSASCRIPT_DEFAULT_SOUND = "Ping"

# Extra time granted to the command on top of the display timeout
COMMAND_GRACE_SECONDS = 5.0


@dataclass
class NotificationRequest:
    """A single notification to display."""
    title: str
    message: str
    subtitle: Optional[str] = None
    urgency: str = "normal"
    sound: Union[bool, str] = True
    timeout_seconds: int = 10
    icon: Optional[str] = None
    content_image_path: Optional[str] = None
    open_url: Optional[str] = None


class NotifierUnavailableError(RuntimeError):
    """No notification backend exists on this platform."""
    pass


class NotificationCommandError(RuntimeError):
    """The notification command exited unsuccessfully."""
    pass


# ============================================================================
# Base Classes
# ============================================================================

class Notifier(ABC):
    """Capability for displaying desktop notifications."""

    @abstractmethod
    def notify(self, request: NotificationRequest, callback: NotifyCallback) -> None:
        """
        Start delivering a notification.

        Args:
            request: Notification content and options
            callback: Invoked once with ``(error, None)`` or ``(None, response)``
        """


class CommandNotifier(Notifier):
    """Notifier that shells out to a command line tool."""

    binary: str = ""

    def __init__(self, executable: Optional[str] = None):
        self.executable = executable or shutil.which(self.binary) or self.binary
        self._pending: Set[asyncio.Task] = set()

    @abstractmethod
    def build_command(self, request: NotificationRequest) -> List[str]:
        """Argument vector (without the executable) for one request."""

    def notify(self, request: NotificationRequest, callback: NotifyCallback) -> None:
        loop = asyncio.get_running_loop()
        task = loop.create_task(self._deliver(request, callback))
        self._pending.add(task)
        task.add_done_callback(self._pending.discard)

    async def _deliver(self, request: NotificationRequest, callback: NotifyCallback) -> None:
        try:
            response = await self.run(request)
        except Exception as e:
            logger.error(f"Failed to send notification: {e}")
            callback(e, None)
            return
        logger.debug(f"Notification delivered: {response!r}")
        callback(None, response)

    async def run(self, request: NotificationRequest) -> str:
        """
        Run the command for a request and return its stdout.

        Raises:
            NotificationCommandError: If the command exits non-zero
            OSError: If the executable cannot be started
            asyncio.TimeoutError: If the command does not finish in time
        """
        args = self.build_command(request)
        logger.debug(f"Running {self.executable} with {len(args)} arguments")

        process = await asyncio.create_subprocess_exec(
            self.executable,
            *args,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
        try:
            stdout, stderr = await asyncio.wait_for(
                process.communicate(),
                timeout=request.timeout_seconds + COMMAND_GRACE_SECONDS,
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise asyncio.TimeoutError(f"{self.binary} timed out")

        if process.returncode != 0:
            detail = stderr.decode("utf-8", errors="replace").strip()
            raise NotificationCommandError(
                detail or f"{self.binary} exited with code {process.returncode}"
            )

        return stdout.decode("utf-8", errors="replace").strip()


# ============================================================================
# Implementations
# ============================================================================

class TerminalNotifier(CommandNotifier):
    """Notifier backed by the ``terminal-notifier`` binary."""

    binary = TERMINAL_NOTIFIER_BINARY

    def build_command(self, request: NotificationRequest) -> List[str]:
        args = ["-title", request.title, "-message", request.message]

        if request.subtitle:
            args += ["-subtitle", request.subtitle]

        sound = _sound_name(request.sound, DEFAULT_SOUND)
        if sound:
            args += ["-sound", sound]

        if request.icon:
            args += ["-appIcon", request.icon]
        if request.content_image_path:
            args += ["-contentImage", request.content_image_path]
        if request.open_url:
            args += ["-open", request.open_url]

        # Critical notifications are shown even in Do Not Disturb
        if request.urgency == "critical":
            args.append("-ignoreDnD")

        return args


class OsascriptNotifier(CommandNotifier):
    """
    Notifier backed by AppleScript ``display notification``.

    Only title, subtitle, message and sound are supported.
    """

    binary = OSASCRIPT_BINARY

    def build_command(self, request: NotificationRequest) -> List[str]:
        script = f"display notification {_quote(request.message)} with title {_quote(request.title)}"

        if request.subtitle:
            script += f" subtitle {_quote(request.subtitle)}"

        sound = _sound_name(request.sound, OSASCRIPT_DEFAULT_SOUND)
        if sound:
            script += f" sound name {_quote(sound)}"

        return ["-e", script]


class UnavailableNotifier(Notifier):
    """Placeholder used where no notification backend exists."""

    def notify(self, request: NotificationRequest, callback: NotifyCallback) -> None:
        error = NotifierUnavailableError("Notification system not available on this platform")
        asyncio.get_running_loop().call_soon(callback, error, None)


def default_notifier() -> Notifier:
    """Pick the best available notifier for this machine."""
    path = shutil.which(TERMINAL_NOTIFIER_BINARY)
    if path:
        logger.debug(f"Using terminal-notifier at {path}")
        return TerminalNotifier(path)

    path = shutil.which(OSASCRIPT_BINARY)
    if path:
        logger.debug(f"Using osascript at {path}")
        return OsascriptNotifier(path)

    logger.warning("No notification backend found (terminal-notifier or osascript)")
    return UnavailableNotifier()


# ============================================================================
# Internal Helpers
# ============================================================================

def _sound_name(sound: Union[bool, str, None], default: str) -> Optional[str]:
    if sound is True:
        return default
    if not sound:
        return None
    # Sound files are referenced by name without extension
    if os.path.isabs(sound):
        return os.path.splitext(os.path.basename(sound))[0]
    return sound


def _quote(text: str) -> str:
    """Quote a string as an AppleScript literal."""
    escaped = text.replace("\\", "\\\\").replace('"', '\\"')
    return f'"{escaped}"'


__all__ = [
    'NotificationRequest',
    'NotifyCallback',
    'Notifier',
    'CommandNotifier',
    'TerminalNotifier',
    'OsascriptNotifier',
    'UnavailableNotifier',
    'NotifierUnavailableError',
    'NotificationCommandError',
    'default_notifier',
]
