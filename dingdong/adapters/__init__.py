"""Adapters for platform capabilities used by operations."""

from .notifier import (
    NotificationRequest,
    Notifier,
    NotifierUnavailableError,
    OsascriptNotifier,
    TerminalNotifier,
    UnavailableNotifier,
    default_notifier,
)

__all__ = [
    'NotificationRequest',
    'Notifier',
    'NotifierUnavailableError',
    'OsascriptNotifier',
    'TerminalNotifier',
    'UnavailableNotifier',
    'default_notifier',
]
