"""
Initial operation registrations for the DingDong server.

Registers the built-in, notification and (optionally) dynamic operations.
"""

from typing import Optional

from ...adapters.notifier import Notifier
from ...config.settings import is_enabled
from ..operation_registry import OperationRegistry
from .builtin_operations import register_builtin_operations
from .dynamic_operations import DynamicOperationManager, register_dynamic_operations
from .notification_operations import register_notification_operations


def register_all_operations(
    registry: OperationRegistry,
    notifier: Optional[Notifier] = None
) -> None:
    """Register all initial operations."""
    register_builtin_operations(registry)
    register_notification_operations(registry, notifier)
    if is_enabled('dynamic_tools'):
        register_dynamic_operations(registry)


__all__ = [
    'register_all_operations',
    'register_builtin_operations',
    'register_notification_operations',
    'register_dynamic_operations',
    'DynamicOperationManager',
]
