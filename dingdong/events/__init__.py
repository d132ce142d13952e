"""Change-event bus shared by the registry and the protocol core."""

from .change_bus import (
    ChangeEventBus,
    ChangeHandler,
    ChangeKind,
    ChangeMetadata,
    ChangeRecord,
    now_ms,
)

__all__ = [
    'ChangeEventBus',
    'ChangeHandler',
    'ChangeKind',
    'ChangeMetadata',
    'ChangeRecord',
    'now_ms',
]
