"""Synchronous in-process bus for operation change records."""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, List, Optional, Tuple

logger = logging.getLogger(__name__)


class ChangeKind(Enum):
    """Kinds of registry mutation."""
    ADDED = "added"
    UPDATED = "updated"
    REMOVED = "removed"


@dataclass(frozen=True)
class ChangeMetadata:
    """Optional context attached to a change record."""
    description: Optional[str] = None
    previous_description: Optional[str] = None
    reason: Optional[str] = None


@dataclass(frozen=True)
class ChangeRecord:
    """Immutable description of one registry mutation."""
    kind: ChangeKind
    name: str
    timestamp: int = field(default_factory=lambda: now_ms())
    metadata: ChangeMetadata = field(default_factory=ChangeMetadata)

    def to_params(self) -> dict:
        """Notification params sent to clients."""
        return {
            "kind": self.kind.value,
            "name": self.name,
            "timestamp": self.timestamp,
        }


ChangeHandler = Callable[[ChangeRecord], None]


def now_ms() -> int:
    """Wall-clock time in milliseconds."""
    return int(time.time() * 1000)


class ChangeEventBus:
    """
    Multi-subscriber publish mechanism for ChangeRecords.

    Delivery is synchronous and follows subscription order. A subscriber
    that raises is logged and skipped; the publisher never sees the error.
    """

    def __init__(self):
        self._subscribers: List[Tuple[ChangeHandler, bool]] = []

    def subscribe(self, handler: ChangeHandler, once: bool = False) -> None:
        """
        Add a subscriber.

        Args:
            handler: Callable receiving each published record
            once: Remove the subscriber after its first delivery
        """
        self._subscribers.append((handler, once))

    def unsubscribe(self, handler: ChangeHandler) -> bool:
        """Remove the first subscription of ``handler``. Returns whether one was found."""
        for index, (subscriber, _) in enumerate(self._subscribers):
            if subscriber == handler:
                del self._subscribers[index]
                return True
        return False

    def publish(self, record: ChangeRecord) -> None:
        """Deliver a record to every current subscriber."""
        logger.debug(f"Publishing {record.kind.value} for '{record.name}'")

        for entry in list(self._subscribers):
            handler, once = entry
            if once:
                if entry not in self._subscribers:
                    continue
                self._subscribers.remove(entry)
            try:
                handler(record)
            except Exception:
                logger.exception(
                    f"Change subscriber {getattr(handler, '__qualname__', handler)!r} failed "
                    f"for {record.kind.value} '{record.name}'"
                )

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)
