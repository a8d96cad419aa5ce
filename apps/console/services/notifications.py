"""
apps.console.services.notifications
~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~~
Dismissible user notifications raised by console operations.

Failures of external calls never escape the console as exceptions; they are
turned into a :class:`Notification` that may carry a retry action.
"""
from __future__ import annotations

import enum
import itertools
import threading
from dataclasses import dataclass, field
from typing import Any, Callable

_ids = itertools.count(1)


class Variant(str, enum.Enum):
    DEFAULT = "default"
    DESTRUCTIVE = "destructive"


@dataclass
class Notification:
    title: str
    message: str
    variant: Variant = Variant.DEFAULT
    retry: Callable[[], Any] | None = None
    id: int = field(default_factory=lambda: next(_ids))

    @property
    def retryable(self) -> bool:
        return self.retry is not None


class NotificationCenter:
    """Thread-safe, ordered list of notifications awaiting dismissal."""

    def __init__(self) -> None:
        self._items: list[Notification] = []
        self._lock = threading.Lock()

    @property
    def items(self) -> list[Notification]:
        with self._lock:
            return list(self._items)

    def push(self, notification: Notification) -> Notification:
        with self._lock:
            self._items.append(notification)
        return notification

    def success(self, message: str, *, title: str = "Success") -> Notification:
        return self.push(Notification(title=title, message=message))

    def error(
        self,
        message: str,
        *,
        title: str = "Error",
        retry: Callable[[], Any] | None = None,
    ) -> Notification:
        return self.push(
            Notification(
                title=title,
                message=message,
                variant=Variant.DESTRUCTIVE,
                retry=retry,
            )
        )

    def dismiss(self, notification_id: int) -> bool:
        """Remove a notification.  Returns False if it was already gone."""
        with self._lock:
            for index, item in enumerate(self._items):
                if item.id == notification_id:
                    del self._items[index]
                    return True
        return False

    def clear(self) -> None:
        with self._lock:
            self._items.clear()
