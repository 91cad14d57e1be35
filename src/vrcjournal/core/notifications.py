"""Transient user-facing notifications with automatic expiry."""

import asyncio
import logging
from dataclasses import dataclass
from enum import StrEnum

from PySide6.QtCore import QObject, Signal

logger = logging.getLogger(__name__)

DEFAULT_TTL_MS = 3000


class NotificationKind(StrEnum):
    """Visual category of a notification."""

    SUCCESS = "success"
    ERROR = "error"
    INFO = "info"


@dataclass(frozen=True, slots=True)
class Notification:
    """A message shown to the user until it expires or is dismissed.

    Attributes:
        id: Queue-unique, increasing identifier.
        message: Text to display.
        kind: Visual category.
        ttl_ms: Lifetime in milliseconds; 0 means until dismissed.
    """

    id: int
    message: str
    kind: NotificationKind = NotificationKind.INFO
    ttl_ms: int = DEFAULT_TTL_MS


class NotificationQueue(QObject):
    """Ordered list of visible notifications.

    Expiry timers run on the asyncio loop that is running when a
    notification is added. A timer firing after the notification was
    already dismissed does nothing.

    Example:
        queue = NotificationQueue()
        queue.notifications_changed.connect(toast_view.render)
        queue.success("Saved")
    """

    # Emits the tuple of visible notifications after every change
    notifications_changed = Signal(object)

    def __init__(self) -> None:
        super().__init__()
        self._items: list[Notification] = []
        self._timers: dict[int, asyncio.TimerHandle] = {}
        self._next_id = 1

    @property
    def notifications(self) -> tuple[Notification, ...]:
        """Return visible notifications in display order."""
        return tuple(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, notification_id: object) -> bool:
        return any(n.id == notification_id for n in self._items)

    def add(
        self,
        message: str,
        kind: NotificationKind | str = NotificationKind.INFO,
        ttl_ms: int = DEFAULT_TTL_MS,
    ) -> int:
        """Show a notification.

        Args:
            message: Text to display.
            kind: success, error or info.
            ttl_ms: Milliseconds until automatic removal; 0 keeps it.

        Returns:
            The new notification's id.
        """
        ttl_ms = max(0, ttl_ms)
        notification_id = self._next_id
        self._next_id += 1

        notification = Notification(notification_id, message, NotificationKind(kind), ttl_ms)
        self._items.append(notification)

        if ttl_ms > 0:
            try:
                loop = asyncio.get_running_loop()
            except RuntimeError:
                logger.warning(
                    "No running event loop; notification %d will not expire", notification_id
                )
            else:
                self._timers[notification_id] = loop.call_later(
                    ttl_ms / 1000, self._expire, notification_id
                )

        self.notifications_changed.emit(self.notifications)
        return notification_id

    def remove(self, notification_id: int) -> None:
        """Dismiss a notification. Unknown ids are ignored."""
        timer = self._timers.pop(notification_id, None)
        if timer is not None:
            timer.cancel()

        for index, notification in enumerate(self._items):
            if notification.id == notification_id:
                del self._items[index]
                self.notifications_changed.emit(self.notifications)
                return

    def _expire(self, notification_id: int) -> None:
        self._timers.pop(notification_id, None)
        self.remove(notification_id)

    def success(self, message: str, ttl_ms: int = DEFAULT_TTL_MS) -> int:
        """Show a success notification."""
        return self.add(message, NotificationKind.SUCCESS, ttl_ms)

    def error(self, message: str, ttl_ms: int = DEFAULT_TTL_MS) -> int:
        """Show an error notification."""
        return self.add(message, NotificationKind.ERROR, ttl_ms)

    def info(self, message: str, ttl_ms: int = DEFAULT_TTL_MS) -> int:
        """Show an informational notification."""
        return self.add(message, NotificationKind.INFO, ttl_ms)

    def clear(self) -> None:
        """Dismiss every notification and cancel pending expiry timers."""
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        if self._items:
            self._items.clear()
            self.notifications_changed.emit(self.notifications)
