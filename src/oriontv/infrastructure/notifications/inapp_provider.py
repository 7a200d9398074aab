"""In-app notification provider backing the UI's toast area.

Hey future me - this is what the TV/phone UI actually renders! Notifications
land in a bounded in-memory queue; the UI either drains it (``pop_all``) or
subscribes and shows each toast as it arrives. Nothing is persisted, a toast
from a previous app run is noise.
"""

import logging
from collections import deque
from collections.abc import Callable
from uuid import uuid4

from oriontv.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationResult,
    NotificationType,
)

logger = logging.getLogger(__name__)

ToastListener = Callable[[Notification], None]


class InAppNotificationProvider(INotificationProvider):
    """Toast queue provider.

    Args:
        max_count: Oldest toasts are dropped beyond this many
        enabled: False turns the provider off (is_configured() -> False)
    """

    def __init__(self, max_count: int = 20, enabled: bool = True) -> None:
        self._queue: deque[Notification] = deque(maxlen=max_count)
        self._listeners: list[ToastListener] = []
        self._enabled = enabled

    @property
    def name(self) -> str:
        return "inapp"

    @property
    def supported_types(self) -> list[NotificationType]:
        """In-app supports all notification types."""
        return []

    async def is_configured(self) -> bool:
        return self._enabled

    async def send(self, notification: Notification) -> NotificationResult:
        if not self._enabled:
            return NotificationResult(
                success=False,
                provider_name=self.name,
                notification_type=notification.type,
                error="In-app notifications disabled",
            )

        self._queue.append(notification)
        toast_id = str(uuid4())
        logger.debug(
            "[NOTIFICATION] In-app queued: %s - %s (id=%s)",
            notification.type.value,
            notification.title[:50],
            toast_id[:8],
        )

        # A broken UI listener must not turn into a failed delivery for the others
        for listener in list(self._listeners):
            try:
                listener(notification)
            except Exception:
                logger.exception("Toast listener %r failed", listener)

        return NotificationResult(
            success=True,
            provider_name=self.name,
            notification_type=notification.type,
        )

    def subscribe(self, listener: ToastListener) -> Callable[[], None]:
        """Call ``listener`` for every new toast. Returns an unsubscribe function."""
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    @property
    def pending(self) -> list[Notification]:
        """Queued toasts, oldest first (queue is left untouched)."""
        return list(self._queue)

    def pop_all(self) -> list[Notification]:
        """Drain the queue."""
        items = list(self._queue)
        self._queue.clear()
        return items
