"""Notification providers package.

Hey future me - add new providers here and hand them to NotificationService
in the lifecycle wiring.
"""

from oriontv.infrastructure.notifications.inapp_provider import (
    InAppNotificationProvider,
)

__all__ = [
    "InAppNotificationProvider",
]
