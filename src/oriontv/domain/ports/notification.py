"""Notification provider interfaces for the notification service.

Hey future me - this is the PORT (interface) for notification providers!
Each provider implements this interface. The NotificationService uses
these providers to surface messages to the user (toasts on the TV/phone UI).

Architecture:
- NotificationService (Application Layer) → INotificationProvider (Port)
- InAppNotificationProvider (toast queue) → implements INotificationProvider

The session service only talks to NotificationService; it never knows how a
message is shown.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import UTC, datetime
from enum import Enum
from typing import Any


class NotificationType(str, Enum):
    """Session events that produce user-visible messages.

    Hey future me - add new types here when you add new session events!
    The type is used for filtering and provider routing.
    """

    LOGIN_SUCCEEDED = "login_succeeded"
    LOGIN_FAILED = "login_failed"
    SESSION_LOST = "session_lost"
    REGISTRATION_SUCCEEDED = "registration_succeeded"
    REGISTRATION_FAILED = "registration_failed"
    OAUTH_STARTED = "oauth_started"
    OAUTH_SUCCEEDED = "oauth_succeeded"
    OAUTH_FAILED = "oauth_failed"
    INVALID_LINK = "invalid_link"
    CONFIGURATION_ERROR = "configuration_error"
    CUSTOM = "custom"


class NotificationLevel(str, Enum):
    """Visual style of the message (maps 1:1 to toast styles)."""

    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass
class Notification:
    """Notification data object for passing to providers.

    Hey future me - this is the PAYLOAD that providers receive!
    Keep it provider-agnostic. ``title`` is the toast headline, ``message``
    the optional second line.

    Example:
        notif = Notification(
            type=NotificationType.OAUTH_FAILED,
            level=NotificationLevel.ERROR,
            title="Authorization failed",
            message="access_denied",
        )
    """

    type: NotificationType
    level: NotificationLevel
    title: str
    message: str = ""
    data: dict[str, Any] = field(default_factory=dict)
    timestamp: datetime | None = None

    def __post_init__(self) -> None:
        """Set timestamp if not provided."""
        if self.timestamp is None:
            self.timestamp = datetime.now(UTC)

    @property
    def text(self) -> str:
        """Title and message joined the way a single-line toast shows them."""
        return f"{self.title}: {self.message}" if self.message else self.title


@dataclass
class NotificationResult:
    """Result of sending a notification.

    The error field contains details if success=False.
    """

    success: bool
    provider_name: str
    notification_type: NotificationType
    error: str | None = None


class INotificationProvider(ABC):
    """Interface for notification providers.

    Hey future me - this is THE CONTRACT for all notification channels!

    Each provider must:
    1. Have a unique name (for logging/routing)
    2. Declare which notification types it supports
    3. Implement send() to actually deliver the notification
    4. Implement is_configured() to say whether it can deliver at all
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Unique name for this provider (e.g., 'inapp')."""
        pass

    @property
    @abstractmethod
    def supported_types(self) -> list[NotificationType]:
        """List of notification types this provider can handle.

        Return empty list to support ALL types.
        """
        pass

    @abstractmethod
    async def send(self, notification: Notification) -> NotificationResult:
        """Send a notification through this provider."""
        pass

    @abstractmethod
    async def is_configured(self) -> bool:
        """Check if this provider is ready to deliver."""
        pass

    def supports(self, notification_type: NotificationType) -> bool:
        """Check if this provider supports a notification type."""
        supported = self.supported_types
        return len(supported) == 0 or notification_type in supported


__all__ = [
    "NotificationType",
    "NotificationLevel",
    "Notification",
    "NotificationResult",
    "INotificationProvider",
]
