"""Application services - session state transitions and their collaborators."""

from oriontv.application.services.deep_link_router import DeepLinkRouter
from oriontv.application.services.notification_service import NotificationService
from oriontv.application.services.server_config_service import ServerConfigService
from oriontv.application.services.session_service import OAuthAttempt, SessionService

__all__ = [
    "DeepLinkRouter",
    "NotificationService",
    "OAuthAttempt",
    "ServerConfigService",
    "SessionService",
]
