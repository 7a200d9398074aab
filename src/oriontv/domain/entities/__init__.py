"""Domain entities."""

from oriontv.domain.entities.server_config import (
    LOCAL_STORAGE_MODE,
    OAuthProviderConfig,
    ServerConfig,
)
from oriontv.domain.entities.session import (
    CurrentUser,
    OAuthPhase,
    SessionListener,
    SessionSnapshot,
    SessionState,
    UserRole,
)

__all__ = [
    "LOCAL_STORAGE_MODE",
    "CurrentUser",
    "OAuthPhase",
    "OAuthProviderConfig",
    "ServerConfig",
    "SessionListener",
    "SessionSnapshot",
    "SessionState",
    "UserRole",
]
