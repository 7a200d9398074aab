"""Domain ports (interfaces) for dependency inversion."""

from abc import ABC, abstractmethod

from oriontv.domain.entities import ServerConfig

# Notification system interfaces
from oriontv.domain.ports.notification import (
    INotificationProvider,
    Notification,
    NotificationLevel,
    NotificationResult,
    NotificationType,
)
from oriontv.domain.value_objects import (
    ApiResult,
    RegistrationOutcome,
    TokenExchangeOutcome,
)


# Hey future me, ICookieStore is the cookie-reading PORT! The real cookie jar is owned by
# the platform (or the httpx client) and gets mutated behind our back - that's WHY the
# session service polls it instead of reading once. Keep implementations dumb: no caching,
# every get() must reflect the jar as it is right now, or polling becomes pointless.
class ICookieStore(ABC):
    """Read/write/clear the cookies of a server origin."""

    @abstractmethod
    async def get(self, origin: str) -> dict[str, str]:
        """Return cookie name -> value for the given origin."""
        pass

    @abstractmethod
    async def set(self, origin: str, name: str, value: str) -> None:
        """Store a cookie for the given origin."""
        pass

    @abstractmethod
    async def clear_all(self) -> None:
        """Drop every cookie of the app."""
        pass


# Listen up, IAuthApiClient is STATELESS from the session service's point of view. Every
# command returns an ApiResult and must not raise for HTTP/network problems - only
# get_server_config raises (the config loader wants the exception to record it).
class IAuthApiClient(ABC):
    """HTTP operations of the streaming backend related to authentication."""

    @property
    @abstractmethod
    def base_url(self) -> str | None:
        """Current server origin (None until configured)."""
        pass

    @abstractmethod
    def set_base_url(self, base_url: str | None) -> None:
        """Point the client at another server origin."""
        pass

    @abstractmethod
    async def get_server_config(self) -> ServerConfig:
        """GET /api/server-config.

        Raises:
            NetworkUnavailableError, UnauthorizedError, HttpStatusError
        """
        pass

    @abstractmethod
    async def login(
        self, username: str | None = None, password: str | None = None
    ) -> ApiResult[None]:
        """POST /api/login (credential-less in local storage mode)."""
        pass

    @abstractmethod
    async def logout(self) -> ApiResult[None]:
        """POST /api/logout."""
        pass

    @abstractmethod
    async def register(
        self, username: str, password: str, confirm_password: str
    ) -> ApiResult[RegistrationOutcome]:
        """POST /api/register."""
        pass

    @abstractmethod
    async def start_oauth(self) -> ApiResult[str]:
        """Resolve the identity-provider authorization URL."""
        pass

    @abstractmethod
    async def oauth_callback(
        self, code: str, state: str
    ) -> ApiResult[TokenExchangeOutcome]:
        """GET /api/oauth/callback?code&state (legacy code flow)."""
        pass

    @abstractmethod
    async def exchange_token(self, token: str) -> ApiResult[TokenExchangeOutcome]:
        """GET /api/oauth/exchange-token?token=."""
        pass


class IBrowserOpener(ABC):
    """Platform hook that opens a URL in the external browser."""

    @abstractmethod
    async def can_open(self, url: str) -> bool:
        """Whether the platform has something that can open this URL."""
        pass

    @abstractmethod
    async def open(self, url: str) -> bool:
        """Open the URL; returns False (or raises) when it could not."""
        pass


class IServerConfigSource(ABC):
    """Whoever loads /api/server-config and tracks its loading state."""

    @property
    @abstractmethod
    def is_loading(self) -> bool:
        pass

    @property
    @abstractmethod
    def server_config(self) -> ServerConfig | None:
        pass

    @abstractmethod
    async def load(self) -> ServerConfig | None:
        """(Re)load the config; returns None when it could not be fetched."""
        pass


__all__ = [
    "ICookieStore",
    "IAuthApiClient",
    "IBrowserOpener",
    "IServerConfigSource",
    "INotificationProvider",
    "Notification",
    "NotificationLevel",
    "NotificationResult",
    "NotificationType",
]
