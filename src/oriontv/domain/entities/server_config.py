"""Server configuration as reported by GET /api/server-config."""

from dataclasses import dataclass
from urllib.parse import urlsplit

from oriontv.domain.entities.session import UserRole

# Storage mode where the server keeps no cookie session and the client logs in
# without credentials on every start.
LOCAL_STORAGE_MODE = "localstorage"


@dataclass(frozen=True)
class OAuthProviderConfig:
    """Identity-provider (LinuxDo) OAuth settings published by the server."""

    enabled: bool
    authorize_url: str | None = None
    token_url: str | None = None
    user_info_url: str | None = None
    redirect_uri: str | None = None
    min_trust_level: int = 0
    auto_register: bool = False
    default_role: UserRole = UserRole.USER

    @property
    def provider_domain(self) -> str | None:
        """Host of the authorize URL, used to validate authorization links."""
        if not self.authorize_url:
            return None
        host = urlsplit(self.authorize_url).hostname
        return host or None


@dataclass(frozen=True)
class ServerConfig:
    """Subset of the server config the session sync cares about."""

    site_name: str | None = None
    storage_mode: str | None = None
    oauth: OAuthProviderConfig | None = None

    @property
    def has_storage_mode(self) -> bool:
        return bool(self.storage_mode)

    @property
    def uses_cookie_session(self) -> bool:
        """True for every storage mode except the local, credential-less one."""
        return self.has_storage_mode and self.storage_mode != LOCAL_STORAGE_MODE
