"""Wire schemas for the streaming backend's auth endpoints and the UI forms.

Hey future me - the backend is loose about response shapes. Register answers
``{success, message, needsApproval}`` on new servers and ``{ok, error}`` on old
ones; exchange-token may or may not include ``cookie``/``user``. These models
accept all of it (extra="ignore") and the AuthApiClient turns them into
ApiResult / domain entities. Nothing outside the client should import them,
except RegistrationForm which is the UI-boundary validation.
"""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator

from oriontv.domain.entities import (
    CurrentUser,
    OAuthProviderConfig,
    ServerConfig,
    UserRole,
)

MIN_PASSWORD_LENGTH = 6


class _Wire(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class LinuxDoOAuthPayload(_Wire):
    """``LinuxDoOAuth`` block of /api/server-config."""

    enabled: bool = False
    authorize_url: str | None = Field(default=None, alias="authorizeUrl")
    token_url: str | None = Field(default=None, alias="tokenUrl")
    user_info_url: str | None = Field(default=None, alias="userInfoUrl")
    redirect_uri: str | None = Field(default=None, alias="redirectUri")
    min_trust_level: int = Field(default=0, alias="minTrustLevel")
    auto_register: bool = Field(default=False, alias="autoRegister")
    default_role: UserRole = Field(default=UserRole.USER, alias="defaultRole")

    def to_entity(self) -> OAuthProviderConfig:
        return OAuthProviderConfig(
            enabled=self.enabled,
            authorize_url=self.authorize_url,
            token_url=self.token_url,
            user_info_url=self.user_info_url,
            redirect_uri=self.redirect_uri,
            min_trust_level=self.min_trust_level,
            auto_register=self.auto_register,
            default_role=self.default_role,
        )


class ServerConfigPayload(_Wire):
    """Response of GET /api/server-config."""

    site_name: str | None = Field(default=None, alias="SiteName")
    storage_type: str | None = Field(default=None, alias="StorageType")
    linuxdo_oauth: LinuxDoOAuthPayload | None = Field(default=None, alias="LinuxDoOAuth")

    def to_entity(self) -> ServerConfig:
        return ServerConfig(
            site_name=self.site_name,
            storage_mode=self.storage_type or None,
            oauth=self.linuxdo_oauth.to_entity() if self.linuxdo_oauth else None,
        )


class LoginResponsePayload(_Wire):
    """Response of POST /api/login (and /api/logout)."""

    ok: bool | None = None
    success: bool | None = None
    error: str | None = None
    message: str | None = None

    @property
    def is_ok(self) -> bool:
        # Old servers send {ok}, new ones {success}; an empty 200 body counts as ok
        if self.ok is not None:
            return self.ok
        if self.success is not None:
            return self.success
        return self.error is None


class RegisterResponsePayload(_Wire):
    """Response of POST /api/register in either of its two historical shapes."""

    ok: bool | None = None
    success: bool | None = None
    error: str | None = None
    message: str | None = None
    needs_approval: bool = Field(default=False, alias="needsApproval")

    @property
    def is_ok(self) -> bool:
        if self.success is not None:
            return self.success
        return bool(self.ok)

    @property
    def failure_reason(self) -> str | None:
        if self.is_ok:
            return None
        return self.error or self.message


class OAuthUserPayload(_Wire):
    """Optional ``user`` object of the token exchange response."""

    username: str
    role: UserRole | None = None
    linuxdo_id: int | None = Field(default=None, alias="linuxdoId")
    linuxdo_username: str | None = Field(default=None, alias="linuxdoUsername")

    def to_entity(self) -> CurrentUser:
        return CurrentUser(
            name=self.username,
            role=self.role,
            external_id=self.linuxdo_id,
            external_username=self.linuxdo_username,
        )


class TokenExchangePayload(_Wire):
    """Response of GET /api/oauth/exchange-token."""

    success: bool = False
    cookie: str | None = None
    error: str | None = None
    message: str | None = None
    user: dict[str, Any] | None = None


class AuthorizeLinkPayload(_Wire):
    """JSON variant of /api/oauth/authorize (servers that don't redirect)."""

    url: str | None = None
    authorize_url: str | None = Field(default=None, alias="authorizeUrl")

    @property
    def link(self) -> str | None:
        return self.url or self.authorize_url


class RegistrationForm(BaseModel):
    """UI-boundary validation for the registration prompt.

    The session service trusts its inputs; the form is where "username
    missing" or "passwords differ" get caught before any network call.
    """

    username: str
    password: str = Field(min_length=MIN_PASSWORD_LENGTH)
    confirm_password: str

    @field_validator("username")
    @classmethod
    def _username_not_blank(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("Please enter a username")
        return value

    @model_validator(mode="after")
    def _passwords_match(self) -> "RegistrationForm":
        if self.password != self.confirm_password:
            raise ValueError("The two passwords do not match")
        return self


def parse_user(raw: dict[str, Any] | None) -> CurrentUser | None:
    """Best-effort conversion of a raw ``user`` object; None when unusable."""
    if not raw:
        return None
    try:
        return OAuthUserPayload.model_validate(raw).to_entity()
    except ValueError:
        return None
