"""Application settings loaded from environment variables and .env.

Hey future me - every tunable of the session sync lives here. Groups are split
by concern so tests can build just the part they need, e.g.
``AuthSettings(cookie_poll_delay=0.0)`` for a fast cookie poll.

Environment examples:
    ORIONTV_SERVER_API_BASE_URL=http://192.168.1.10:3000
    ORIONTV_AUTH_COOKIE_POLL_ATTEMPTS=8
    ORIONTV_DEEPLINK_APP_SCHEME=oriontv
    ORIONTV_LOG_LEVEL=DEBUG
"""

from functools import lru_cache

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ServerSettings(BaseSettings):
    """Where the streaming backend lives and how we talk to it."""

    model_config = SettingsConfigDict(
        env_prefix="ORIONTV_SERVER_", env_file=".env", extra="ignore"
    )

    api_base_url: str | None = Field(
        default=None, description="Server origin, e.g. http://host:3000"
    )
    request_timeout: float = Field(default=30.0, gt=0)
    user_agent: str = "OrionTV/1.0 Mobile"

    @field_validator("api_base_url")
    @classmethod
    def _strip_trailing_slash(cls, value: str | None) -> str | None:
        if value is None:
            return None
        value = value.strip().rstrip("/")
        return value or None


class AuthSettings(BaseSettings):
    """Session check, cookie polling and OAuth tunables.

    Hey future me - the poll numbers are a trade-off. Cookie propagation after
    the external browser round trip is device dependent; 8 x 0.9s covered every
    TV box we saw. Lowering them makes the "not logged in" path snappier but
    brings back false "please log in" prompts right after OAuth.
    """

    model_config = SettingsConfigDict(
        env_prefix="ORIONTV_AUTH_", env_file=".env", extra="ignore"
    )

    cookie_name: str = "auth"
    cookie_poll_attempts: int = Field(default=8, ge=1, le=50)
    cookie_poll_delay: float = Field(default=0.9, ge=0)
    config_wait_timeout: float = Field(default=3.0, ge=0)
    config_wait_interval: float = Field(default=0.1, gt=0)
    identity_provider_domain: str = "linux.do"
    oauth_attempt_ttl: float = Field(default=600.0, gt=0)
    external_browser: bool = Field(
        default=True, description="False on boxes without a browser: always show the link"
    )


class DeepLinkSettings(BaseSettings):
    """Reserved app scheme and cold-launch behaviour."""

    model_config = SettingsConfigDict(
        env_prefix="ORIONTV_DEEPLINK_", env_file=".env", extra="ignore"
    )

    app_scheme: str = "oriontv"
    callback_path: str = "oauth/callback"
    cold_launch_delay: float = Field(default=0.8, ge=0)


class LogSettings(BaseSettings):
    """Logging output configuration."""

    model_config = SettingsConfigDict(
        env_prefix="ORIONTV_LOG_", env_file=".env", extra="ignore"
    )

    level: str = "INFO"
    json_format: bool = False


class Settings(BaseSettings):
    """Root settings object bundling all groups."""

    model_config = SettingsConfigDict(
        env_prefix="ORIONTV_", env_file=".env", extra="ignore"
    )

    app_name: str = "oriontv"
    server: ServerSettings = Field(default_factory=ServerSettings)
    auth: AuthSettings = Field(default_factory=AuthSettings)
    deep_link: DeepLinkSettings = Field(default_factory=DeepLinkSettings)
    log: LogSettings = Field(default_factory=LogSettings)


@lru_cache
def get_settings() -> Settings:
    """Return the process-wide settings (cached after first call)."""
    return Settings()
