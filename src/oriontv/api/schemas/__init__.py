"""Pydantic schemas for backend payloads and UI forms."""

from oriontv.api.schemas.auth import (
    MIN_PASSWORD_LENGTH,
    AuthorizeLinkPayload,
    LinuxDoOAuthPayload,
    LoginResponsePayload,
    OAuthUserPayload,
    RegisterResponsePayload,
    RegistrationForm,
    ServerConfigPayload,
    TokenExchangePayload,
    parse_user,
)

__all__ = [
    "MIN_PASSWORD_LENGTH",
    "AuthorizeLinkPayload",
    "LinuxDoOAuthPayload",
    "LoginResponsePayload",
    "OAuthUserPayload",
    "RegisterResponsePayload",
    "RegistrationForm",
    "ServerConfigPayload",
    "TokenExchangePayload",
    "parse_user",
]
