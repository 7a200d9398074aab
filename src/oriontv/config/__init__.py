"""Configuration module for OrionTV session sync."""

from .settings import (
    AuthSettings,
    DeepLinkSettings,
    LogSettings,
    ServerSettings,
    Settings,
    get_settings,
)

__all__ = [
    "AuthSettings",
    "DeepLinkSettings",
    "LogSettings",
    "ServerSettings",
    "Settings",
    "get_settings",
]
