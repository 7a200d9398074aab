"""External integration client implementations."""

from oriontv.infrastructure.integrations.auth_api_client import AuthApiClient

__all__ = ["AuthApiClient"]
