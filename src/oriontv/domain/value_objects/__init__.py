"""Domain value objects."""

from oriontv.domain.value_objects.api_result import (
    ApiResult,
    RegistrationOutcome,
    TokenExchangeOutcome,
)
from oriontv.domain.value_objects.oauth_urls import (
    CALLBACK_QUERY_KEYS,
    OAuthCallback,
    is_oauth_callback_url,
    parse_callback_url,
    validate_authorization_link,
)

__all__ = [
    "ApiResult",
    "RegistrationOutcome",
    "TokenExchangeOutcome",
    "CALLBACK_QUERY_KEYS",
    "OAuthCallback",
    "is_oauth_callback_url",
    "parse_callback_url",
    "validate_authorization_link",
]
