"""Domain exceptions."""

from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Classification shared by exceptions and ApiResult failures.

    Hey future me - the session service branches on these, never on exception
    message text. Comparing ``e.message == "UNAUTHORIZED"`` breaks as soon as the
    server rewords an error.
    """

    NETWORK_UNAVAILABLE = "network_unavailable"
    UNAUTHORIZED = "unauthorized"
    HTTP_ERROR = "http_error"
    REJECTED = "rejected"
    INVALID_AUTHORIZATION_LINK = "invalid_authorization_link"
    MISSING_CALLBACK_PARAMETERS = "missing_callback_parameters"
    TOKEN_EXCHANGE_FAILURE = "token_exchange_failure"
    SESSION_VERIFICATION_TIMEOUT = "session_verification_timeout"
    CONFIGURATION_UNAVAILABLE = "configuration_unavailable"


class DomainException(Exception):
    """Base exception for all domain exceptions."""

    kind: ErrorKind = ErrorKind.HTTP_ERROR

    # Hey future me, we store message as an attribute so code can inspect it without
    # parsing str(exception). Always raise a specific subclass so callers can catch precisely.
    def __init__(self, message: str, *args: Any) -> None:
        super().__init__(message, *args)
        self.message = message


class NetworkUnavailableError(DomainException):
    """Server could not be reached (DNS, refused connection, timeout)."""

    kind = ErrorKind.NETWORK_UNAVAILABLE


class HttpStatusError(DomainException):
    """Server answered with a non-2xx status other than 401."""

    kind = ErrorKind.HTTP_ERROR

    def __init__(self, status_code: int, message: str | None = None) -> None:
        super().__init__(message or f"HTTP error! status: {status_code}")
        self.status_code = status_code


class UnauthorizedError(HttpStatusError):
    """Server answered 401 - the session is missing or invalid."""

    kind = ErrorKind.UNAUTHORIZED

    def __init__(self, message: str = "Unauthorized") -> None:
        super().__init__(401, message)


class InvalidAuthorizationLinkError(DomainException):
    """Authorization or callback URL is malformed or points somewhere unexpected.

    Raised when the link returned by /api/oauth/authorize is not an absolute
    http(s) URL on the identity-provider domain, and when a deep link cannot
    be parsed at all.
    """

    kind = ErrorKind.INVALID_AUTHORIZATION_LINK

    def __init__(self, message: str, link: str | None = None) -> None:
        super().__init__(message)
        self.link = link


class MissingCallbackParametersError(DomainException):
    """OAuth callback carried neither ``token`` nor ``code`` + ``state``."""

    kind = ErrorKind.MISSING_CALLBACK_PARAMETERS


class TokenExchangeError(DomainException):
    """Server refused to turn the one-time token (or code) into a session."""

    kind = ErrorKind.TOKEN_EXCHANGE_FAILURE

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class SessionVerificationTimeoutError(DomainException):
    """Auth cookie never showed up in the local cookie store within the poll budget."""

    kind = ErrorKind.SESSION_VERIFICATION_TIMEOUT

    def __init__(self, attempts: int) -> None:
        super().__init__(f"Session cookie not visible after {attempts} attempts")
        self.attempts = attempts


class ConfigurationUnavailableError(DomainException):
    """Server config could not be loaded or lacks the storage mode."""

    kind = ErrorKind.CONFIGURATION_UNAVAILABLE


__all__ = [
    "ErrorKind",
    "DomainException",
    "NetworkUnavailableError",
    "HttpStatusError",
    "UnauthorizedError",
    "InvalidAuthorizationLinkError",
    "MissingCallbackParametersError",
    "TokenExchangeError",
    "SessionVerificationTimeoutError",
    "ConfigurationUnavailableError",
]
