"""Tagged result type returned by every AuthAPIClient command."""

from dataclasses import dataclass
from typing import Any, Generic, TypeVar

from oriontv.domain.exceptions import DomainException, ErrorKind

T = TypeVar("T")


@dataclass(frozen=True)
class ApiResult(Generic[T]):
    """Outcome of one server call.

    Hey future me - the backend answers with ``{ok}`` on some endpoints and
    ``{success}`` on others (register even flips between them across
    versions). The client folds all of that into this ONE shape, so the session
    service only ever checks ``result.ok`` and ``result.error_kind``.
    """

    ok: bool
    value: T | None = None
    error_kind: ErrorKind | None = None
    error: str | None = None
    message: str | None = None
    status_code: int | None = None

    @classmethod
    def success(cls, value: T | None = None, message: str | None = None) -> "ApiResult[T]":
        return cls(ok=True, value=value, message=message)

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        error: str,
        status_code: int | None = None,
        message: str | None = None,
    ) -> "ApiResult[T]":
        return cls(
            ok=False,
            error_kind=kind,
            error=error,
            status_code=status_code,
            message=message,
        )

    @classmethod
    def from_exception(cls, exc: DomainException) -> "ApiResult[T]":
        """Convert a domain exception raised inside the client into a failure."""
        return cls.failure(
            exc.kind,
            exc.message,
            status_code=getattr(exc, "status_code", None),
        )


@dataclass(frozen=True)
class RegistrationOutcome:
    """Value of a successful /api/register call."""

    needs_approval: bool = False


@dataclass(frozen=True)
class TokenExchangeOutcome:
    """Value of a successful token exchange or code callback.

    ``cookie`` is the session cookie value the server reports having set; the
    cookie itself reaches the cookie store through Set-Cookie, not through us.
    ``user`` is the raw user object when the server includes one.
    """

    cookie: str | None = None
    user: dict[str, Any] | None = None
