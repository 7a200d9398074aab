"""Parsing and validation of OAuth-related URLs.

Hey future me - two kinds of URL cross the app boundary during OAuth:

1. The AUTHORIZATION link we send the user to (must live on the identity
   provider's domain - never open whatever the server hands us blindly).
2. The CALLBACK deep link the OS routes back to us, e.g.
   ``oriontv://oauth/callback?success=true&token=abc`` or the legacy
   ``...?code=xyz&state=123``. Query values arrive percent-encoded; parse_qs
   decodes them, so ``error`` is already human text here.

Both parsers raise InvalidAuthorizationLinkError, never ValueError.
"""

from dataclasses import dataclass, field
from urllib.parse import parse_qs, urlsplit

from oriontv.domain.exceptions import InvalidAuthorizationLinkError

# Query parameters that mark a URL as an OAuth callback regardless of scheme/path.
CALLBACK_QUERY_KEYS = frozenset({"code", "state", "success", "token", "error"})


@dataclass(frozen=True)
class OAuthCallback:
    """Parsed OAuth callback deep link."""

    raw_url: str
    scheme: str
    route: str
    params: dict[str, str] = field(default_factory=dict)

    @property
    def error(self) -> str | None:
        return self.params.get("error") or None

    @property
    def error_description(self) -> str | None:
        return self.params.get("error_description") or None

    @property
    def success(self) -> bool:
        return self.params.get("success", "").lower() == "true"

    @property
    def token(self) -> str | None:
        return self.params.get("token") or None

    @property
    def code(self) -> str | None:
        return self.params.get("code") or None

    @property
    def state(self) -> str | None:
        return self.params.get("state") or None

    @property
    def has_token(self) -> bool:
        return self.success and self.token is not None

    @property
    def has_code(self) -> bool:
        return self.code is not None and self.state is not None

    @property
    def credential(self) -> str | None:
        """The one-time value this callback would spend (token wins over code)."""
        if self.has_token:
            return self.token
        if self.has_code:
            return self.code
        return None

    @property
    def error_text(self) -> str | None:
        """``error`` plus ``error_description`` when the provider sent one."""
        if self.error is None:
            return None
        if self.error_description:
            return f"{self.error}: {self.error_description}"
        return self.error


def parse_callback_url(url: str) -> OAuthCallback:
    """Parse a deep link into an OAuthCallback.

    Args:
        url: Incoming URL (live deep link or cold-launch URL)

    Returns:
        Parsed callback with first value of every query parameter

    Raises:
        InvalidAuthorizationLinkError: If the URL is not an absolute URL
    """
    if not isinstance(url, str) or not url.strip():
        raise InvalidAuthorizationLinkError("Empty link", link=None)

    raw = url.strip()
    try:
        parts = urlsplit(raw)
        # .port validates the netloc; a bad port only fails on access
        _ = parts.port
    except ValueError as e:
        raise InvalidAuthorizationLinkError(f"Malformed link: {e}", link=raw) from e

    if not parts.scheme or not (parts.netloc or parts.path):
        raise InvalidAuthorizationLinkError("Link is not an absolute URL", link=raw)

    query = parse_qs(parts.query, keep_blank_values=True)
    params = {key: values[0] for key, values in query.items() if values}
    route = f"{parts.netloc}{parts.path}".strip("/")

    return OAuthCallback(
        raw_url=raw,
        scheme=parts.scheme.lower(),
        route=route,
        params=params,
    )


def is_oauth_callback_url(url: str, app_scheme: str, callback_path: str) -> bool:
    """Decide whether an incoming URL is an OAuth callback.

    A URL qualifies when it uses the app scheme with the callback route, when
    its path contains the callback route as whole segments (web-style
    redirect), or when it carries any of ``code/state/success/token/error`` as a query parameter.
    Unparseable input is not a callback.
    """
    try:
        callback = parse_callback_url(url)
    except InvalidAuthorizationLinkError:
        return False

    route = callback_path.strip("/")
    if callback.scheme == app_scheme.lower() and callback.route == route:
        return True
    # whole path segments only: ".../oauth/callbackfoo" is not a callback
    if f"/{route}/" in f"/{callback.route}/":
        return True
    return bool(CALLBACK_QUERY_KEYS & callback.params.keys())


def validate_authorization_link(link: str, provider_domain: str) -> str:
    """Check that an authorization link is safe to open in the browser.

    Args:
        link: URL returned by the server's authorize endpoint
        provider_domain: Expected identity-provider host (subdomains allowed)

    Returns:
        The stripped link

    Raises:
        InvalidAuthorizationLinkError: Malformed, non-http(s) or foreign link
    """
    if not isinstance(link, str) or not link.strip():
        raise InvalidAuthorizationLinkError("Authorization link is empty")

    candidate = link.strip()
    try:
        parts = urlsplit(candidate)
        host = parts.hostname
        _ = parts.port
    except ValueError as e:
        raise InvalidAuthorizationLinkError(
            f"Malformed authorization link: {e}", link=candidate
        ) from e

    if parts.scheme not in ("http", "https") or not host:
        raise InvalidAuthorizationLinkError(
            "Authorization link must be an absolute http(s) URL", link=candidate
        )

    domain = provider_domain.strip().lower().rstrip(".")
    host = host.lower().rstrip(".")
    if host != domain and not host.endswith(f".{domain}"):
        raise InvalidAuthorizationLinkError(
            f"Authorization link host {host!r} is not on {domain!r}", link=candidate
        )

    return candidate
