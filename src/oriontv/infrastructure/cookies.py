"""Cookie store backed by the HTTP client's cookie jar."""

import logging
from http.cookiejar import CookieJar
from urllib.parse import urlsplit

import httpx

from oriontv.domain.ports import ICookieStore

logger = logging.getLogger(__name__)


def _origin_host(origin: str) -> str | None:
    host = urlsplit(origin if "//" in origin else f"//{origin}").hostname
    return host.lower() if host else None


def _domain_matches(cookie_domain: str, host: str) -> bool:
    domain = cookie_domain.lower().lstrip(".")
    # CookieJar stores host-only cookies of dotless hosts as "host.local"
    if domain.endswith(".local") and "." not in host:
        domain = domain[: -len(".local")]
    return host == domain or host.endswith(f".{domain}")


class HttpxCookieStore(ICookieStore):
    """ICookieStore over the CookieJar shared with AuthApiClient.

    Hey future me - no caching here, EVER. The jar is written by httpx whenever a
    response carries Set-Cookie (token exchange, login), and the session service
    polls ``get`` precisely to see those writes. Expired cookies are filtered out
    so a stale ``auth`` cookie never counts as a session.
    """

    def __init__(self, cookie_jar: CookieJar) -> None:
        self._jar = cookie_jar

    async def get(self, origin: str) -> dict[str, str]:
        host = _origin_host(origin)
        if host is None:
            return {}
        cookies: dict[str, str] = {}
        for cookie in self._jar:
            if cookie.is_expired() or cookie.value is None:
                continue
            if _domain_matches(cookie.domain, host):
                cookies[cookie.name] = cookie.value
        return cookies

    async def set(self, origin: str, name: str, value: str) -> None:
        host = _origin_host(origin)
        if host is None:
            raise ValueError(f"Cannot derive a cookie domain from {origin!r}")
        # httpx.Cookies wraps the jar by reference, so this writes into the shared jar
        httpx.Cookies(self._jar).set(name, value, domain=host, path="/")
        logger.debug("Cookie %s stored for %s", name, host)

    async def clear_all(self) -> None:
        self._jar.clear()
        logger.debug("All cookies cleared")
